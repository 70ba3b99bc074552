import importlib
import sys
from unittest import mock


def test_import_builds_nothing():
    with mock.patch.dict(sys.modules), \
            mock.patch("call_scheduler.database.create_engine") as create_engine, \
            mock.patch("redis.Redis.from_url") as from_url:
        sys.modules.pop("call_scheduler.main", None)
        main = importlib.import_module("call_scheduler.main")

    create_engine.assert_not_called()
    from_url.assert_not_called()
    assert not hasattr(main, "app")
    assert callable(main.create_app)
