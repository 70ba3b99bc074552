# call_scheduler/routers/consultants.py

from fastapi import APIRouter, Depends

from ..dependencies import get_consultant_store
from ..schemas.consultants import ConsultantPublic
from ..services.consultant_store import ConsultantStore

router = APIRouter(tags=["consultants"])


@router.get("/consultants", response_model=list[ConsultantPublic])
def list_consultants(consultants: ConsultantStore = Depends(get_consultant_store)):
    return consultants.list_active()
