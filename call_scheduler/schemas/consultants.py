# call_scheduler/schemas/consultants.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ConsultantPublic(BaseModel):
    id: str  # public id
    display_name: str
    title: Optional[str] = None
    bio: Optional[str] = None


class ConsultantCreate(BaseModel):
    display_name: str = Field(min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    title: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None


class ConsultantUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    title: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None


class ConsultantActiveUpdate(BaseModel):
    is_active: bool


class ConsultantRead(BaseModel):
    id: int
    public_id: str
    display_name: str
    email: Optional[str] = None
    title: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
