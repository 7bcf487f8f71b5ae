from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import date as date_type, datetime
from enum import Enum
from app.modules.guests.schemas import GuestResponse


class WeddingStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class WeddingCreate(BaseModel):
    name: str
    date: date_type
    location: str
    description: Optional[str] = None
    subdomain: Optional[str] = None
    adminEmail: Optional[EmailStr] = None

    @field_validator("name", "location")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class WeddingUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[date_type] = None
    location: Optional[str] = None
    description: Optional[str] = None
    subdomain: Optional[str] = None
    status: Optional[WeddingStatus] = None


class WeddingPublicResponse(BaseModel):
    """What a guest-tier principal may see"""
    id: str
    name: str
    date: Optional[date_type] = None
    location: Optional[str] = None
    description: Optional[str] = None
    subdomain: Optional[str] = None
    status: Optional[WeddingStatus] = None

    class Config:
        from_attributes = True


class WeddingResponse(WeddingPublicResponse):
    code: Optional[str] = None
    super_admin_id: Optional[str] = None
    wedding_admin_ids: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    guestCount: Optional[int] = None
    photoCount: Optional[int] = None


class WeddingEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    wedding: WeddingResponse


class WeddingListEnvelope(BaseModel):
    success: bool = True
    weddings: List[WeddingResponse]


class WeddingJoin(BaseModel):
    code: str
    name: Optional[str] = None

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Wedding code is required")
        return value


class WeddingJoinEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    wedding: WeddingPublicResponse
    guest: GuestResponse
