from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import date, datetime
from enum import Enum


class SuperAdminCreate(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("password")
    @classmethod
    def password_min_length(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return value


class SuperAdminResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: str = "super_admin"
    created_at: Optional[datetime] = None
    wedding_count: int = 0
    total_media_count: int = 0
    total_storage_mb: float = 0.0
    last_activity: Optional[datetime] = None


class SuperAdminEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: SuperAdminResponse


class SuperAdminListEnvelope(BaseModel):
    success: bool = True
    superAdmins: List[SuperAdminResponse]


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SuperAdminApplicationCreate(BaseModel):
    business_name: str
    business_type: str
    contact_person: str
    email: EmailStr
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None

    @field_validator("business_name", "business_type", "contact_person")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class ApplicationReview(BaseModel):
    """Decision on a pending application. Approving a new account needs its initial password."""
    status: ApplicationStatus
    password: Optional[str] = None
    payment_verified: bool = False
    trial_end_date: Optional[date] = None

    @field_validator("status")
    @classmethod
    def decided(cls, value: ApplicationStatus) -> ApplicationStatus:
        if value is ApplicationStatus.PENDING:
            raise ValueError('Status must be either "approved" or "rejected"')
        return value

    @field_validator("password")
    @classmethod
    def password_min_length(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return value


class SuperAdminApplicationResponse(BaseModel):
    id: str
    business_name: str
    business_type: str
    contact_person: str
    email: str
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.PENDING
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    payment_verified: bool = False
    trial_end_date: Optional[date] = None


class ApplicationEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    application: SuperAdminApplicationResponse


class ApplicationListEnvelope(BaseModel):
    success: bool = True
    applications: List[SuperAdminApplicationResponse]
