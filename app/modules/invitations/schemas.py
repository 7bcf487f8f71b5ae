from pydantic import BaseModel, EmailStr
from typing import List, Optional
from datetime import datetime
from enum import Enum


class InvitationRole(str, Enum):
    ADMIN = "admin"
    GUEST = "guest"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


class InvitationCreate(BaseModel):
    email: EmailStr
    role: InvitationRole = InvitationRole.GUEST
    guest_name: Optional[str] = None
    ttl_hours: Optional[int] = None


class InvitationAccept(BaseModel):
    weddingId: str


class InvitationResponse(BaseModel):
    id: str
    wedding_id: str
    email: str
    role: InvitationRole
    status: InvitationStatus
    invited_by: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: datetime
    accepted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvitationEnvelope(BaseModel):
    success: bool = True
    invitation: InvitationResponse


class InvitationListEnvelope(BaseModel):
    success: bool = True
    invitations: List[InvitationResponse]
