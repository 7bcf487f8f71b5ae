from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class RsvpStatus(str, Enum):
    PENDING = "pending"
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"
    MAYBE = "maybe"


_RSVP_ALIASES = {"yes": RsvpStatus.ATTENDING.value, "no": RsvpStatus.NOT_ATTENDING.value}


class GuestInvite(BaseModel):
    weddingId: str
    guestEmail: EmailStr
    guestName: Optional[str] = None
    plusOne: bool = False
    plusOneName: Optional[str] = None


class GuestUpdate(BaseModel):
    invitationId: str
    rsvpStatus: Optional[RsvpStatus] = None
    dietaryRestrictions: Optional[str] = None
    plusOneName: Optional[str] = None

    @field_validator("rsvpStatus", mode="before")
    @classmethod
    def accept_yes_no(cls, value):
        if isinstance(value, str):
            return _RSVP_ALIASES.get(value.lower(), value.lower())
        return value


class GuestResponse(BaseModel):
    id: str
    wedding_id: str
    guest_id: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: str
    rsvp_status: RsvpStatus = RsvpStatus.PENDING
    plus_one: bool = False
    plus_one_name: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    invited_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GuestEnvelope(BaseModel):
    success: bool = True
    invitation: GuestResponse


class GuestListEnvelope(BaseModel):
    success: bool = True
    guests: List[GuestResponse]
