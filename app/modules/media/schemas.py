from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.core.policy import MediaStatus


class MediaType(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


class MediaStatusFilter(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    ALL = "all"


class MediaUpdate(BaseModel):
    is_approved: Optional[bool] = None
    description: Optional[str] = None


class MediaResponse(BaseModel):
    id: str
    wedding_id: str
    uploaded_by: Optional[str] = None
    type: MediaType
    url: str
    filename: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None
    description: Optional[str] = None
    status: MediaStatus
    is_approved: bool
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MediaEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    media: MediaResponse


class MediaListEnvelope(BaseModel):
    success: bool = True
    media: List[MediaResponse]
