from pydantic import BaseModel, field_validator, model_validator
from typing import List, Optional
from datetime import datetime, timezone
from enum import Enum


class EventType(str, Enum):
    CEREMONY = "ceremony"
    RECEPTION = "reception"
    REHEARSAL = "rehearsal"
    PARTY = "party"
    OTHER = "other"


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class EventCreate(BaseModel):
    weddingId: str
    title: str
    description: Optional[str] = None
    startTime: datetime
    endTime: Optional[datetime] = None
    location: Optional[str] = None
    eventType: EventType = EventType.OTHER
    isPublic: bool = True

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @model_validator(mode="after")
    def end_after_start(self):
        if self.endTime is not None and _aware(self.endTime) < _aware(self.startTime):
            raise ValueError("End time must be after start time")
        return self


class EventUpdate(BaseModel):
    eventId: str
    title: Optional[str] = None
    description: Optional[str] = None
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    location: Optional[str] = None
    eventType: Optional[EventType] = None
    isPublic: Optional[bool] = None


class EventResponse(BaseModel):
    id: str
    wedding_id: str
    created_by: Optional[str] = None
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    event_type: EventType = EventType.OTHER
    is_public: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    event: EventResponse


class EventListEnvelope(BaseModel):
    success: bool = True
    events: List[EventResponse]
