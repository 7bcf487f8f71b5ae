from app.core.errors import Invalid, NotFound
from app.core.policy import Principal
from app.database.supabase_client import SupabaseStore, eq
from app.modules.events.schemas import EventCreate, EventUpdate
from app.modules.invitations.service import parse_timestamp
from typing import Any, Dict, List
from datetime import datetime, timezone

TABLE = "events"

_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "startTime": "start_time",
    "endTime": "end_time",
    "location": "location",
    "eventType": "event_type",
    "isPublic": "is_public",
}


class EventService:
    def __init__(self, store: SupabaseStore):
        self.store = store

    def list_events(self, wedding_id: str, moderator: bool) -> List[Dict[str, Any]]:
        events = self.store.get(TABLE, [eq("wedding_id", wedding_id)], order="start_time")
        if not moderator:
            events = [e for e in events if e.get("is_public", True)]
        return events

    def create_event(self, data: EventCreate, principal: Principal) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        return self.store.insert(TABLE, {
            "wedding_id": data.weddingId,
            "created_by": principal.id,
            "title": data.title,
            "description": data.description,
            "start_time": data.startTime.isoformat(),
            "end_time": data.endTime.isoformat() if data.endTime else None,
            "location": data.location,
            "event_type": data.eventType.value,
            "is_public": data.isPublic,
            "created_at": now,
            "updated_at": now,
        })

    def update_event(self, event: Dict[str, Any], data: EventUpdate) -> Dict[str, Any]:
        update_data: Dict[str, Any] = {}
        for field, column in _FIELD_MAP.items():
            value = getattr(data, field)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            elif hasattr(value, "value"):
                value = value.value
            update_data[column] = value

        start = parse_timestamp(update_data.get("start_time", event.get("start_time")))
        end = parse_timestamp(update_data.get("end_time", event.get("end_time")))
        if start and end and end < start:
            raise Invalid("End time must be after start time")

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        rows = self.store.update(TABLE, [eq("id", event["id"])], update_data)
        if not rows:
            raise NotFound("Event not found")
        return rows[0]

    def delete_event(self, event_id: str) -> bool:
        return self.store.delete(TABLE, [eq("id", event_id)]) > 0
