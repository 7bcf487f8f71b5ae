from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_principal, load_row, load_wedding_ref
from app.core.policy import Action, ChildKind, ChildRef, EventRef, Principal, authorize, is_wedding_admin
from app.database.supabase_client import SupabaseStore, get_store
from app.modules.events.schemas import EventCreate, EventEnvelope, EventListEnvelope, EventUpdate
from app.modules.events.service import EventService, TABLE

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(store: SupabaseStore = Depends(get_store)) -> EventService:
    return EventService(store)


@router.get("", response_model=EventListEnvelope)
async def list_events(
    weddingId: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: EventService = Depends(get_event_service)
):
    """Wedding schedule; guests see public events only"""
    wedding = load_wedding_ref(store, weddingId)
    authorize(principal, Action.READ, ChildRef(wedding, ChildKind.EVENT))
    return {"success": True, "events": service.list_events(weddingId, is_wedding_admin(principal, wedding))}


@router.post("", response_model=EventEnvelope, status_code=201)
async def create_event(
    event_data: EventCreate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: EventService = Depends(get_event_service)
):
    """Add an event (owner or co-admin)"""
    wedding = load_wedding_ref(store, event_data.weddingId)
    authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.EVENT),
              "Only wedding admins can add events")
    event = service.create_event(event_data, principal)
    return {"success": True, "message": "Event created successfully", "event": event}


@router.put("", response_model=EventEnvelope)
async def update_event(
    event_data: EventUpdate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: EventService = Depends(get_event_service)
):
    """Edit an event"""
    event = load_row(store, TABLE, event_data.eventId, "Event")
    wedding = load_wedding_ref(store, event["wedding_id"])
    authorize(principal, Action.UPDATE_OWN, EventRef.from_row(event, wedding))
    event = service.update_event(event, event_data)
    return {"success": True, "message": "Event updated successfully", "event": event}


@router.delete("")
async def delete_event(
    eventId: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: EventService = Depends(get_event_service)
):
    """Delete an event"""
    event = load_row(store, TABLE, eventId, "Event")
    wedding = load_wedding_ref(store, event["wedding_id"])
    authorize(principal, Action.DELETE, EventRef.from_row(event, wedding))
    service.delete_event(eventId)
    return {"success": True, "message": "Event deleted successfully"}
