from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_principal, load_row, load_wedding_ref
from app.core.policy import Action, ChildKind, ChildRef, GuestRef, Principal, authorize, can
from app.database.supabase_client import SupabaseStore, get_store
from app.modules.guests.schemas import GuestEnvelope, GuestInvite, GuestListEnvelope, GuestUpdate
from app.modules.guests.service import GuestService, TABLE
from app.modules.invitations.routes import get_invitation_service
from app.modules.invitations.service import InvitationService

router = APIRouter(prefix="/guests", tags=["guests"])


def get_guest_service(
    store: SupabaseStore = Depends(get_store),
    invitations: InvitationService = Depends(get_invitation_service),
) -> GuestService:
    return GuestService(store, invitations)


@router.get("", response_model=GuestListEnvelope)
async def list_guests(
    weddingId: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: GuestService = Depends(get_guest_service)
):
    """Guest list for admins; a guest only sees their own RSVP rows"""
    wedding = load_wedding_ref(store, weddingId)
    rows = service.list_guests(weddingId)
    if not can(principal, Action.READ, ChildRef(wedding, ChildKind.GUEST_INVITATION)):
        rows = [r for r in rows if can(principal, Action.READ, GuestRef.from_row(r, wedding))]
    return {"success": True, "guests": rows}


@router.post("", response_model=GuestEnvelope, status_code=201)
async def invite_guest(
    guest_data: GuestInvite,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: GuestService = Depends(get_guest_service)
):
    """Add a guest to the list and send their invitation (owner or co-admin)"""
    wedding = load_wedding_ref(store, guest_data.weddingId)
    authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.GUEST_INVITATION),
              "Only wedding admins can invite guests")
    return {"success": True, "invitation": service.invite_guest(guest_data, principal)}


@router.put("", response_model=GuestEnvelope)
async def update_rsvp(
    guest_data: GuestUpdate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: GuestService = Depends(get_guest_service)
):
    """Update an RSVP (the guest themselves, or wedding admins)"""
    row = load_row(store, TABLE, guest_data.invitationId, "Invitation")
    wedding = load_wedding_ref(store, row["wedding_id"])
    authorize(principal, Action.UPDATE_OWN, GuestRef.from_row(row, wedding))
    return {"success": True, "invitation": service.update_rsvp(row["id"], guest_data) or row}


@router.delete("")
async def delete_guest(
    invitationId: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: GuestService = Depends(get_guest_service)
):
    """Remove a guest from the list (owner or co-admin)"""
    row = load_row(store, TABLE, invitationId, "Invitation")
    wedding = load_wedding_ref(store, row["wedding_id"])
    authorize(principal, Action.DELETE, GuestRef.from_row(row, wedding))
    service.delete_guest(row)
    return {"success": True, "message": "Guest removed successfully"}
