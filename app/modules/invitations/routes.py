from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_principal, load_row, load_wedding_ref
from app.core.errors import NotFound
from app.core.policy import Action, ChildKind, ChildRef, InvitationRef, Principal, authorize
from app.database.supabase_client import SupabaseStore, get_store
from app.integrations.email_service import EmailSender, get_email_sender
from app.modules.guests.schemas import GuestInvite
from app.modules.guests.service import GuestService
from app.modules.invitations.schemas import (
    InvitationAccept, InvitationCreate, InvitationEnvelope, InvitationListEnvelope, InvitationRole
)
from app.modules.invitations.service import InvitationService, TABLE
from app.modules.users.service import UserService
from datetime import timedelta

router = APIRouter(tags=["invitations"])


def get_invitation_service(
    store: SupabaseStore = Depends(get_store),
    email_sender: EmailSender = Depends(get_email_sender),
) -> InvitationService:
    return InvitationService(store, email_sender)


@router.post("/weddings/{wedding_id}/invitations", response_model=InvitationEnvelope, status_code=201)
async def create_invitation(
    wedding_id: str,
    data: InvitationCreate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: InvitationService = Depends(get_invitation_service),
):
    """Invite an email to a wedding as co-admin (owner only) or guest (owner or co-admin)"""
    wedding = load_wedding_ref(store, wedding_id)
    ttl = timedelta(hours=data.ttl_hours) if data.ttl_hours else None

    if data.role is InvitationRole.ADMIN:
        authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.ADMIN_INVITATION),
                  "Only the wedding owner can invite admins")
        invitation = service.create_invitation(wedding_id, data.email, InvitationRole.ADMIN, principal.id, ttl=ttl)
        return {"success": True, "invitation": invitation}

    authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.GUEST_INVITATION),
              "Only wedding admins can invite guests")
    guests = GuestService(store, service)
    guests.invite_guest(GuestInvite(weddingId=wedding_id, guestEmail=data.email, guestName=data.guest_name), principal)
    matching = [i for i in service.list_invitations(wedding_id) if i["email"] == data.email.lower()]
    if not matching:
        raise NotFound("Invitation not found")
    return {"success": True, "invitation": matching[0]}


@router.get("/weddings/{wedding_id}/invitations", response_model=InvitationListEnvelope)
async def list_invitations(
    wedding_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: InvitationService = Depends(get_invitation_service),
):
    """List a wedding's invitations, expiring overdue ones first"""
    wedding = load_wedding_ref(store, wedding_id)
    authorize(principal, Action.READ, ChildRef(wedding, ChildKind.GUEST_INVITATION))
    return {"success": True, "invitations": service.list_invitations(wedding_id)}


@router.delete("/weddings/{wedding_id}/invitations/{invitation_id}")
async def delete_invitation(
    wedding_id: str,
    invitation_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: InvitationService = Depends(get_invitation_service),
):
    """Withdraw an invitation"""
    wedding = load_wedding_ref(store, wedding_id)
    row = load_row(store, TABLE, invitation_id, "Invitation")
    if row["wedding_id"] != wedding_id:
        raise NotFound("Invitation not found")
    authorize(principal, Action.DELETE, InvitationRef.from_row(row, wedding))
    service.delete_invitation(invitation_id)
    return {"success": True, "message": "Invitation deleted"}


@router.post("/invitations/accept", response_model=InvitationEnvelope)
async def accept_invitation(
    data: InvitationAccept,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: InvitationService = Depends(get_invitation_service),
):
    """Accept the caller's invitation to a wedding"""
    user = UserService(store).get_user_by_id(principal.id) or principal.to_dict()
    invitation = service.accept_invitation(principal.email, data.weddingId, user)
    return {"success": True, "invitation": invitation}
