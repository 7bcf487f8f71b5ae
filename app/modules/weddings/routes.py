from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_principal, load_wedding
from app.core.errors import Forbidden
from app.core.policy import Action, Principal, Role, WeddingRef, authorize
from app.database.supabase_client import SupabaseStore, get_store
from app.integrations.email_service import EmailSender, get_email_sender
from app.integrations.media_storage import get_media_storage
from app.modules.invitations.routes import get_invitation_service
from app.modules.invitations.service import InvitationService
from app.modules.weddings.schemas import (
    WeddingCreate, WeddingUpdate, WeddingEnvelope, WeddingJoin, WeddingJoinEnvelope, WeddingListEnvelope, WeddingStatus
)
from app.modules.weddings.service import WeddingService, public_view
from typing import Optional

router = APIRouter(prefix="/weddings", tags=["weddings"])


def get_wedding_service(
    store: SupabaseStore = Depends(get_store),
    invitations: InvitationService = Depends(get_invitation_service),
    email_sender: EmailSender = Depends(get_email_sender),
) -> WeddingService:
    return WeddingService(store, invitations, email_sender)


@router.get("", response_model=WeddingListEnvelope, response_model_exclude_unset=True)
async def list_weddings(
    status: Optional[WeddingStatus] = None,
    principal: Principal = Depends(get_current_principal),
    service: WeddingService = Depends(get_wedding_service)
):
    """List weddings scoped by role; weddings the principal does not manage show public fields only"""
    return {"success": True, "weddings": service.list_weddings(principal, status)}


@router.post("", response_model=WeddingEnvelope, status_code=201)
async def create_wedding(
    wedding_data: WeddingCreate,
    principal: Principal = Depends(get_current_principal),
    service: WeddingService = Depends(get_wedding_service)
):
    """Create a wedding (super admins and admins)"""
    if principal.role not in (Role.SUPER_ADMIN, Role.ADMIN):
        raise Forbidden("Only Super Admins and Admins can create weddings")
    wedding = service.create_wedding(wedding_data, principal)
    return {"success": True, "message": "Wedding created successfully", "wedding": wedding}


@router.get("/validate-subdomain")
async def validate_subdomain(
    subdomain: str,
    exclude: Optional[str] = None,
    service: WeddingService = Depends(get_wedding_service)
):
    """Check a subdomain's format and availability"""
    service.check_subdomain(subdomain, exclude_id=exclude)
    return {"success": True, "message": "Subdomain is available"}


@router.post("/join", response_model=WeddingJoinEnvelope)
async def join_wedding(
    join_data: WeddingJoin,
    principal: Principal = Depends(get_current_principal),
    service: WeddingService = Depends(get_wedding_service)
):
    """Join a wedding's guest list with its wedding code"""
    joined = service.join_by_code(join_data.code, principal, join_data.name)
    return {"success": True, "message": "Joined wedding successfully", **joined}


@router.get("/subdomain/{subdomain}")
async def get_wedding_by_subdomain(
    subdomain: str,
    service: WeddingService = Depends(get_wedding_service)
):
    """Public wedding details for a wedding site"""
    return {"success": True, "wedding": public_view(service.get_by_subdomain(subdomain))}


@router.get("/{wedding_id}")
async def get_wedding(
    wedding_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: WeddingService = Depends(get_wedding_service)
):
    """Get wedding by ID; guests receive public fields only"""
    wedding = load_wedding(store, wedding_id)
    authorize(principal, Action.READ, WeddingRef.from_row(wedding))
    return {"success": True, "wedding": service.get_wedding(wedding, principal)}


@router.put("/{wedding_id}", response_model=WeddingEnvelope)
async def update_wedding(
    wedding_id: str,
    wedding_data: WeddingUpdate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: WeddingService = Depends(get_wedding_service)
):
    """Update wedding details (owner or co-admin)"""
    wedding = load_wedding(store, wedding_id)
    authorize(principal, Action.UPDATE_ANY, WeddingRef.from_row(wedding))
    return {"success": True, "message": "Wedding updated successfully", "wedding": service.update_wedding(wedding_id, wedding_data)}


@router.delete("/{wedding_id}")
async def delete_wedding(
    wedding_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: WeddingService = Depends(get_wedding_service),
    media_storage=Depends(get_media_storage)
):
    """Delete a wedding (owner only)"""
    wedding = load_wedding(store, wedding_id)
    authorize(principal, Action.DELETE, WeddingRef.from_row(wedding), "Only the wedding owner can delete it")
    service.delete_wedding(wedding_id, media_storage)
    return {"success": True, "message": "Wedding deleted successfully"}
