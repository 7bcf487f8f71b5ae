from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_principal
from app.core.errors import Forbidden
from app.core.policy import Principal, Role
from app.database.supabase_client import SupabaseStore, get_store
from app.integrations.email_service import EmailSender, get_email_sender
from app.integrations.identity import IdentityProvider, get_identity_provider
from app.modules.admin.schemas import (
    ApplicationEnvelope, ApplicationListEnvelope, ApplicationReview, ApplicationStatus,
    SuperAdminApplicationCreate, SuperAdminCreate, SuperAdminEnvelope, SuperAdminListEnvelope
)
from app.modules.admin.service import AdminService, ApplicationService
from typing import Optional

router = APIRouter(prefix="/admin", tags=["admin"])
applications_router = APIRouter(prefix="/applications", tags=["applications"])


def get_admin_service(
    store: SupabaseStore = Depends(get_store),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AdminService:
    return AdminService(store, identity_provider, email_sender)


def get_application_service(
    store: SupabaseStore = Depends(get_store),
    admins: AdminService = Depends(get_admin_service),
) -> ApplicationService:
    return ApplicationService(store, admins)


def require_application_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role is not Role.APPLICATION_ADMIN:
        raise Forbidden("Application admin access required")
    return principal


@router.get("/super-admins", response_model=SuperAdminListEnvelope)
async def list_super_admins(
    principal: Principal = Depends(require_application_admin),
    service: AdminService = Depends(get_admin_service)
):
    """List super admins with their usage"""
    return {"success": True, "superAdmins": service.list_super_admins()}


@router.post("/super-admins", response_model=SuperAdminEnvelope, status_code=201)
async def create_super_admin(
    data: SuperAdminCreate,
    principal: Principal = Depends(require_application_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Provision a super admin account"""
    user = service.create_super_admin(data)
    return {"success": True, "message": "Super admin created successfully", "user": user}


@router.delete("/super-admins/{user_id}")
async def delete_super_admin(
    user_id: str,
    principal: Principal = Depends(require_application_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Remove a super admin that no longer owns any wedding"""
    service.delete_super_admin(user_id)
    return {"success": True, "message": "Super admin deleted successfully"}


@applications_router.post("", response_model=ApplicationEnvelope, status_code=201)
async def submit_application(
    data: SuperAdminApplicationCreate,
    service: ApplicationService = Depends(get_application_service)
):
    """Apply to become a super admin; no account needed"""
    application = service.submit(data)
    return {"success": True, "message": "Application submitted successfully", "application": application}


@applications_router.get("", response_model=ApplicationListEnvelope)
async def list_applications(
    status: Optional[ApplicationStatus] = None,
    principal: Principal = Depends(require_application_admin),
    service: ApplicationService = Depends(get_application_service)
):
    """List applications, newest first"""
    return {"success": True, "applications": service.list_applications(status)}


@applications_router.post("/{application_id}/approve", response_model=ApplicationEnvelope)
async def review_application(
    application_id: str,
    review: ApplicationReview,
    principal: Principal = Depends(require_application_admin),
    service: ApplicationService = Depends(get_application_service)
):
    """Approve (provisioning the super admin) or reject a pending application"""
    application = service.review(application_id, review, principal.id)
    return {"success": True, "message": f"Application {review.status.value}", "application": application}
