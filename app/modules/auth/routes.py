from fastapi import APIRouter, Depends, Response
from app.config import settings
from app.core.dependencies import get_optional_principal
from app.core.policy import Principal
from app.database.supabase_client import SupabaseStore, get_store
from app.integrations.email_service import EmailSender, get_email_sender
from app.integrations.identity import IdentityProvider, get_identity_provider
from app.modules.auth.schemas import LoginRequest, SignupRequest, SessionEnvelope
from app.modules.auth.service import AuthService
from app.modules.invitations.routes import get_invitation_service
from app.modules.invitations.service import InvitationService
from typing import Any, Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    store: SupabaseStore = Depends(get_store),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    invitations: InvitationService = Depends(get_invitation_service),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(store, identity_provider, invitations, email_sender)


def _session_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": user["id"], "email": user["email"], "name": user.get("name"), "role": user["role"]}


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.post("/login", response_model=SessionEnvelope)
async def login(
    login_data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Login and store the access token in the session cookie"""
    user, token = service.login(login_data)
    set_session_cookie(response, token)
    return {"success": True, "message": "Login successful", "user": _session_user(user)}


@router.post("/logout", response_model=SessionEnvelope)
async def logout(
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Clear the session cookie"""
    service.logout()
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True, "message": "Logged out successfully"}


@router.post("/signup", response_model=SessionEnvelope, status_code=201)
async def signup(
    signup_data: SignupRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new account, accepting any invitations sent to its email"""
    user, token = service.signup(signup_data)
    if token:
        set_session_cookie(response, token)
    return {"success": True, "message": "Account created successfully", "user": _session_user(user)}


@router.get("/session", response_model=SessionEnvelope)
async def get_session(principal: Optional[Principal] = Depends(get_optional_principal)):
    """Current principal, or user=null when unauthenticated"""
    if principal is None:
        return {"success": True, "user": None}
    return {"success": True, "user": principal.to_dict()}
