from app.core.errors import Conflict, Invalid, Unauthenticated
from app.core.policy import Role
from app.database.supabase_client import SupabaseStore, eq
from app.integrations.email_service import EmailSender
from app.integrations.identity import IdentityProvider, IdentityProviderError
from app.modules.auth.schemas import LoginRequest, SignupRequest
from app.modules.invitations.schemas import InvitationRole, InvitationStatus
from app.modules.invitations.service import InvitationService, TABLE as INVITATIONS_TABLE
from app.modules.users.service import UserService
from typing import Any, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        store: SupabaseStore,
        identity_provider: IdentityProvider,
        invitations: InvitationService,
        email_sender: EmailSender,
    ):
        self.store = store
        self.identity_provider = identity_provider
        self.invitations = invitations
        self.email_sender = email_sender
        self.users = UserService(store)

    def login(self, login_data: LoginRequest) -> Tuple[Dict[str, Any], str]:
        """Authenticate with the provider; returns the users row and the access token"""
        try:
            session = self.identity_provider.sign_in(login_data.email, login_data.password)
        except IdentityProviderError as e:
            logger.info(f"Login failed for {login_data.email}: {e}")
            raise Unauthenticated("Invalid email or password")

        user = self.users.get_user_by_id(session.user.provider_user_id)
        if not user:
            raise Unauthenticated("User profile not found")

        self.invitations.accept_pending_for(user)
        return user, session.access_token

    def _has_pending_admin_invitation(self, email: str) -> bool:
        rows = self.store.get(INVITATIONS_TABLE, [
            eq("email", email),
            eq("role", InvitationRole.ADMIN.value),
            eq("status", InvitationStatus.PENDING.value),
        ])
        return any(not self.invitations.is_expired(row) for row in rows)

    def signup(self, data: SignupRequest) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Register an account and accept any invitations addressed to its email.

        The role is admin when a live admin invitation is waiting, guest otherwise.
        Returns the users row and the access token (None while email
        confirmation is pending at the provider).
        """
        email = data.email.lower()
        if self.users.get_user_by_email(email):
            raise Conflict("User already exists")

        try:
            session = self.identity_provider.sign_up(email, data.password, data.name)
        except IdentityProviderError as e:
            if not e.already_registered:
                raise Invalid(f"Registration failed: {e}")
            # Provider account left over from an earlier partial signup
            try:
                session = self.identity_provider.sign_in(email, data.password)
            except IdentityProviderError:
                raise Conflict("User already exists")

        role = Role.ADMIN if self._has_pending_admin_invitation(email) else Role.GUEST
        user = self.users.create_user(session.user.provider_user_id, email, data.name, role)
        logger.info(f"Registered {email} as {role.value}")

        accepted = self.invitations.accept_pending_for(user)
        if data.weddingId and not any(i["wedding_id"] == data.weddingId for i in accepted):
            logger.info(f"Signup for {email} referenced wedding {data.weddingId} without a live invitation")

        if not self.email_sender.send_welcome(email, data.name):
            logger.warning(f"Welcome email to {email} was not delivered")
        return user, session.access_token

    def logout(self) -> None:
        self.identity_provider.sign_out()
