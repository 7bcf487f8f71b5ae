"""
Identity provider collaborator (Supabase Auth).

Supabase Auth provides:
- auth.get_user(jwt) - exchange an access token for the verified user
- auth.sign_in_with_password() - password login, returns a session
- auth.sign_up() - self-service registration
- auth.admin.create_user() / delete_user() - provisioning with the service role key
"""

from dataclasses import dataclass
from typing import Optional
from supabase import Client
from app.database.supabase_client import SupabaseClient
import logging

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Any failure reported by (or while talking to) the identity provider."""

    @property
    def already_registered(self) -> bool:
        text = str(self).lower()
        return "already registered" in text or "already exists" in text


@dataclass(frozen=True)
class ProviderUser:
    provider_user_id: str
    email: str


@dataclass(frozen=True)
class ProviderSession:
    user: ProviderUser
    access_token: Optional[str]


def _to_provider_user(user, fallback_email: str = "") -> ProviderUser:
    return ProviderUser(provider_user_id=str(user.id), email=user.email or fallback_email)


class IdentityProvider:
    def __init__(self, client: Client, admin_client: Optional[Client] = None):
        self.client = client
        self.admin_client = admin_client or client

    def exchange(self, token: str) -> ProviderUser:
        """Verify an opaque access token and return the provider's user."""
        try:
            response = self.client.auth.get_user(jwt=token)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        if not response or not response.user:
            raise IdentityProviderError("Invalid or expired token")
        return _to_provider_user(response.user)

    def sign_in(self, email: str, password: str) -> ProviderSession:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        if not response.user or not response.session:
            raise IdentityProviderError("Invalid credentials")
        return ProviderSession(
            user=_to_provider_user(response.user, email),
            access_token=response.session.access_token,
        )

    def sign_up(self, email: str, password: str, name: str) -> ProviderSession:
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name}},
            })
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        if not response.user:
            raise IdentityProviderError("Failed to register user")
        # Projects with email confirmation enabled return no session here
        token = response.session.access_token if response.session else None
        return ProviderSession(user=_to_provider_user(response.user, email), access_token=token)

    def create_user(self, email: str, password: str, name: str) -> ProviderUser:
        """Admin-provisioned account, email pre-confirmed. Needs the service role key."""
        try:
            response = self.admin_client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"name": name},
            })
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        if not response.user:
            raise IdentityProviderError("Failed to create user account")
        return _to_provider_user(response.user, email)

    def delete_user(self, provider_user_id: str) -> bool:
        try:
            self.admin_client.auth.admin.delete_user(provider_user_id)
            return True
        except Exception as e:
            logger.error(f"Failed to delete provider user {provider_user_id}: {e}")
            return False

    def sign_out(self) -> None:
        # Access tokens are stateless JWTs; this only clears the client-side session
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.warning(f"Provider sign-out failed: {e}")


def get_identity_provider() -> IdentityProvider:
    return IdentityProvider(SupabaseClient.get_client(), SupabaseClient.get_service_client())
