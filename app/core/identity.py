"""
Identity resolution: session credential -> Principal, or None when unauthenticated.

The session cookie carries one of two shapes:
- inline: a JSON object {id, email, name, role}, used for short-lived dev sessions
- opaque: an identity-provider access token, exchanged for a user id and
  joined against the users table for the role

The shape is decided once by parse_credential(); resolution then dispatches on it.
"""

from dataclasses import dataclass
from typing import Optional, Union
import json
import logging

from app.core.errors import AppError
from app.core.policy import Principal, Role
from app.database.supabase_client import eq
from app.integrations.identity import IdentityProvider, IdentityProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InlineCredential:
    principal: Principal


@dataclass(frozen=True)
class OpaqueCredential:
    token: str


SessionCredential = Union[InlineCredential, OpaqueCredential]


def _parse_role(value) -> Optional[Role]:
    try:
        return Role(value)
    except ValueError:
        return None


def _parse_inline(raw: str) -> Optional[InlineCredential]:
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    user_id, email, role = payload.get("id"), payload.get("email"), _parse_role(payload.get("role"))
    if not isinstance(user_id, str) or not user_id or not isinstance(email, str) or role is None:
        return None
    name = payload.get("name")
    return InlineCredential(Principal(id=user_id, email=email, role=role, name=name if isinstance(name, str) else None))


def parse_credential(raw: Optional[str]) -> Optional[SessionCredential]:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    if raw.startswith("{"):
        return _parse_inline(raw)
    if any(ch.isspace() for ch in raw):
        return None
    return OpaqueCredential(raw)


def encode_inline_credential(principal: Principal) -> str:
    return json.dumps(principal.to_dict(), separators=(",", ":"))


class IdentityResolver:
    def __init__(self, store, identity_provider: IdentityProvider, allow_inline: bool = True):
        self.store = store
        self.identity_provider = identity_provider
        self.allow_inline = allow_inline

    def resolve(self, raw_credential: Optional[str]) -> Optional[Principal]:
        """Never raises: every failure is reported as None (unauthenticated)."""
        credential = parse_credential(raw_credential)
        if isinstance(credential, InlineCredential):
            if not self.allow_inline:
                logger.info("Inline session credential rejected: inline sessions are disabled")
                return None
            return credential.principal
        if isinstance(credential, OpaqueCredential):
            return self._resolve_token(credential.token)
        return None

    def _resolve_token(self, token: str) -> Optional[Principal]:
        try:
            provider_user = self.identity_provider.exchange(token)
        except IdentityProviderError as e:
            logger.info(f"Token exchange failed: {e}")
            return None

        try:
            row = self.store.get("users", [eq("id", provider_user.provider_user_id)], single=True)
        except AppError as e:
            logger.error(f"User lookup failed for {provider_user.provider_user_id}: {e.message}")
            return None
        if not row:
            # Authenticated at the provider but unknown here: no default role is assumed
            logger.warning(f"No users row for provider user {provider_user.provider_user_id}")
            return None

        role = _parse_role(row.get("role"))
        if role is None:
            logger.warning(f"User {row.get('id')} has unknown role {row.get('role')!r}")
            return None
        return Principal(
            id=row["id"],
            email=row.get("email") or provider_user.email,
            role=role,
            name=row.get("name"),
        )
