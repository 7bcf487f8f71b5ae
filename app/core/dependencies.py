"""
Core dependencies for route protection and resource loading.

Every handler follows the same order: resolve the principal (401), load the
target or its parent wedding (404), authorize through core.policy (403),
and only then touch the data.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Any, Dict, Optional
import logging

from app.config import settings
from app.core.errors import NotFound, Unauthenticated
from app.core.identity import IdentityResolver
from app.core.policy import Principal, WeddingRef
from app.database.supabase_client import SupabaseStore, get_store, eq
from app.integrations.identity import IdentityProvider, get_identity_provider

logger = logging.getLogger(__name__)

# Cookie is the primary carrier; a Bearer header is accepted for API clients
bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_resolver(
    store: SupabaseStore = Depends(get_store),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> IdentityResolver:
    return IdentityResolver(store, identity_provider, allow_inline=settings.inline_sessions_enabled)


def get_raw_credential(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    cookie = request.cookies.get(settings.session_cookie_name)
    if cookie:
        return cookie
    if credentials:
        return credentials.credentials
    return None


def get_optional_principal(
    raw_credential: Optional[str] = Depends(get_raw_credential),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Optional[Principal]:
    return resolver.resolve(raw_credential)


def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise Unauthenticated()
    return principal


def load_wedding(store: SupabaseStore, wedding_id: str) -> Dict[str, Any]:
    """Fetch a wedding row or raise NotFound."""
    wedding = store.get("weddings", [eq("id", wedding_id)], single=True)
    if not wedding:
        raise NotFound("Wedding not found")
    return wedding


def load_wedding_ref(store: SupabaseStore, wedding_id: str) -> WeddingRef:
    return WeddingRef.from_row(load_wedding(store, wedding_id))


def load_row(store: SupabaseStore, table: str, row_id: str, label: str) -> Dict[str, Any]:
    row = store.get(table, [eq("id", row_id)], single=True)
    if not row:
        raise NotFound(f"{label} not found")
    return row
