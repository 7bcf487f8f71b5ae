from app.core.errors import Unavailable
from app.core.policy import Role
from app.database.supabase_client import SupabaseStore, eq
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: SupabaseStore):
        self.store = store

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get("users", [eq("id", user_id)], single=True)

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.store.get("users", [eq("email", email.lower())], single=True)

    def create_user(self, user_id: str, email: str, name: str, role: Role) -> Dict[str, Any]:
        """Insert the users row. A duplicate-email collision reuses the existing row."""
        try:
            return self.store.insert("users", {
                "id": user_id,
                "email": email.lower(),
                "name": name,
                "role": role.value,
            })
        except Unavailable:
            existing = self.get_user_by_email(email)
            if existing:
                logger.warning(f"users row for {email} already existed; reusing id {existing['id']}")
                return existing
            raise

    def set_role(self, user_id: str, role: Role) -> Optional[Dict[str, Any]]:
        rows = self.store.update("users", [eq("id", user_id)], {
            "role": role.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })
        return rows[0] if rows else None

    def list_users_by_role(self, role: Role) -> List[Dict[str, Any]]:
        return self.store.get("users", [eq("role", role.value)], order="created_at", desc=True)

    def delete_user(self, user_id: str) -> bool:
        return self.store.delete("users", [eq("id", user_id)]) > 0
