from app.core.errors import Conflict, Invalid, NotFound
from app.core.policy import Principal, Role, WeddingRef, is_wedding_admin
from app.database.supabase_client import SupabaseStore, contains, eq, in_
from app.integrations.email_service import EmailSender
from app.modules.guests.service import GuestService
from app.modules.invitations.schemas import InvitationRole
from app.modules.invitations.service import InvitationService
from app.modules.users.service import UserService
from app.modules.weddings.schemas import WeddingCreate, WeddingPublicResponse, WeddingStatus, WeddingUpdate
from app.modules.weddings.subdomains import generate_subdomain, generate_wedding_code, validate_subdomain
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

TABLE = "weddings"
PUBLIC_FIELDS = tuple(WeddingPublicResponse.model_fields)


def public_view(wedding: Dict[str, Any]) -> Dict[str, Any]:
    return {key: wedding.get(key) for key in PUBLIC_FIELDS}


class WeddingService:
    def __init__(self, store: SupabaseStore, invitations: InvitationService, email_sender: EmailSender):
        self.store = store
        self.invitations = invitations
        self.email_sender = email_sender
        self.users = UserService(store)

    def list_weddings(self, principal: Principal, status: Optional[WeddingStatus] = None) -> List[Dict[str, Any]]:
        """Weddings visible to the principal, scoped by role"""
        filters = []
        if principal.role is Role.SUPER_ADMIN:
            filters.append(eq("super_admin_id", principal.id))
        elif principal.role is Role.ADMIN:
            filters.append(contains("wedding_admin_ids", principal.id))
        elif principal.role is Role.GUEST:
            wedding_ids = GuestService(self.store, self.invitations).wedding_ids_for(principal)
            if not wedding_ids:
                return []
            filters.append(in_("id", wedding_ids))
        if status is not None:
            filters.append(eq("status", status.value))
        rows = self.store.get(TABLE, filters, order="date", desc=False)
        return [row if self._sees_full_row(principal, row) else public_view(row) for row in rows]

    @staticmethod
    def _sees_full_row(principal: Principal, wedding: Dict[str, Any]) -> bool:
        return principal.role is Role.APPLICATION_ADMIN or is_wedding_admin(principal, WeddingRef.from_row(wedding))

    def get_by_code(self, code: str) -> Dict[str, Any]:
        """Look up a joinable wedding by its guest code; archived weddings no longer take guests."""
        wedding = self.store.get(TABLE, [eq("code", code.strip().upper())], single=True)
        if not wedding or wedding.get("status") == WeddingStatus.ARCHIVED.value:
            raise Invalid("Invalid wedding code")
        return wedding

    def join_by_code(self, code: str, principal: Principal, name: Optional[str] = None) -> Dict[str, Any]:
        wedding = self.get_by_code(code)
        row = GuestService(self.store, self.invitations).join_by_code(wedding, principal, name)
        return {"wedding": public_view(wedding), "guest": row}

    def _ensure_subdomain_available(self, subdomain: str, exclude_id: Optional[str] = None) -> None:
        error = validate_subdomain(subdomain)
        if error:
            raise Invalid(error)
        taken = [w for w in self.store.get(TABLE, [eq("subdomain", subdomain)], columns="id") if w["id"] != exclude_id]
        if taken:
            raise Conflict("This subdomain is already taken")

    def check_subdomain(self, subdomain: str, exclude_id: Optional[str] = None) -> None:
        self._ensure_subdomain_available(subdomain.lower(), exclude_id)

    def _unique_subdomain(self, name: str) -> str:
        for _ in range(5):
            candidate = generate_subdomain(name)
            if validate_subdomain(candidate) is None and not self.store.get(TABLE, [eq("subdomain", candidate)], columns="id"):
                return candidate
        raise Conflict("Could not allocate a unique subdomain")

    def create_wedding(self, data: WeddingCreate, principal: Principal) -> Dict[str, Any]:
        """
        Create a wedding owned by the principal.

        When adminEmail names an existing user, they join wedding_admin_ids
        straight away; otherwise an admin invitation is issued. Each follow-up
        step is best-effort and never undoes the wedding insert.
        """
        if data.subdomain:
            subdomain = data.subdomain.lower()
            self._ensure_subdomain_available(subdomain)
        else:
            subdomain = self._unique_subdomain(data.name)

        now = datetime.now(timezone.utc).isoformat()
        wedding = self.store.insert(TABLE, {
            "name": data.name,
            "date": data.date.isoformat(),
            "location": data.location,
            "description": data.description,
            "code": generate_wedding_code(data.name),
            "subdomain": subdomain,
            "status": WeddingStatus.DRAFT.value,
            "super_admin_id": principal.id,
            "wedding_admin_ids": [],
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Wedding {wedding['id']} created by {principal.id}")

        if data.adminEmail:
            wedding = self._attach_admin(wedding, data.adminEmail.lower(), principal)
        return wedding

    def _attach_admin(self, wedding: Dict[str, Any], admin_email: str, principal: Principal) -> Dict[str, Any]:
        existing = self.users.get_user_by_email(admin_email)
        if existing is None:
            try:
                self.invitations.create_invitation(wedding["id"], admin_email, InvitationRole.ADMIN, invited_by=principal.id)
            except Conflict:
                logger.info(f"Admin invitation for {admin_email} already pending on wedding {wedding['id']}")
            return wedding

        admin_ids = list(wedding.get("wedding_admin_ids") or [])
        if existing["id"] not in admin_ids:
            rows = self.store.update(TABLE, [eq("id", wedding["id"])], {
                "wedding_admin_ids": admin_ids + [existing["id"]],
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })
            if rows:
                wedding = rows[0]
        # The co-admin tier requires the admin role
        if existing.get("role") == Role.GUEST.value:
            self.users.set_role(existing["id"], Role.ADMIN)

        if not self.email_sender.send_admin_invitation(admin_email, wedding, admin_name=existing.get("name") or admin_email):
            logger.warning(f"Admin notification to {admin_email} for wedding {wedding['id']} was not delivered")
        return wedding

    def get_wedding(self, wedding: Dict[str, Any], principal: Principal) -> Dict[str, Any]:
        """Full row with counts for managers and application admins, public fields for everyone else"""
        if not self._sees_full_row(principal, wedding):
            return public_view(wedding)
        guests = self.store.get("wedding_guests", [eq("wedding_id", wedding["id"])], columns="id")
        media = self.store.get("media", [eq("wedding_id", wedding["id"])], columns="id")
        return {**wedding, "guestCount": len(guests), "photoCount": len(media)}

    def get_by_subdomain(self, subdomain: str) -> Dict[str, Any]:
        wedding = self.store.get(TABLE, [eq("subdomain", subdomain.lower())], single=True)
        if not wedding:
            raise NotFound("Wedding not found")
        return wedding

    def update_wedding(self, wedding_id: str, data: WeddingUpdate) -> Dict[str, Any]:
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "date" in update_data:
            update_data["date"] = update_data["date"].isoformat()
        if "status" in update_data:
            update_data["status"] = update_data["status"].value
        if "subdomain" in update_data:
            update_data["subdomain"] = update_data["subdomain"].lower()
            self._ensure_subdomain_available(update_data["subdomain"], exclude_id=wedding_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        rows = self.store.update(TABLE, [eq("id", wedding_id)], update_data)
        if not rows:
            raise NotFound("Wedding not found")
        return rows[0]

    def delete_wedding(self, wedding_id: str, media_storage=None) -> bool:
        """Delete the wedding; child rows cascade, stored media objects are removed best-effort"""
        media = self.store.get("media", [eq("wedding_id", wedding_id)], columns="id,storage_path")
        deleted = self.store.delete(TABLE, [eq("id", wedding_id)]) > 0
        if deleted and media_storage is not None:
            for item in media:
                if item.get("storage_path") and not media_storage.delete(item["storage_path"]):
                    logger.warning(f"Stored object {item['storage_path']} left behind after deleting wedding {wedding_id}")
        return deleted
