from app.core.errors import Conflict
from app.core.policy import Principal
from app.database.supabase_client import SupabaseStore, eq
from app.modules.guests.schemas import GuestInvite, GuestUpdate
from app.modules.invitations.schemas import InvitationRole, InvitationStatus
from app.modules.invitations.service import TABLE as INVITATIONS_TABLE, InvitationService
from app.modules.users.service import UserService
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

TABLE = "wedding_guests"


class GuestService:
    def __init__(self, store: SupabaseStore, invitations: InvitationService):
        self.store = store
        self.invitations = invitations
        self.users = UserService(store)

    def list_guests(self, wedding_id: str) -> List[Dict[str, Any]]:
        return self.store.get(TABLE, [eq("wedding_id", wedding_id)], order="invited_at", desc=True)

    def invite_guest(self, data: GuestInvite, principal: Principal) -> Dict[str, Any]:
        """Add the guest-list row, then issue the guest invitation (which sends the email)."""
        guest_email = data.guestEmail.lower()
        existing = self.store.get(TABLE, [eq("wedding_id", data.weddingId), eq("guest_email", guest_email)])
        if existing:
            raise Conflict("Guest already invited to this wedding")

        user = self.users.get_user_by_email(guest_email)
        row = self.store.insert(TABLE, {
            "wedding_id": data.weddingId,
            "guest_id": user["id"] if user else None,
            "guest_name": data.guestName,
            "guest_email": guest_email,
            "invited_by": principal.id,
            "plus_one": data.plusOne,
            "plus_one_name": data.plusOneName,
            "rsvp_status": "pending",
            "invited_at": datetime.now(timezone.utc).isoformat(),
        })

        try:
            self.invitations.create_invitation(
                data.weddingId,
                guest_email,
                InvitationRole.GUEST,
                invited_by=principal.id,
                guest_name=data.guestName,
                guest_row_id=row["id"],
            )
        except Conflict:
            # A live guest invitation already exists; the guest-list row is still valid
            logger.info(f"Guest invitation for {guest_email} on wedding {data.weddingId} already pending")
        return row

    def update_rsvp(self, guest_id: str, data: GuestUpdate) -> Dict[str, Any]:
        update_data = {}
        if data.rsvpStatus is not None:
            update_data["rsvp_status"] = data.rsvpStatus.value
            update_data["responded_at"] = datetime.now(timezone.utc).isoformat()
        if data.dietaryRestrictions is not None:
            update_data["dietary_restrictions"] = data.dietaryRestrictions
        if data.plusOneName is not None:
            update_data["plus_one_name"] = data.plusOneName
        if not update_data:
            return self.store.get(TABLE, [eq("id", guest_id)], single=True)
        rows = self.store.update(TABLE, [eq("id", guest_id)], update_data)
        return rows[0] if rows else None

    def delete_guest(self, row: Dict[str, Any]) -> bool:
        """Remove the guest-list row and withdraw any pending guest invitation for the same email."""
        deleted = self.store.delete(TABLE, [eq("id", row["id"])]) > 0
        if row.get("guest_email"):
            withdrawn = self.store.delete(INVITATIONS_TABLE, [
                eq("wedding_id", row["wedding_id"]),
                eq("email", row["guest_email"].lower()),
                eq("role", InvitationRole.GUEST.value),
                eq("status", InvitationStatus.PENDING.value),
            ])
            if withdrawn:
                logger.info(f"Withdrew {withdrawn} pending invitation(s) for {row['guest_email']} on wedding {row['wedding_id']}")
        return deleted

    def join_by_code(self, wedding: Dict[str, Any], principal: Principal, name: Optional[str] = None) -> Dict[str, Any]:
        """Put the principal on the wedding's guest list; an existing row for them is linked and reused."""
        email = principal.email.lower()
        rows = self.store.get(TABLE, [eq("wedding_id", wedding["id"]), eq("guest_id", principal.id)])
        rows = rows or self.store.get(TABLE, [eq("wedding_id", wedding["id"]), eq("guest_email", email)])
        if rows:
            row = rows[0]
            if not row.get("guest_id"):
                updated = self.store.update(TABLE, [eq("id", row["id"])], {"guest_id": principal.id})
                row = updated[0] if updated else {**row, "guest_id": principal.id}
            return row

        row = self.store.insert(TABLE, {
            "wedding_id": wedding["id"],
            "guest_id": principal.id,
            "guest_name": name or principal.name,
            "guest_email": email,
            "invited_by": None,
            "rsvp_status": "pending",
            "invited_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"{principal.id} joined wedding {wedding['id']} with its code")
        return row

    def wedding_ids_for(self, principal: Principal) -> List[str]:
        """Weddings on whose guest list the principal appears, by account or by email."""
        by_id = self.store.get(TABLE, [eq("guest_id", principal.id)], columns="wedding_id")
        by_email = self.store.get(TABLE, [eq("guest_email", principal.email.lower())], columns="wedding_id")
        return sorted({row["wedding_id"] for row in by_id + by_email})
