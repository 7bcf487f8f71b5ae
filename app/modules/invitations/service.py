"""
Invitation workflow: grants a principal membership on a wedding.

Each step is an independent, idempotent write; nothing is rolled back. A failed
email never undoes an invitation, and a failed membership write leaves the
invitation pending so the acceptance can simply be retried.
"""

from app.config import settings
from app.core.errors import AppError, Conflict, Expired, NotFound
from app.core.policy import Role
from app.database.supabase_client import SupabaseStore, eq, lt
from app.integrations.email_service import EmailSender
from app.modules.invitations.schemas import InvitationRole, InvitationStatus
from app.modules.users.service import UserService
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

TABLE = "wedding_invitations"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class InvitationService:
    def __init__(
        self,
        store: SupabaseStore,
        email_sender: EmailSender,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.email_sender = email_sender
        self.now = now
        self.users = UserService(store)

    def is_expired(self, invitation: Dict[str, Any]) -> bool:
        expires_at = parse_timestamp(invitation.get("expires_at"))
        return expires_at is not None and self.now() > expires_at

    def _mark_expired(self, invitation: Dict[str, Any]) -> None:
        try:
            self.store.update(TABLE, [eq("id", invitation["id"]), eq("status", InvitationStatus.PENDING.value)], {
                "status": InvitationStatus.EXPIRED.value,
            })
        except AppError as e:
            # Staleness is tolerated: readers re-check expires_at themselves
            logger.warning(f"Could not mark invitation {invitation['id']} expired: {e.message}")

    def create_invitation(
        self,
        wedding_id: str,
        email: str,
        role: InvitationRole,
        invited_by: Optional[str],
        ttl: Optional[timedelta] = None,
        guest_name: Optional[str] = None,
        guest_row_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert a pending invitation and attempt the notification email."""
        email = email.lower()
        wedding = self.store.get("weddings", [eq("id", wedding_id)], single=True)
        if not wedding:
            raise NotFound("Wedding not found")

        pending = self.store.get(TABLE, [
            eq("wedding_id", wedding_id),
            eq("email", email),
            eq("status", InvitationStatus.PENDING.value),
        ])
        for existing in pending:
            if self.is_expired(existing):
                self._mark_expired(existing)
            else:
                raise Conflict("An invitation for this email is already pending")

        now = self.now()
        ttl = ttl or timedelta(hours=settings.invitation_ttl_hours)
        invitation = self.store.insert(TABLE, {
            "wedding_id": wedding_id,
            "email": email,
            "role": role.value,
            "status": InvitationStatus.PENDING.value,
            "invited_by": invited_by,
            "created_at": now.isoformat(),
            "expires_at": (now + ttl).isoformat(),
        })
        logger.info(f"Created {role.value} invitation {invitation['id']} for {email} on wedding {wedding_id}")

        if role is InvitationRole.ADMIN:
            sent = self.email_sender.send_admin_invitation(email, wedding, admin_name=f"Wedding Admin - {wedding.get('name')}")
        else:
            sent = self.email_sender.send_guest_invitation(email, guest_name, wedding, guest_row_id or invitation["id"])
        if not sent:
            logger.warning(f"Invitation {invitation['id']} created but the email to {email} was not delivered")
        return invitation

    def accept_invitation(self, email: str, wedding_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Accept the newest invitation for (wedding_id, email) on behalf of `user`.

        An accepted invitation is spent: accepting it again returns it without
        writing, so a membership removed after acceptance stays removed. A
        failed membership write leaves the invitation pending for a retry.
        """
        email = email.lower()
        invitations = self.store.get(
            TABLE,
            [eq("wedding_id", wedding_id), eq("email", email)],
            order="created_at",
            desc=True,
        )
        if not invitations:
            raise NotFound("Invitation not found")

        pending = [i for i in invitations if i.get("status") == InvitationStatus.PENDING.value]
        live = None
        for invitation in pending:
            if self.is_expired(invitation):
                self._mark_expired(invitation)
            elif live is None:
                live = invitation

        if live is None:
            accepted = [i for i in invitations if i.get("status") == InvitationStatus.ACCEPTED.value]
            if accepted:
                logger.info(f"Invitation {accepted[0]['id']} already accepted; membership left unchanged")
                return accepted[0]
            raise Expired()

        invitation = live
        self._grant_membership(invitation, user)

        rows = self.store.update(TABLE, [eq("id", invitation["id"])], {
            "status": InvitationStatus.ACCEPTED.value,
            "accepted_at": self.now().isoformat(),
            "accepted_by": user["id"],
        })
        logger.info(f"Invitation {invitation['id']} accepted by {user['id']}")
        return rows[0] if rows else {**invitation, "status": InvitationStatus.ACCEPTED.value}

    def _grant_membership(self, invitation: Dict[str, Any], user: Dict[str, Any]) -> None:
        wedding_id = invitation["wedding_id"]
        if invitation.get("role") == InvitationRole.ADMIN.value:
            wedding = self.store.get("weddings", [eq("id", wedding_id)], single=True)
            if not wedding:
                raise NotFound("Wedding not found")
            admin_ids = list(wedding.get("wedding_admin_ids") or [])
            if user["id"] not in admin_ids:
                self.store.update("weddings", [eq("id", wedding_id)], {
                    "wedding_admin_ids": admin_ids + [user["id"]],
                    "updated_at": self.now().isoformat(),
                })
            # The co-admin tier requires the admin role
            if user.get("role") == Role.GUEST.value:
                self.users.set_role(user["id"], Role.ADMIN)
                user["role"] = Role.ADMIN.value
            return

        guest_email = invitation["email"]
        rows = self.store.get("wedding_guests", [eq("wedding_id", wedding_id), eq("guest_email", guest_email)])
        if rows:
            for row in rows:
                if not row.get("guest_id"):
                    self.store.update("wedding_guests", [eq("id", row["id"])], {"guest_id": user["id"]})
            return
        self.store.insert("wedding_guests", {
            "wedding_id": wedding_id,
            "guest_id": user["id"],
            "guest_email": guest_email,
            "guest_name": user.get("name"),
            "invited_by": invitation.get("invited_by"),
            "rsvp_status": "pending",
            "invited_at": invitation.get("created_at") or self.now().isoformat(),
        })

    def accept_pending_for(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Best-effort: accept every live invitation addressed to the user's email."""
        accepted = []
        pending = self.store.get(TABLE, [
            eq("email", user["email"].lower()),
            eq("status", InvitationStatus.PENDING.value),
        ])
        for wedding_id in {i["wedding_id"] for i in pending}:
            try:
                accepted.append(self.accept_invitation(user["email"], wedding_id, user))
            except Expired:
                logger.info(f"Skipping expired invitation for {user['email']} on wedding {wedding_id}")
            except AppError as e:
                logger.error(f"Could not accept invitation for {user['email']} on wedding {wedding_id}: {e.message}")
        return accepted

    def expire_sweep(self, wedding_id: Optional[str] = None) -> int:
        """Mark overdue pending invitations expired. Runs lazily, never on a schedule."""
        filters = [eq("status", InvitationStatus.PENDING.value), lt("expires_at", self.now().isoformat())]
        if wedding_id:
            filters.append(eq("wedding_id", wedding_id))
        try:
            rows = self.store.update(TABLE, filters, {"status": InvitationStatus.EXPIRED.value})
        except AppError as e:
            logger.warning(f"Invitation expiry sweep failed: {e.message}")
            return 0
        if rows:
            logger.info(f"Expired {len(rows)} invitation(s)")
        return len(rows)

    def list_invitations(self, wedding_id: str) -> List[Dict[str, Any]]:
        self.expire_sweep(wedding_id)
        return self.store.get(TABLE, [eq("wedding_id", wedding_id)], order="created_at", desc=True)

    def get_invitation(self, invitation_id: str) -> Dict[str, Any]:
        invitation = self.store.get(TABLE, [eq("id", invitation_id)], single=True)
        if not invitation:
            raise NotFound("Invitation not found")
        return invitation

    def delete_invitation(self, invitation_id: str) -> bool:
        return self.store.delete(TABLE, [eq("id", invitation_id)]) > 0
