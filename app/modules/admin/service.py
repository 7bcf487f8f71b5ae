from app.core.errors import AppError, Conflict, Invalid, NotFound
from app.core.policy import Role
from app.database.supabase_client import SupabaseStore, eq, in_
from app.integrations.email_service import EmailSender
from app.integrations.identity import IdentityProvider, IdentityProviderError
from app.modules.admin.schemas import ApplicationReview, ApplicationStatus, SuperAdminApplicationCreate, SuperAdminCreate
from app.modules.users.service import UserService
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class AdminService:
    """Platform administration: provisioning the super admins who own weddings."""

    def __init__(self, store: SupabaseStore, identity_provider: IdentityProvider, email_sender: EmailSender):
        self.store = store
        self.identity_provider = identity_provider
        self.email_sender = email_sender
        self.users = UserService(store)

    def _usage(self, admin: Dict[str, Any]) -> Dict[str, Any]:
        weddings = self.store.get("weddings", [eq("super_admin_id", admin["id"])], columns="id")
        media: List[Dict[str, Any]] = []
        if weddings:
            media = self.store.get("media", [in_("wedding_id", [w["id"] for w in weddings])], columns="id,size,created_at")
        total_bytes = sum(m.get("size") or 0 for m in media)
        last_activity = max((m["created_at"] for m in media if m.get("created_at")), default=admin.get("created_at"))
        return {
            "wedding_count": len(weddings),
            "total_media_count": len(media),
            "total_storage_mb": round(total_bytes / (1024 * 1024), 2),
            "last_activity": last_activity,
        }

    def list_super_admins(self) -> List[Dict[str, Any]]:
        return [{**admin, **self._usage(admin)} for admin in self.users.list_users_by_role(Role.SUPER_ADMIN)]

    def create_super_admin(self, data: SuperAdminCreate) -> Dict[str, Any]:
        """
        Provider account first, then the users row. If the row insert fails the
        provider account is deleted again so the email stays reusable.
        """
        email = data.email.lower()
        if self.users.get_user_by_email(email):
            raise Conflict("A user with this email already exists")

        try:
            provider_user = self.identity_provider.create_user(email, data.password, data.name)
        except IdentityProviderError as e:
            if e.already_registered:
                raise Conflict("A user with this email already exists")
            raise Invalid(f"Failed to create user account: {e}")

        try:
            user = self.store.insert("users", {
                "id": provider_user.provider_user_id,
                "email": email,
                "name": data.name,
                "role": Role.SUPER_ADMIN.value,
            })
        except AppError:
            if not self.identity_provider.delete_user(provider_user.provider_user_id):
                logger.error(f"Provider account {provider_user.provider_user_id} left without a users row")
            raise
        logger.info(f"Super admin {user['id']} ({email}) created")

        if not self.email_sender.send_welcome(email, data.name):
            logger.warning(f"Welcome email to {email} was not delivered")
        return {**user, **self._usage(user)}

    def delete_super_admin(self, user_id: str) -> None:
        user = self.users.get_user_by_id(user_id)
        if not user or user.get("role") != Role.SUPER_ADMIN.value:
            raise NotFound("Super admin not found")
        if self.store.get("weddings", [eq("super_admin_id", user_id)], columns="id"):
            raise Conflict("Super admin still owns weddings")

        self.users.delete_user(user_id)
        if not self.identity_provider.delete_user(user_id):
            logger.warning(f"Provider account {user_id} could not be deleted")
        logger.info(f"Super admin {user_id} deleted")


APPLICATIONS_TABLE = "super_admin_applications"


class ApplicationService:
    """Self-serve requests to become a super admin, reviewed by an application admin."""

    def __init__(self, store: SupabaseStore, admins: AdminService):
        self.store = store
        self.admins = admins

    def submit(self, data: SuperAdminApplicationCreate) -> Dict[str, Any]:
        email = data.email.lower()
        if self.store.get(APPLICATIONS_TABLE, [eq("email", email)], columns="id"):
            raise Conflict("An application already exists for this email")

        application = self.store.insert(APPLICATIONS_TABLE, {
            **data.model_dump(),
            "email": email,
            "status": ApplicationStatus.PENDING.value,
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"Super admin application {application['id']} submitted for {email}")
        return application

    def list_applications(self, status: Optional[ApplicationStatus] = None) -> List[Dict[str, Any]]:
        filters = [eq("status", status.value)] if status else []
        return self.store.get(APPLICATIONS_TABLE, filters, order="submitted_at", desc=True)

    def review(self, application_id: str, review: ApplicationReview, reviewer_id: str) -> Dict[str, Any]:
        """
        Approve or reject a pending application.

        Approval provisions the account before the application is marked, so a
        failed provisioning leaves it pending. An existing guest or admin account
        with the same email is promoted instead of recreated.
        """
        application = self.store.get(APPLICATIONS_TABLE, [eq("id", application_id)], single=True)
        if not application:
            raise NotFound("Application not found")
        if application.get("status") != ApplicationStatus.PENDING.value:
            raise Invalid("Application has already been processed")

        update_data: Dict[str, Any] = {
            "status": review.status.value,
            "reviewed_at": datetime.now(timezone.utc).isoformat(),
            "reviewed_by": reviewer_id,
        }
        if review.status is ApplicationStatus.APPROVED:
            self._provision(application, review)
            update_data["payment_verified"] = review.payment_verified
            if review.trial_end_date:
                update_data["trial_end_date"] = review.trial_end_date.isoformat()

        rows = self.store.update(APPLICATIONS_TABLE, [eq("id", application_id)], update_data)
        logger.info(f"Application {application_id} {review.status.value} by {reviewer_id}")
        return rows[0] if rows else {**application, **update_data}

    def _provision(self, application: Dict[str, Any], review: ApplicationReview) -> None:
        existing = self.admins.users.get_user_by_email(application["email"])
        if existing:
            if existing.get("role") == Role.APPLICATION_ADMIN.value:
                raise Conflict("This email belongs to an application admin")
            if existing.get("role") != Role.SUPER_ADMIN.value:
                self.admins.users.set_role(existing["id"], Role.SUPER_ADMIN)
                logger.info(f"User {existing['id']} promoted to super admin by application approval")
            return

        if not review.password:
            raise Invalid("A password is required to provision the new account")
        self.admins.create_super_admin(SuperAdminCreate(
            name=application["contact_person"],
            email=application["email"],
            password=review.password,
        ))
