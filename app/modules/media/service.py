from app.core.errors import Invalid, NotFound, Unavailable
from app.core.policy import MediaStatus, Principal
from app.database.supabase_client import SupabaseStore, eq
from app.integrations.media_storage import MediaStorageError
from app.modules.media.schemas import MediaStatusFilter, MediaType
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging
import mimetypes
import uuid

logger = logging.getLogger(__name__)

TABLE = "media"


def to_response(row: Dict[str, Any]) -> Dict[str, Any]:
    return {**row, "is_approved": row.get("status") == MediaStatus.APPROVED.value}


def media_type_for(content_type: Optional[str]) -> MediaType:
    if content_type and content_type.startswith("image/"):
        return MediaType.PHOTO
    if content_type and content_type.startswith("video/"):
        return MediaType.VIDEO
    raise Invalid("Only image and video files can be uploaded")


class MediaService:
    def __init__(self, store: SupabaseStore, media_storage, max_upload_bytes: int):
        self.store = store
        self.media_storage = media_storage
        self.max_upload_bytes = max_upload_bytes

    def upload(
        self,
        wedding_id: str,
        principal: Principal,
        contents: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        description: Optional[str],
        status: MediaStatus,
    ) -> Dict[str, Any]:
        """
        Store the object, then record its metadata.

        If the metadata insert fails the stored object is deleted again, so a
        failed upload leaves neither a row nor an orphaned object behind.
        """
        if not contents:
            raise Invalid("No file provided")
        if len(contents) > self.max_upload_bytes:
            raise Invalid(f"File exceeds the {self.max_upload_bytes // (1024 * 1024)} MB upload limit")
        media_type = media_type_for(content_type)

        extension = mimetypes.guess_extension(content_type) or ""
        path = f"weddings/{wedding_id}/{uuid.uuid4().hex}{extension}"
        try:
            stored = self.media_storage.upload(contents, path, content_type)
        except MediaStorageError as e:
            raise Unavailable(f"media upload: {e}") from e

        now = datetime.now(timezone.utc).isoformat()
        approved = status is MediaStatus.APPROVED
        try:
            row = self.store.insert(TABLE, {
                "wedding_id": wedding_id,
                "uploaded_by": principal.id,
                "type": media_type.value,
                "url": stored.url,
                "storage_path": stored.path,
                "filename": filename,
                "size": len(contents),
                "mime_type": content_type,
                "description": description,
                "status": status.value,
                "approved_by": principal.id if approved else None,
                "approved_at": now if approved else None,
                "created_at": now,
            })
        except Unavailable:
            if not self.media_storage.delete(stored.path):
                logger.error(f"Orphaned stored object {stored.path} after failed media insert")
            raise
        logger.info(f"Media {row['id']} uploaded to wedding {wedding_id} by {principal.id} ({status.value})")
        return row

    def list_media(
        self,
        wedding_id: str,
        principal: Principal,
        status_filter: MediaStatusFilter,
        moderator: bool,
    ) -> List[Dict[str, Any]]:
        """
        Moderators see whatever the filter asks for. Everyone else sees approved
        items plus their own uploads, narrowed by the same filter.
        """
        rows = self.store.get(TABLE, [eq("wedding_id", wedding_id)], order="created_at", desc=True)
        if status_filter is MediaStatusFilter.APPROVED:
            rows = [r for r in rows if r.get("status") == MediaStatus.APPROVED.value]
        elif status_filter is MediaStatusFilter.PENDING:
            rows = [r for r in rows if r.get("status") == MediaStatus.PENDING.value]
        if not moderator:
            rows = [
                r for r in rows
                if r.get("status") == MediaStatus.APPROVED.value or r.get("uploaded_by") == principal.id
            ]
        return rows

    def approve(self, media: Dict[str, Any], principal: Principal) -> Dict[str, Any]:
        """pending -> approved. Approving an approved item changes nothing."""
        if media.get("status") == MediaStatus.APPROVED.value:
            return media
        rows = self.store.update(TABLE, [eq("id", media["id"])], {
            "status": MediaStatus.APPROVED.value,
            "approved_by": principal.id,
            "approved_at": datetime.now(timezone.utc).isoformat(),
        })
        if not rows:
            raise NotFound("Media not found")
        logger.info(f"Media {media['id']} approved by {principal.id}")
        return rows[0]

    def update_description(self, media_id: str, description: str) -> Dict[str, Any]:
        rows = self.store.update(TABLE, [eq("id", media_id)], {"description": description})
        if not rows:
            raise NotFound("Media not found")
        return rows[0]

    def delete(self, media: Dict[str, Any]) -> bool:
        """Remove the row, then the stored object (best-effort)"""
        deleted = self.store.delete(TABLE, [eq("id", media["id"])]) > 0
        path = media.get("storage_path")
        if deleted and path and not self.media_storage.delete(path):
            logger.warning(f"Stored object {path} left behind after deleting media {media['id']}")
        return deleted
