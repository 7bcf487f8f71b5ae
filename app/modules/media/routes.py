from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.config import settings
from app.core.dependencies import get_current_principal, load_row, load_wedding_ref
from app.core.errors import Invalid
from app.core.policy import (
    Action, ChildKind, ChildRef, MediaRef, Principal, authorize, initial_media_status, is_wedding_admin
)
from app.database.supabase_client import SupabaseStore, get_store
from app.integrations.media_storage import get_media_storage
from app.modules.media.schemas import MediaEnvelope, MediaListEnvelope, MediaStatusFilter, MediaUpdate
from app.modules.media.service import MediaService, TABLE, to_response
from typing import Optional

router = APIRouter(prefix="/media", tags=["media"])


def get_media_service(
    store: SupabaseStore = Depends(get_store),
    media_storage=Depends(get_media_storage),
) -> MediaService:
    return MediaService(store, media_storage, settings.max_upload_bytes)


@router.post("/upload", response_model=MediaEnvelope, status_code=201)
async def upload_media(
    file: UploadFile = File(...),
    weddingId: str = Form(...),
    description: Optional[str] = Form(None),
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: MediaService = Depends(get_media_service)
):
    """Upload a photo or video; guest uploads wait for approval"""
    wedding = load_wedding_ref(store, weddingId)
    authorize(principal, Action.CREATE_CHILD, ChildRef(wedding, ChildKind.MEDIA))
    # One byte past the limit is enough for the service to reject the upload
    contents = await file.read(service.max_upload_bytes + 1)
    media = service.upload(
        weddingId,
        principal,
        contents,
        file.filename,
        file.content_type,
        description,
        initial_media_status(principal, wedding),
    )
    return {"success": True, "message": "Media uploaded successfully", "media": to_response(media)}


@router.get("", response_model=MediaListEnvelope)
async def list_media(
    weddingId: str,
    status: Optional[MediaStatusFilter] = None,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: MediaService = Depends(get_media_service)
):
    """List a wedding's media; guests see approved items and their own uploads"""
    wedding = load_wedding_ref(store, weddingId)
    authorize(principal, Action.READ, ChildRef(wedding, ChildKind.MEDIA))
    moderator = is_wedding_admin(principal, wedding)
    if status is None:
        status = MediaStatusFilter.ALL if moderator else MediaStatusFilter.APPROVED
    rows = service.list_media(weddingId, principal, status, moderator)
    return {"success": True, "media": [to_response(r) for r in rows]}


@router.get("/{media_id}", response_model=MediaEnvelope)
async def get_media(
    media_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store)
):
    """Get a single media item"""
    media = load_row(store, TABLE, media_id, "Media")
    wedding = load_wedding_ref(store, media["wedding_id"])
    authorize(principal, Action.READ, MediaRef.from_row(media, wedding))
    return {"success": True, "media": to_response(media)}


@router.put("/{media_id}", response_model=MediaEnvelope)
async def update_media(
    media_id: str,
    media_data: MediaUpdate,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: MediaService = Depends(get_media_service)
):
    """Approve media (owner or co-admin) or edit its description (uploader or admins)"""
    media = load_row(store, TABLE, media_id, "Media")
    wedding = load_wedding_ref(store, media["wedding_id"])
    ref = MediaRef.from_row(media, wedding)

    if media_data.is_approved is False:
        raise Invalid("Media cannot be un-approved; delete it to reject")
    if media_data.is_approved:
        authorize(principal, Action.UPDATE_ANY, ref, "Only wedding admins can approve media")
    if media_data.description is not None:
        authorize(principal, Action.UPDATE_OWN, ref)

    if media_data.is_approved:
        media = service.approve(media, principal)
    if media_data.description is not None:
        media = service.update_description(media_id, media_data.description)
    return {"success": True, "message": "Media updated successfully", "media": to_response(media)}


@router.delete("/{media_id}")
async def delete_media(
    media_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SupabaseStore = Depends(get_store),
    service: MediaService = Depends(get_media_service)
):
    """Delete (or reject) a media item and its stored object"""
    media = load_row(store, TABLE, media_id, "Media")
    wedding = load_wedding_ref(store, media["wedding_id"])
    authorize(principal, Action.DELETE, MediaRef.from_row(media, wedding))
    service.delete(media)
    return {"success": True, "message": "Media deleted successfully"}
