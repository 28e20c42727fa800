from __future__ import annotations

import hashlib
from pathlib import Path as FilePath

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, status
from loguru import logger
from pydantic import BaseModel, Field

from ..common.exceptions import DuplicateFileError
from ..common.storage import StorageService
from ..db_service import Criteria, DeletionEvent, MediaSchema, WriteContext
from ..media import MediaRepositoryDecorator
from .dependencies import get_media_repository, get_storage_service, get_write_context

router = APIRouter()


class MediaDeleteRequest(BaseModel):
    """Bulk delete body; ids may be bare strings or {"id": ...} records."""

    ids: list[str | dict[str, str]] = Field(..., min_length=1, description="Media ids to delete")


class ThumbnailCreate(BaseModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


def _require_media(repository: MediaRepositoryDecorator, media_id: str, context: WriteContext) -> MediaSchema:
    media = repository.get(media_id, context)
    if media is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Media {media_id} not found",
        )
    return media


def _check_duplicate_md5(repository: MediaRepositoryDecorator, md5: str, context: WriteContext) -> None:
    """Reject content that is already stored; each media owns its file exclusively."""
    existing = repository.search_ids(Criteria(filters={"md5": md5}, limit=1), context)
    if existing.ids:
        raise DuplicateFileError(f"Duplicate MD5 detected: {md5} (media {existing.ids[0]})")


@router.post(
    "/media",
    tags=["media"],
    summary="Create Media",
    description="Creates a media record, optionally storing an uploaded file.",
    operation_id="create_media",
    status_code=status.HTTP_201_CREATED,
    response_model=MediaSchema,
    responses={409: {"description": "A media with the same file content already exists"}},
)
async def create_media(
    file: UploadFile | None = File(None, description="Media file to store"),
    title: str | None = Form(None, title="Title"),
    repository: MediaRepositoryDecorator = Depends(get_media_repository),
    storage: StorageService = Depends(get_storage_service),
    context: WriteContext = Depends(get_write_context),
) -> MediaSchema:
    payload: dict[str, object] = {"title": title}

    if file is not None:
        file_bytes = await file.read()
        md5 = hashlib.md5(file_bytes).hexdigest()
        try:
            _check_duplicate_md5(repository, md5, context)
        except DuplicateFileError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        file_name = file.filename or "file"
        extension = FilePath(file_name).suffix.lstrip(".") or None
        payload.update(
            {
                "file_name": file_name,
                "file_size": len(file_bytes),
                "mime_type": file.content_type,
                "extension": extension,
                "md5": md5,
                "file_path": storage.save_file(file_bytes, md5, extension, file_name),
            }
        )

    event = repository.create([payload], context)
    return _require_media(repository, event.written_ids[0], context)


@router.get(
    "/media/{media_id}",
    tags=["media"],
    summary="Get Media",
    operation_id="get_media",
    response_model=MediaSchema,
    responses={404: {"description": "Media not found"}},
)
async def get_media(
    media_id: str = Path(..., description="Media ID"),
    repository: MediaRepositoryDecorator = Depends(get_media_repository),
    context: WriteContext = Depends(get_write_context),
) -> MediaSchema:
    return _require_media(repository, media_id, context)


@router.post(
    "/media/{media_id}/thumbnails",
    tags=["media"],
    summary="Add Thumbnail",
    description="Records a thumbnail derived from the media file.",
    operation_id="add_media_thumbnail",
    status_code=status.HTTP_201_CREATED,
    response_model=MediaSchema,
)
async def add_thumbnail(
    body: ThumbnailCreate,
    media_id: str = Path(..., description="Media ID"),
    repository: MediaRepositoryDecorator = Depends(get_media_repository),
    context: WriteContext = Depends(get_write_context),
) -> MediaSchema:
    media = _require_media(repository, media_id, context)
    if not media.has_file():
        raise ValueError(f"Media {media_id} has no stored file to derive thumbnails from")

    _ = repository.thumbnail_repository.create([{"media_id": media_id, **body.model_dump()}], context)
    return _require_media(repository, media_id, context)


@router.post(
    "/media/delete",
    tags=["media"],
    summary="Delete Media (Bulk)",
    description="""Permanently delete media with cascading cleanup.

    This operation:
    - Removes stored files (inline, or queued for the file worker)
    - Deletes thumbnail records
    - Removes media records from the database

    Ids that no longer exist are ignored; the returned event lists the ids
    actually deleted.
    """,
    operation_id="delete_media_bulk",
    response_model=DeletionEvent,
)
async def delete_media_bulk(
    body: MediaDeleteRequest,
    repository: MediaRepositoryDecorator = Depends(get_media_repository),
    context: WriteContext = Depends(get_write_context),
) -> DeletionEvent:
    event = repository.delete(body.ids, context)
    logger.info(f"Bulk delete removed {len(event.deleted_ids)}/{len(body.ids)} media")
    return event


@router.delete(
    "/media/{media_id}",
    tags=["media"],
    summary="Delete Media",
    operation_id="delete_media",
    response_model=DeletionEvent,
    responses={404: {"description": "Media not found"}},
)
async def delete_media(
    media_id: str = Path(..., description="Media ID to delete"),
    repository: MediaRepositoryDecorator = Depends(get_media_repository),
    context: WriteContext = Depends(get_write_context),
) -> DeletionEvent:
    event = repository.delete([media_id], context)
    if event.is_empty:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Media {media_id} not found",
        )
    return event
