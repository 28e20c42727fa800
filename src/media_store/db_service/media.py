from __future__ import annotations

from typing import Any, ClassVar

from loguru import logger
from sqlalchemy.orm import selectinload

from .base import SqlEntityRepository
from .models import Media, MediaThumbnail
from .schemas import MediaSchema, ThumbnailSchema, WriteContext, now_timestamp


class MediaDBService(SqlEntityRepository[MediaSchema]):
    entity_name: ClassVar[str] = "media"
    model_class = Media
    schema_class = MediaSchema
    load_options: ClassVar[tuple[Any, ...]] = (selectinload(Media.thumbnails),)

    def _apply(self, obj: Any, payload: dict[str, Any], context: WriteContext, creating: bool = False) -> None:
        """Accept nested thumbnail payloads: {"thumbnails": [{"width": .., "height": ..}]}."""
        payload = dict(payload)
        thumbnails = payload.pop("thumbnails", None)
        super()._apply(obj, payload, context, creating=creating)
        if thumbnails is not None:
            now = now_timestamp()
            obj.thumbnails = [
                MediaThumbnail(created_at=t.get("created_at", now), **{k: v for k, v in t.items() if k != "created_at"})
                for t in thumbnails
            ]

    def _log_cascade_deletes(self, orm_obj: Any) -> None:
        """Log what will be cascade deleted."""
        logger.debug(f"Deleting Media {orm_obj.id} will cascade delete {len(orm_obj.thumbnails)} thumbnail row(s)")


class ThumbnailDBService(SqlEntityRepository[ThumbnailSchema]):
    entity_name: ClassVar[str] = "media_thumbnail"
    model_class = MediaThumbnail
    schema_class = ThumbnailSchema

    def _apply(self, obj: Any, payload: dict[str, Any], context: WriteContext, creating: bool = False) -> None:
        super()._apply(obj, payload, context, creating=creating)
        if creating and obj.created_at is None:
            obj.created_at = now_timestamp()
