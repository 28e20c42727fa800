from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, Field

from ..db_service.schemas import now_timestamp


class DeleteFileMessage(BaseModel):
    """Job asking the file worker to remove stored media files."""

    message_id: str = Field(default_factory=lambda: uuid4().hex, description="Unique job id")
    files: list[str] = Field(default_factory=list, description="Paths relative to the media storage dir")
    created_at: int = Field(default_factory=now_timestamp, description="Enqueue time (milliseconds)")


class DeleteFileReport(BaseModel):
    """Outcome of handling one DeleteFileMessage."""

    message_id: str
    removed: list[str] = Field(default_factory=list)
    already_absent: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict, description="path -> reason")
