from __future__ import annotations

from typing import override
from uuid import uuid4

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    """Generate a 32-character hex identifier."""
    return uuid4().hex


class Base(DeclarativeBase):
    """Base class for Media Store models."""

    pass


class Media(Base):
    """SQLAlchemy model for media entities."""

    __tablename__ = "media"  # pyright: ignore[reportUnannotatedClassAttribute]

    # Primary key
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # Core fields
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    file_name: Mapped[str | None] = mapped_column(String, nullable=True)

    # Timestamps (milliseconds)
    added_date: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    updated_date: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # User identity tracking
    added_by: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True)

    # File metadata
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String, nullable=True)
    extension: Mapped[str | None] = mapped_column(String, nullable=True)
    md5: Mapped[str | None] = mapped_column(String, index=True, nullable=True)

    # File storage, relative to the media storage dir
    file_path: Mapped[str | None] = mapped_column(String, nullable=True)

    # Relationships
    thumbnails: Mapped[list[MediaThumbnail]] = relationship(
        "MediaThumbnail",
        back_populates="media",
        cascade="all, delete-orphan",
        order_by="MediaThumbnail.width",
    )

    @override
    def __repr__(self) -> str:
        return f"<Media(id={self.id}, file_path={self.file_path})>"


class MediaThumbnail(Base):
    """SQLAlchemy model for thumbnails derived from a media file."""

    __tablename__ = "media_thumbnails"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    media_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("media.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    media: Mapped[Media] = relationship("Media", back_populates="thumbnails")

    @override
    def __repr__(self) -> str:
        return f"<MediaThumbnail(id={self.id}, media_id={self.media_id}, {self.width}x{self.height})>"
