"""Photo model for gallery images.

This module defines the Photo model which stores a reference to the
stored image along with its caption, place name and GPS metadata.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photoblog.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from photoblog.models.comment import Comment


class Photo(Base, TimestampMixin):
    """Represents a photo published on the blog.

    Attributes:
        id: Primary key identifier.
        image_url: Public URL of the stored image.
        storage_key: Key of the image in the media store.
        description: Caption shown under the photo.
        location: Place name typed by the admin.
        captured_at: When the photo was taken (EXIF or upload form).
        meta: PhotoMetadata mapping stored in the ``metadata`` column:
            ``latitude``, ``longitude``, ``coordinates`` ("lat,lng") and
            ``originalLocation``.
        comments: Visitor comments, newest first.
    """

    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    image_url: Mapped[str] = mapped_column(String(512), nullable=False)
    storage_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    captured_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    # "metadata" is reserved on declarative classes
    meta: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="photo",
        cascade="all, delete-orphan",
        order_by="(Comment.created_at.desc(), Comment.id.desc())",
    )
