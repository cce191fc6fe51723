"""Comment model for visitor comments on photos."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photoblog.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from photoblog.models.photo import Photo

DEFAULT_AUTHOR_NAME = "Anonymous"


class Comment(Base, TimestampMixin):
    """A visitor comment attached to a photo.

    Attributes:
        id: Primary key identifier.
        photo_id: Foreign key to the photo being discussed.
        content: Comment text.
        author_name: Display name, ``Anonymous`` when not given.
        photo: Related Photo model.
    """

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    photo_id: Mapped[int] = mapped_column(
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default=DEFAULT_AUTHOR_NAME,
    )

    photo: Mapped["Photo"] = relationship("Photo", back_populates="comments")
