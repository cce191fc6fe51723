from photoblog.models.base import Base, TimestampMixin
from photoblog.models.comment import Comment
from photoblog.models.photo import Photo

__all__ = ["Base", "Comment", "Photo", "TimestampMixin"]
