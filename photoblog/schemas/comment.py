"""Request and response models for comments."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Comment content cannot be empty")
    return value


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    author_name: Optional[str] = Field(None, max_length=100)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("author_name")
    @classmethod
    def blank_author_is_anonymous(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    photo_id: int
    content: str
    author_name: str
    created_at: datetime


class PhotoSummary(BaseModel):
    """Short reference to a photo, shown next to a comment under moderation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    image_url: str


class CommentWithPhoto(CommentRead):
    photo: PhotoSummary
