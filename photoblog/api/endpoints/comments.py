"""Visitor comments and comment moderation."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photoblog.api.deps import AdminClaims, DBSession, Pagination, SiteAccess
from photoblog.core.exceptions import NotFoundException
from photoblog.models import Comment, Photo
from photoblog.models.comment import DEFAULT_AUTHOR_NAME
from photoblog.schemas import (
    CommentCreate,
    CommentRead,
    CommentUpdate,
    CommentWithPhoto,
    Page,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Comments"])

NEWEST_FIRST = (Comment.created_at.desc(), Comment.id.desc())


async def _ensure_photo(db: AsyncSession, photo_id: int) -> None:
    if await db.get(Photo, photo_id) is None:
        raise NotFoundException(f"Photo {photo_id} not found")


async def _get_comment(db: AsyncSession, comment_id: int, photo_id: Optional[int] = None) -> Comment:
    comment = await db.get(Comment, comment_id)
    if comment is None or (photo_id is not None and comment.photo_id != photo_id):
        raise NotFoundException(f"Comment {comment_id} not found")
    return comment


async def _update_comment(db: AsyncSession, comment: Comment, update: CommentUpdate) -> CommentRead:
    comment.content = update.content
    await db.commit()
    await db.refresh(comment)
    logger.info(f"Comment {comment.id} on photo {comment.photo_id} edited")
    return CommentRead.model_validate(comment)


async def _delete_comment(db: AsyncSession, comment: Comment) -> Dict[str, Any]:
    comment_id = comment.id
    await db.delete(comment)
    await db.commit()
    logger.info(f"Comment {comment_id} deleted")
    return {"message": "Comment deleted successfully", "id": comment_id}


# Public


@router.get(
    "/photos/{photo_id}/comments",
    response_model=List[CommentRead],
    dependencies=[SiteAccess],
    summary="List comments on a photo",
)
async def list_photo_comments(photo_id: int, db: DBSession) -> List[CommentRead]:
    await _ensure_photo(db, photo_id)
    result = await db.execute(
        select(Comment).where(Comment.photo_id == photo_id).order_by(*NEWEST_FIRST)
    )
    return [CommentRead.model_validate(comment) for comment in result.scalars().all()]


@router.post(
    "/photos/{photo_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[SiteAccess],
    summary="Comment on a photo",
)
async def create_comment(photo_id: int, body: CommentCreate, db: DBSession) -> CommentRead:
    """Add a comment. Without a name the comment is signed ``Anonymous``."""
    await _ensure_photo(db, photo_id)

    comment = Comment(
        photo_id=photo_id,
        content=body.content,
        author_name=body.author_name or DEFAULT_AUTHOR_NAME,
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)

    logger.info(f"New comment {comment.id} on photo {photo_id} by {comment.author_name!r}")
    return CommentRead.model_validate(comment)


# Moderation


@router.patch(
    "/photos/{photo_id}/comments/{comment_id}",
    response_model=CommentRead,
    summary="Edit a comment on a photo",
)
async def update_photo_comment(
    photo_id: int,
    comment_id: int,
    update: CommentUpdate,
    db: DBSession,
    _: AdminClaims,
) -> CommentRead:
    comment = await _get_comment(db, comment_id, photo_id)
    return await _update_comment(db, comment, update)


@router.delete(
    "/photos/{photo_id}/comments/{comment_id}",
    summary="Delete a comment on a photo",
)
async def delete_photo_comment(
    photo_id: int,
    comment_id: int,
    db: DBSession,
    _: AdminClaims,
) -> Dict[str, Any]:
    comment = await _get_comment(db, comment_id, photo_id)
    return await _delete_comment(db, comment)


@router.get(
    "/comments",
    response_model=Page[CommentWithPhoto],
    summary="All comments for moderation",
)
async def list_comments(db: DBSession, pagination: Pagination, _: AdminClaims) -> Page[CommentWithPhoto]:
    """Every comment, newest first, with the photo it belongs to."""
    total = await db.scalar(select(func.count()).select_from(Comment)) or 0
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.photo))
        .order_by(*NEWEST_FIRST)
        .offset(pagination.offset)
        .limit(pagination.per_page)
    )
    return Page[CommentWithPhoto](
        items=[CommentWithPhoto.model_validate(comment) for comment in result.scalars().all()],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.page_count(total),
    )


@router.patch("/comments/{comment_id}", response_model=CommentRead, summary="Edit a comment")
async def update_comment(
    comment_id: int,
    update: CommentUpdate,
    db: DBSession,
    _: AdminClaims,
) -> CommentRead:
    return await _update_comment(db, await _get_comment(db, comment_id), update)


@router.delete("/comments/{comment_id}", summary="Delete a comment")
async def delete_comment(comment_id: int, db: DBSession, _: AdminClaims) -> Dict[str, Any]:
    return await _delete_comment(db, await _get_comment(db, comment_id))
