"""Service layer for blog posts with author-only mutation."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogit.core.errors import ForbiddenError, NotFoundError
from blogit.core.security import TokenIdentity
from blogit.models.post import Post
from blogit.schemas.post import PostCreate, PostUpdate
from blogit.services.images import ImageStorage, ImageUpload
from blogit.services.users import get_user_by_id

logger = logging.getLogger(__name__)


def _parse_post_id(post_id: int | str) -> int | None:
    try:
        return int(post_id)
    except (TypeError, ValueError):
        return None


def ensure_owner(post: Post, identity: TokenIdentity) -> None:
    """Raise ForbiddenError unless the identity authored the post.

    Ids are compared in their string form so an integer column matches the
    string subject carried by the token.
    """
    if str(post.author_id) != str(identity.user_id):
        raise ForbiddenError()


async def list_posts(session: AsyncSession) -> list[Post]:
    result = await session.execute(
        select(Post)
        .options(selectinload(Post.author))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return list(result.scalars().all())


async def get_post(session: AsyncSession, post_id: int | str) -> Post | None:
    key = _parse_post_id(post_id)
    if key is None:
        return None
    result = await session.execute(
        select(Post).options(selectinload(Post.author)).where(Post.id == key)
    )
    return result.scalar_one_or_none()


async def get_post_or_404(session: AsyncSession, post_id: int | str) -> Post:
    post = await get_post(session, post_id)
    if not post:
        raise NotFoundError()
    return post


async def create_post(
    session: AsyncSession,
    identity: TokenIdentity,
    data: PostCreate,
    image: ImageUpload | None = None,
    storage: ImageStorage | None = None,
) -> Post:
    author = await get_user_by_id(session, identity.user_id)
    if not author:
        raise NotFoundError("User not found")

    image_url = None
    if image is not None and storage is not None:
        image_url = await storage.save(image)

    post = Post(title=data.title, content=data.content, image_url=image_url, author_id=author.id)
    session.add(post)
    await session.flush()
    await session.refresh(post, ["author"])
    logger.info("User %s created post %s", identity.user_id, post.id)
    return post


async def update_post(
    session: AsyncSession,
    identity: TokenIdentity,
    post_id: int | str,
    data: PostUpdate,
    image: ImageUpload | None = None,
    storage: ImageStorage | None = None,
) -> Post:
    """Apply a partial update; fields left as ``None`` keep their stored value."""

    post = await get_post_or_404(session, post_id)
    ensure_owner(post, identity)

    if data.title is not None:
        post.title = data.title
    if data.content is not None:
        post.content = data.content
    if image is not None and storage is not None:
        post.image_url = await storage.save(image)

    await session.flush()
    await session.refresh(post, ["author", "updated_at"])
    logger.info("User %s updated post %s", identity.user_id, post.id)
    return post


async def delete_post(session: AsyncSession, identity: TokenIdentity, post_id: int | str) -> None:
    post = await get_post_or_404(session, post_id)
    ensure_owner(post, identity)
    await session.delete(post)
    await session.flush()
    logger.info("User %s deleted post %s", identity.user_id, post.id)
