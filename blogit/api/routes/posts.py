"""Blog post endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from blogit.core.dependencies import get_db, get_image_storage, require_identity
from blogit.core.security import TokenIdentity
from blogit.schemas.post import MessageResponse, PostCreate, PostRead, PostUpdate
from blogit.services import posts as post_service
from blogit.services.images import ImageStorage, ImageUpload

router = APIRouter(prefix="/posts", tags=["posts"])


async def _read_image(image: UploadFile | None, storage: ImageStorage) -> ImageUpload | None:
    # Browsers send an empty part when no file was chosen.
    if image is None or not image.filename:
        return None
    return await storage.read(image)


@router.post("", response_model=PostRead)
async def create_post(
    title: str = Form(..., min_length=1, max_length=255),
    content: str = Form(..., min_length=1),
    image: UploadFile | None = File(default=None),
    identity: TokenIdentity = Depends(require_identity),
    session: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
) -> PostRead:
    payload = PostCreate(title=title, content=content)
    post = await post_service.create_post(session, identity, payload, await _read_image(image, storage), storage)
    await session.commit()
    return PostRead.model_validate(post)


@router.get("", response_model=list[PostRead])
async def list_posts(session: AsyncSession = Depends(get_db)) -> list[PostRead]:
    posts = await post_service.list_posts(session)
    return [PostRead.model_validate(post) for post in posts]


@router.get("/{post_id}", response_model=PostRead)
async def get_post(post_id: str, session: AsyncSession = Depends(get_db)) -> PostRead:
    post = await post_service.get_post_or_404(session, post_id)
    return PostRead.model_validate(post)


@router.put("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: str,
    title: str | None = Form(default=None, min_length=1, max_length=255),
    content: str | None = Form(default=None, min_length=1),
    image: UploadFile | None = File(default=None),
    identity: TokenIdentity = Depends(require_identity),
    session: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
) -> PostRead:
    payload = PostUpdate(title=title, content=content)
    post = await post_service.update_post(session, identity, post_id, payload, await _read_image(image, storage), storage)
    await session.commit()
    return PostRead.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    identity: TokenIdentity = Depends(require_identity),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await post_service.delete_post(session, identity, post_id)
    await session.commit()
    return MessageResponse(message="Post deleted")
