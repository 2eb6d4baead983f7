"""API router aggregator."""
from fastapi import APIRouter

from blogit.api.routes import auth, posts

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(posts.router)

__all__ = ["api_router"]
