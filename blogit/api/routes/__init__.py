"""Route modules for the Blogit API."""
from . import auth, posts

__all__ = ["auth", "posts"]
