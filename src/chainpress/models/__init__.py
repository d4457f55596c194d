"""SQLAlchemy models for the chainpress service."""

from .post import Post, PostMeta
from .user import User

__all__ = ["Post", "PostMeta", "User"]
