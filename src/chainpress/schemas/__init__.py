"""Pydantic request and response schemas."""

from .auth import NonceRequest, NonceResponse, VerifyRequest, VerifyResponse
from .post import (
    IntegrityMeta,
    IntegrityMetaResponse,
    IntegrityMetaUpdate,
    PostList,
    PostResponse,
    PostUpsert,
    PostVerification,
)
from .user import ProfileRequest, ProfileResponse, RegisterRequest, RegisterResponse

__all__ = [
    "IntegrityMeta",
    "IntegrityMetaResponse",
    "IntegrityMetaUpdate",
    "NonceRequest",
    "NonceResponse",
    "PostList",
    "PostResponse",
    "PostUpsert",
    "PostVerification",
    "ProfileRequest",
    "ProfileResponse",
    "RegisterRequest",
    "RegisterResponse",
    "VerifyRequest",
    "VerifyResponse",
]
