"""Post and content-integrity schemas."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, HttpUrl


class PostUpsert(BaseModel):
    """Create a post, or update one when ``id`` is given."""

    id: int | None = None
    title: str = Field(..., min_length=1)
    content: str = ""
    description: str = ""
    category: str = "General"
    status: Literal["publish", "draft", "pending"] = "publish"
    link: HttpUrl | None = None


class PostVerification(BaseModel):
    post_id: int
    verified: bool = Field(..., description="Stored SHA-256 matches the current content")
    on_chain: bool = Field(..., description="Digest was anchored; secondary to `verified`")
    sha256: str | None = None
    keccak256: str | None = None


class PostResponse(BaseModel):
    id: int
    title: str
    content: str
    description: str
    category: str
    link: str
    status: str
    author_id: int | None
    created_at: datetime
    verified: bool
    on_chain: bool

    model_config = ConfigDict(from_attributes=True)


class PostList(BaseModel):
    total: int
    page: int
    rows: list[PostResponse]


class IntegrityMeta(BaseModel):
    sha256: str
    keccak256: str
    ipfs_cid: str
    verified: bool
    contract_tx: str


class IntegrityMetaResponse(BaseModel):
    success: bool = True
    data: IntegrityMeta


class IntegrityMetaUpdate(BaseModel):
    """Integrity metadata written by pinning / anchoring integrations."""

    ipfs_cid: str | None = Field(
        None,
        pattern=r"^[A-Za-z0-9+=/_-]{10,}$",
        validation_alias=AliasChoices("ipfs_cid", "bcpipfscid", "bcp_ipfs_cid"),
    )
    verified: bool | None = Field(
        None, validation_alias=AliasChoices("verified", "bcpverified", "bcp_verified")
    )
    contract_tx: str | None = Field(None, min_length=1)
