"""Post endpoints: authoring, verified views and integrity metadata."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import OperationalError

from chainpress.api.v1.dependencies import (
    CurrentUserDep,
    IntegrityDep,
    OptionalUserDep,
    PinningDep,
    SessionDep,
    raise_http_error,
)
from chainpress.core.errors import (
    ContentNotFoundError,
    DigestComputeFailureError,
    IdentityStoreUnavailableError,
    PinningDisabledError,
    PinningError,
)
from chainpress.models import Post, User
from chainpress.repositories.post_repo import PostRepository
from chainpress.schemas.post import (
    IntegrityMeta,
    IntegrityMetaResponse,
    IntegrityMetaUpdate,
    PostList,
    PostResponse,
    PostUpsert,
    PostVerification,
)
from chainpress.services.content_integrity import ContentIntegrityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["posts"])

MAX_PER_PAGE = 50


def _to_response(post: Post, integrity: ContentIntegrityService) -> PostResponse:
    check = integrity.verify_on_view(post.id, post.content)
    return PostResponse(
        id=post.id,
        title=post.title,
        content=post.content,
        description=post.description,
        category=post.category,
        link=post.link,
        status=post.status,
        author_id=post.author_id,
        created_at=post.created_at,
        verified=check.verified,
        on_chain=check.on_chain,
    )


def _get_visible_post(repo: PostRepository, post_id: int, user: User | None) -> Post:
    """Return a post the caller may read; drafts are visible to their author only."""
    post = repo.get(post_id)
    if post is None:
        raise_http_error(ContentNotFoundError(post_id))
    if post.status != "publish" and (user is None or post.author_id != user.id):
        raise_http_error(ContentNotFoundError(post_id))
    return post


def _get_owned_post(repo: PostRepository, post_id: int, user: User) -> Post:
    post = repo.get(post_id)
    if post is None:
        raise_http_error(ContentNotFoundError(post_id))
    if post.author_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient rights",
        )
    return post


@router.get("/posts", response_model=PostList)
def list_posts(
    db: SessionDep,
    integrity: IntegrityDep,
    user: OptionalUserDep,
    search: str | None = Query(None, description="Match title or content"),
    mine: bool = Query(False, description="Only posts by the caller"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=MAX_PER_PAGE),
) -> PostList:
    """List posts newest first; anonymous callers only see published posts."""
    repo = PostRepository(db)
    if mine and user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session",
        )
    statuses = ("publish", "draft", "pending") if mine else ("publish",)
    total, rows = repo.list_posts(
        search=search,
        author_id=user.id if mine and user is not None else None,
        statuses=statuses,
        page=page,
        per_page=per_page,
    )
    return PostList(
        total=total,
        page=page,
        rows=[_to_response(post, integrity) for post in rows],
    )


@router.post("/posts", response_model=PostResponse)
def save_post(
    payload: PostUpsert,
    db: SessionDep,
    integrity: IntegrityDep,
    user: CurrentUserDep,
) -> PostResponse:
    """Create or update a post, then fingerprint its content."""
    repo = PostRepository(db)
    fields = {
        "title": payload.title.strip(),
        "content": payload.content,
        "description": payload.description.strip(),
        "category": payload.category.strip() or "General",
        "status": payload.status,
        "link": str(payload.link) if payload.link else "",
    }
    if payload.id is not None:
        post = repo.update(_get_owned_post(repo, payload.id, user), **fields)
    else:
        post = repo.create(author_id=user.id, **fields)

    post_id = post.id
    # The body and its digest record are committed together or not at all.
    try:
        record = integrity.on_save(post_id, post.content, commit=False)
        db.commit()
    except (DigestComputeFailureError, IdentityStoreUnavailableError) as err:
        db.rollback()
        raise_http_error(err)
    except OperationalError as err:
        db.rollback()
        logger.error("Commit of post %s failed: %s", post_id, err)
        raise_http_error(IdentityStoreUnavailableError("Post commit failed"))
    logger.info("Saved post %s with digest %s", post_id, record.sha256_hex[:12])
    return _to_response(post, integrity)


@router.get("/posts/{post_id}", response_model=PostResponse)
def view_post(
    post_id: int,
    db: SessionDep,
    integrity: IntegrityDep,
    user: OptionalUserDep,
) -> PostResponse:
    """Return a post with its verified and on-chain indicators."""
    post = _get_visible_post(PostRepository(db), post_id, user)
    try:
        return _to_response(post, integrity)
    except IdentityStoreUnavailableError as err:
        raise_http_error(err)


@router.get("/verify/post/{post_id}", response_model=PostVerification)
def verify_post(
    post_id: int,
    db: SessionDep,
    integrity: IntegrityDep,
    user: OptionalUserDep,
) -> PostVerification:
    """Recompute the post's digests and compare them with the stored record."""
    post = _get_visible_post(PostRepository(db), post_id, user)
    try:
        check = integrity.verify_on_view(post.id, post.content)
    except IdentityStoreUnavailableError as err:
        raise_http_error(err)
    current = integrity.engine.compute(post.content)
    return PostVerification(
        post_id=post.id,
        verified=check.verified,
        on_chain=check.on_chain,
        sha256=current.sha256_hex,
        keccak256=current.derived_hex,
    )


@router.get("/posts/{post_id}/meta", response_model=IntegrityMetaResponse)
def get_integrity_meta(
    post_id: int,
    db: SessionDep,
    integrity: IntegrityDep,
    user: OptionalUserDep,
) -> IntegrityMetaResponse:
    """Return stored digests, CID, anchor transaction and on-chain flag."""
    _get_visible_post(PostRepository(db), post_id, user)
    return IntegrityMetaResponse(data=IntegrityMeta(**integrity.integrity_meta(post_id)))


@router.post("/posts/{post_id}/meta", response_model=IntegrityMetaResponse)
def update_integrity_meta(
    post_id: int,
    payload: IntegrityMetaUpdate,
    db: SessionDep,
    integrity: IntegrityDep,
    user: CurrentUserDep,
) -> IntegrityMetaResponse:
    """Record pinning / anchoring results for a post the caller owns."""
    _get_owned_post(PostRepository(db), post_id, user)
    if payload.contract_tx and payload.verified is not True:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="contract_tx requires verified=true",
        )
    try:
        if payload.ipfs_cid is not None:
            integrity.set_ipfs_cid(post_id, payload.ipfs_cid)
        if payload.verified is True:
            integrity.mark_on_chain_verified(post_id, contract_tx=payload.contract_tx)
        elif payload.verified is False:
            integrity.clear_on_chain_verified(post_id)
    except IdentityStoreUnavailableError as err:
        raise_http_error(err)
    return IntegrityMetaResponse(data=IntegrityMeta(**integrity.integrity_meta(post_id)))


@router.post("/posts/{post_id}/pin", response_model=IntegrityMetaResponse)
async def pin_post(
    post_id: int,
    db: SessionDep,
    integrity: IntegrityDep,
    pinning: PinningDep,
    user: CurrentUserDep,
) -> IntegrityMetaResponse:
    """Pin the post's raw content to IPFS and store the returned CID."""
    post = _get_owned_post(PostRepository(db), post_id, user)
    try:
        cid = await pinning.pin(post.content.encode("utf-8"), filename=f"post-{post.id}.txt")
    except PinningDisabledError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="IPFS pinning is not configured",
        ) from err
    except PinningError as err:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="IPFS pinning failed",
        ) from err
    integrity.set_ipfs_cid(post.id, cid)
    return IntegrityMetaResponse(data=IntegrityMeta(**integrity.integrity_meta(post.id)))
