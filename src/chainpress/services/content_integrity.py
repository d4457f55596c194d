"""Digest-on-save and verify-on-view for post content."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from chainpress.core.errors import (
    ContentNotFoundError,
    DigestComputeFailureError,
    IdentityStoreUnavailableError,
)
from chainpress.repositories.post_repo import PostRepository
from chainpress.services.digest import DigestEngine
from chainpress.services.store_guard import guarded_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetaField:
    """One logical metadata field stored under several historical key names.

    ``aliases[0]`` is canonical. Reads take the first non-empty alias; writes
    go to every alias so older readers keep seeing the current value.
    """

    aliases: tuple[str, ...]

    @property
    def canonical(self) -> str:
        return self.aliases[0]

    def read(self, repo: PostRepository, post_id: int) -> str:
        values = repo.get_meta_many(post_id, self.aliases)
        for key in self.aliases:
            if values.get(key):
                return values[key]
        return ""

    def write(self, repo: PostRepository, post_id: int, value: str) -> None:
        for key in self.aliases:
            repo.set_meta(post_id, key, value)


SHA256_FIELD = MetaField(
    ("bcpcontentsha256hash", "bcp_content_sha256_hash", "bcpsha256", "bcp_sha256")
)
KECCAK_FIELD = MetaField(("bcp_keccak256",))
ON_CHAIN_FIELD = MetaField(("bcpverified", "bcp_verified"))
IPFS_CID_FIELD = MetaField(("bcpipfscid", "bcp_ipfs_cid"))
CONTRACT_TX_FIELD = MetaField(("bcp_contract_tx",))


def _truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class ContentDigestRecord:
    content_id: int
    sha256_hex: str
    derived_hex: str
    on_chain_verified: bool


@dataclass(frozen=True)
class ViewVerification:
    """``verified`` is authoritative; ``on_chain`` only qualifies a verified view."""

    verified: bool
    on_chain: bool


HashGeneratedHook = Callable[[int, ContentDigestRecord], None]


class ContentIntegrityService:
    """Persists a digest record on every save and re-checks it on view."""

    def __init__(
        self,
        db: Session,
        *,
        engine: DigestEngine | None = None,
        hooks: Sequence[HashGeneratedHook] = (),
    ) -> None:
        self.db = db
        self.posts = PostRepository(db)
        self.engine = engine or DigestEngine()
        self.hooks = list(hooks)

    def on_save(
        self, content_id: int, raw_content: str | bytes, *, commit: bool = True
    ) -> ContentDigestRecord:
        """Compute and unconditionally overwrite the digest record for a post.

        The on-chain flag is reset: a new body has not been anchored. With
        ``commit=False`` the record is only flushed so the caller can commit it
        together with the content; a failure then rolls back the whole unit
        and is not retried.

        Raises:
            DigestComputeFailureError: If hashing or persisting the record fails.
        """
        digest = self.engine.compute(raw_content)

        def _persist() -> None:
            SHA256_FIELD.write(self.posts, content_id, digest.sha256_hex)
            KECCAK_FIELD.write(self.posts, content_id, digest.derived_hex)
            ON_CHAIN_FIELD.write(self.posts, content_id, "0")
            if commit:
                self.db.commit()

        try:
            guarded_call(_persist, session=self.db, retries=1 if commit else 0)
        except IdentityStoreUnavailableError as err:
            raise DigestComputeFailureError(
                f"Digest record for post {content_id} was not persisted"
            ) from err

        record = ContentDigestRecord(
            content_id=content_id,
            sha256_hex=digest.sha256_hex,
            derived_hex=digest.derived_hex,
            on_chain_verified=False,
        )
        for hook in self.hooks:
            hook(content_id, record)
        return record

    def load_record(self, content_id: int) -> ContentDigestRecord | None:
        """Return the stored record, resolving alias keys; ``None`` if never hashed."""

        def _read() -> ContentDigestRecord | None:
            sha = SHA256_FIELD.read(self.posts, content_id)
            if not sha:
                return None
            return ContentDigestRecord(
                content_id=content_id,
                sha256_hex=sha,
                derived_hex=KECCAK_FIELD.read(self.posts, content_id),
                on_chain_verified=_truthy(ON_CHAIN_FIELD.read(self.posts, content_id)),
            )

        return guarded_call(_read, session=self.db)

    def verify_on_view(self, content_id: int, raw_content: str | bytes) -> ViewVerification:
        """Recompute the SHA-256 of ``raw_content`` and compare to the stored digest.

        A mismatch is a normal outcome, not an error.
        """
        record = self.load_record(content_id)
        on_chain = bool(record and record.on_chain_verified)
        if record is None:
            logger.debug("Post %s has no stored digest", content_id)
            return ViewVerification(verified=False, on_chain=on_chain)

        current = self.engine.sha256_hex(raw_content)
        verified = self.engine.matches(record.sha256_hex, current)
        if not verified:
            logger.info("Post %s content changed since its digest was stored", content_id)
        return ViewVerification(verified=verified, on_chain=on_chain)

    def verify_post(self, content_id: int) -> ViewVerification:
        """Run :meth:`verify_on_view` against the post's current stored body."""
        post = guarded_call(lambda: self.posts.get(content_id), session=self.db)
        if post is None:
            raise ContentNotFoundError(content_id)
        return self.verify_on_view(content_id, post.content)

    def mark_on_chain_verified(self, content_id: int, *, contract_tx: str | None = None) -> None:
        """Set the on-chain flag after an external anchor succeeded. Idempotent."""

        def _mark() -> None:
            ON_CHAIN_FIELD.write(self.posts, content_id, "1")
            if contract_tx:
                CONTRACT_TX_FIELD.write(self.posts, content_id, contract_tx)
            self.db.commit()

        guarded_call(_mark, session=self.db)
        logger.info("Post %s marked as anchored on-chain", content_id)

    def clear_on_chain_verified(self, content_id: int) -> None:
        def _clear() -> None:
            ON_CHAIN_FIELD.write(self.posts, content_id, "0")
            self.db.commit()

        guarded_call(_clear, session=self.db)

    def set_ipfs_cid(self, content_id: int, cid: str) -> None:
        def _set() -> None:
            IPFS_CID_FIELD.write(self.posts, content_id, cid)
            self.db.commit()

        guarded_call(_set, session=self.db)

    def integrity_meta(self, content_id: int) -> dict[str, object]:
        """Return the public integrity metadata for a post."""

        def _read() -> dict[str, object]:
            return {
                "sha256": SHA256_FIELD.read(self.posts, content_id),
                "keccak256": KECCAK_FIELD.read(self.posts, content_id),
                "ipfs_cid": IPFS_CID_FIELD.read(self.posts, content_id),
                "verified": _truthy(ON_CHAIN_FIELD.read(self.posts, content_id)),
                "contract_tx": CONTRACT_TX_FIELD.read(self.posts, content_id),
            }

        return guarded_call(_read, session=self.db)
