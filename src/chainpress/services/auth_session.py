"""Wallet sign-in orchestration: challenge, verification and sessions."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from chainpress.core.errors import (
    MessageFieldMismatchError,
    NonceMismatchOrExpiredError,
    SessionInvalidError,
    SignatureInvalidError,
)
from chainpress.core.security import generate_session_token, hash_password, normalize_address
from chainpress.core.settings import settings
from chainpress.db.time import utcnow
from chainpress.models.user import User
from chainpress.repositories.user_repo import UserRepository
from chainpress.services.challenge import ChallengeMessage, normalize_domain
from chainpress.services.nonce_store import NonceStore, get_nonce_store
from chainpress.services.signature import SignatureVerifier
from chainpress.services.store_guard import guarded_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedSession:
    """Outcome of a successful wallet verification."""

    token: str
    user_id: int
    address: str
    created: bool


@dataclass(frozen=True)
class Profile:
    name: str
    email: str
    password: str


class AuthSessionManager:
    """Runs the challenge/verify state machine for wallet addresses.

    Per address: no challenge -> challenge issued -> verified, or failed/expired.
    Every gate in :meth:`verify` is hard: the first failure raises and the
    remaining gates are not evaluated.
    """

    def __init__(
        self,
        db: Session,
        *,
        nonce_store: NonceStore,
        verifier: SignatureVerifier | None = None,
        challenge: ChallengeMessage | None = None,
        domain: str | None = None,
        session_ttl_seconds: int | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.users = UserRepository(db)
        self.nonce_store = nonce_store
        self.verifier = verifier or SignatureVerifier()
        self.challenge = challenge or ChallengeMessage(settings.sign_in_preamble)
        self.domain = normalize_domain(domain or settings.service_domain)
        self.session_ttl = timedelta(
            seconds=settings.session_ttl_seconds if session_ttl_seconds is None
            else session_ttl_seconds
        )
        self._now = now

    def request_challenge(self, address: str) -> str:
        """Validate ``address`` and mint its challenge nonce."""
        return self.nonce_store.issue(normalize_address(address))

    def verify(
        self,
        address: str,
        signature: str,
        nonce: str,
        chain_id: int,
        message: str,
    ) -> VerifiedSession:
        """Check a signed challenge and issue a session token on success.

        The nonce is consumed before any other check, so a failed attempt
        still burns it and the same nonce can never verify twice.
        """
        address = normalize_address(address)
        nonce = (nonce or "").strip()
        if not (signature and nonce and message):
            raise MessageFieldMismatchError("missing_fields")

        if not self.nonce_store.consume(address, nonce):
            raise NonceMismatchOrExpiredError("nonce_not_consumable")

        parsed = self.challenge.parse(message)
        if not parsed.complete:
            logger.info(
                "Sign-in message for %s missing fields: %s",
                address,
                ", ".join(parsed.missing_fields),
            )
            raise MessageFieldMismatchError(f"missing:{','.join(parsed.missing_fields)}")

        mismatched = [
            name
            for name, ok in (
                ("domain", parsed.domain == self.domain),
                ("address", parsed.address == address),
                ("chain_id", parsed.chain_id == int(chain_id)),
                ("nonce", parsed.nonce == nonce),
            )
            if not ok
        ]
        if mismatched:
            logger.info("Sign-in message for %s mismatched: %s", address, ", ".join(mismatched))
            raise MessageFieldMismatchError(f"mismatch:{','.join(mismatched)}")

        if not self.verifier.verify(message, signature, address):
            raise SignatureInvalidError("signature_invalid")

        return guarded_call(lambda: self._issue_session(address), session=self.db)

    def _issue_session(self, address: str) -> VerifiedSession:
        user, created = self.users.get_or_create(address)
        token = generate_session_token()
        self.users.store_session_token(user, token, issued_at=self._now())
        self.db.commit()
        if created:
            logger.info("Created identity %s for %s", user.id, address)
        logger.info("Issued session for %s", address)
        return VerifiedSession(token=token, user_id=user.id, address=address, created=created)

    def check_session(self, address: str, token: str) -> User:
        """Return the identity holding ``token`` for ``address``.

        Raises:
            SessionInvalidError: If no live session matches.
        """
        address = normalize_address(address)
        user = guarded_call(lambda: self.users.get_by_address(address), session=self.db)
        return self._require_live_session(user, token)

    def authenticate_token(self, token: str) -> User:
        """Return the identity for a bearer session token."""
        user = guarded_call(lambda: self.users.get_by_session_token(token), session=self.db)
        return self._require_live_session(user, token)

    def _require_live_session(self, user: User | None, token: str) -> User:
        if user is None or not user.session_token or not token:
            raise SessionInvalidError("session_missing")
        if not secrets.compare_digest(user.session_token, token.strip()):
            raise SessionInvalidError("session_mismatch")
        issued_at = user.session_issued_at
        if issued_at is None:
            raise SessionInvalidError("session_missing")
        if issued_at.tzinfo is None:
            # SQLite drops tzinfo on round-trip; stored values are always UTC.
            issued_at = issued_at.replace(tzinfo=self._now().tzinfo)
        if self._now() - issued_at > self.session_ttl:
            raise SessionInvalidError("session_expired")
        return user

    def register(self, address: str, token: str, profile: Profile) -> User:
        """Upsert profile fields for the holder of a live session.

        The wallet signature is not re-checked; the session is the credential.
        """
        user = self.check_session(address, token)
        name = profile.name.strip() or f"user_{user.wallet_address[2:8]}"
        password_hash = hash_password(profile.password)

        def _update() -> User:
            self.users.update_profile(
                user,
                display_name=name,
                email=profile.email,
                password_hash=password_hash,
            )
            self.db.commit()
            return user

        updated = guarded_call(_update, session=self.db)
        logger.info("Profile set for %s", user.wallet_address)
        return updated


def get_auth_manager(db: Session) -> AuthSessionManager:
    return AuthSessionManager(db, nonce_store=get_nonce_store())
