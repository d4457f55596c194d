"""Data access helpers for wallet identities."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from chainpress.db.time import utcnow
from chainpress.models.user import User

__all__ = ["UserRepository"]


class UserRepository:
    """Identity store keyed by wallet address.

    The sign-in core only looks identities up and asks for creation; it never
    deletes them.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_address(self, address: str) -> User | None:
        return self.session.scalars(
            select(User).where(User.wallet_address == address)
        ).first()

    def get_by_session_token(self, token: str) -> User | None:
        return self.session.scalars(select(User).where(User.session_token == token)).first()

    def create(self, address: str, *, display_name: str | None = None) -> User:
        user = User(wallet_address=address, display_name=display_name)
        self.session.add(user)
        self.session.flush()
        return user

    def get_or_create(self, address: str) -> tuple[User, bool]:
        """Return ``(user, created)`` for ``address``."""
        user = self.get_by_address(address)
        if user is not None:
            return user, False
        return self.create(address), True

    def store_session_token(
        self, user: User, token: str, *, issued_at: datetime | None = None
    ) -> User:
        user.session_token = token
        user.session_issued_at = issued_at or utcnow()
        self.session.flush()
        return user

    def update_profile(
        self,
        user: User,
        *,
        display_name: str,
        email: str,
        password_hash: str | None = None,
    ) -> User:
        """Upsert profile basics; the wallet binding is left untouched."""
        user.display_name = display_name
        user.email = email
        if password_hash is not None:
            user.password_hash = password_hash
        user.profile_set = True
        self.session.flush()
        return user
