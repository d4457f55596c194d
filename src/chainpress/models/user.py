"""SQLAlchemy model for wallet-bound identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from chainpress.db.session import Base
from chainpress.db.time import utcnow


class User(Base):
    """Identity keyed by a lowercase wallet address."""

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wallet_address: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_set: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Bearer credential minted on wallet verification; never derived from the signature.
    session_token: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    session_issued_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
