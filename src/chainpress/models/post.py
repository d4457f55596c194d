"""SQLAlchemy models for posts and their key/value metadata."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chainpress.db.session import Base
from chainpress.db.time import utcnow

POST_STATUSES = ("publish", "draft", "pending")


class Post(Base):
    """Content entity whose raw ``content`` is fingerprinted on every save."""

    __tablename__ = "post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(Text, nullable=False, default="General")
    link: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="publish")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    meta: Mapped[list[PostMeta]] = relationship(
        "PostMeta",
        back_populates="post",
        cascade="all, delete-orphan",
    )


class PostMeta(Base):
    """Arbitrary string metadata attached to a post, one row per key."""

    __tablename__ = "post_meta"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    meta_key: Mapped[str] = mapped_column(Text, primary_key=True)
    meta_value: Mapped[str] = mapped_column(Text, nullable=False, default="")

    post: Mapped[Post] = relationship("Post", back_populates="meta")
