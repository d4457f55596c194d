"""Data access helpers for working with posts and post metadata."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from chainpress.models.post import Post, PostMeta

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def list_posts(
        self,
        *,
        search: str | None = None,
        author_id: int | None = None,
        statuses: Iterable[str] = ("publish", "draft", "pending"),
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[int, list[Post]]:
        """Return ``(total, rows)`` for one page of posts, newest first."""
        stmt = select(Post).where(Post.status.in_(tuple(statuses)))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))
        if author_id is not None:
            stmt = stmt.where(Post.author_id == author_id)

        total = self.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.session.scalars(
            stmt.order_by(Post.id.desc()).offset((page - 1) * per_page).limit(per_page)
        )
        return int(total), list(rows)

    def create(
        self,
        *,
        title: str,
        content: str,
        author_id: int | None = None,
        description: str = "",
        category: str = "General",
        link: str = "",
        status: str = "publish",
    ) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(
            title=title,
            content=content,
            author_id=author_id,
            description=description,
            category=category,
            link=link,
            status=status,
        )
        self.session.add(post)
        self.session.flush()
        return post

    def update(self, post: Post, **fields: object) -> Post:
        """Apply ``fields`` to ``post`` and flush."""
        for key, value in fields.items():
            setattr(post, key, value)
        self.session.flush()
        return post

    def get_meta(self, post_id: int, key: str) -> str:
        """Return a metadata value, or an empty string when the key is unset."""
        row = self.session.get(PostMeta, (post_id, key))
        return row.meta_value if row is not None else ""

    def get_meta_many(self, post_id: int, keys: Iterable[str]) -> dict[str, str]:
        """Return the stored values for ``keys``; unset keys are omitted."""
        rows = self.session.scalars(
            select(PostMeta).where(
                PostMeta.post_id == post_id,
                PostMeta.meta_key.in_(tuple(keys)),
            )
        )
        return {row.meta_key: row.meta_value for row in rows}

    def set_meta(self, post_id: int, key: str, value: str) -> None:
        """Insert or overwrite a metadata value."""
        row = self.session.get(PostMeta, (post_id, key))
        if row is None:
            self.session.add(PostMeta(post_id=post_id, meta_key=key, meta_value=value))
        else:
            row.meta_value = value
        self.session.flush()
