from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikicomment_core.db.base import Base
from wikicomment_core.identity import Identity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Commenter(Base):
    __tablename__ = "commenter"

    commenter_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    oauth_provider: Mapped[str] = mapped_column(String(32), nullable=False)
    oauth_user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    __table_args__ = (UniqueConstraint("oauth_provider", "oauth_user_id", name="uq_commenter_oauth"),)

    def identity(self) -> Identity:
        return Identity(provider=self.oauth_provider, subject_id=self.oauth_user_id, name=self.name)


class Comment(Base):
    __tablename__ = "comment"

    # Autoincrement ids are never reused, so id order is creation order.
    comment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    offset_start: Mapped[int] = mapped_column(Integer, nullable=False)
    offset_end: Mapped[int] = mapped_column(Integer, nullable=False)
    commenter_id: Mapped[int] = mapped_column(Integer, ForeignKey("commenter.commenter_id"), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    # Build the client was looking at when it computed the offsets.
    commit_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    last_edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    commenter: Mapped[Commenter] = relationship(lazy="joined", innerjoin=True)

    __table_args__ = (
        CheckConstraint("offset_start >= 0 AND offset_start < offset_end", name="ck_comment_offset"),
        Index("ix_comment_path_id", "path", "comment_id"),
    )


class Meta(Base):
    __tablename__ = "meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class ResponseCacheEntry(Base):
    __tablename__ = "response_cache"

    cache_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    origin: Mapped[str] = mapped_column(String(512), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    # NULL body marks a purged entry; generation counts purges.
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    generation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    content_type: Mapped[str] = mapped_column(String(128), nullable=False, default="application/json")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (Index("ix_response_cache_origin", "origin"),)
