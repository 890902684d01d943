"""
Authoritative comment storage.

The store is a pure data layer: it keeps the offset invariant and makes every
mutation a single transaction, but leaves ownership checks to callers via
``get_owner``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wikicomment_core.db.models import Comment, Commenter
from wikicomment_core.identity import Identity
from wikicomment_core.offsets import Edit, OffsetTransformer, Span
from wikicomment_core.validation import validate_comment, validate_offset

logger = logging.getLogger(__name__)


class CommentStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def register_commenter(self, identity: Identity, *, commit: bool = True) -> Commenter:
        """Insert or refresh the commenter row for an OAuth identity."""
        commenter = self.session.scalars(
            select(Commenter)
            .where(Commenter.oauth_provider == identity.provider)
            .where(Commenter.oauth_user_id == identity.subject_id)
        ).first()
        if commenter is None:
            commenter = Commenter(
                name=identity.name or identity.subject_id,
                oauth_provider=identity.provider,
                oauth_user_id=identity.subject_id,
            )
            self.session.add(commenter)
        elif identity.name and commenter.name != identity.name:
            commenter.name = identity.name
        self.session.flush()
        if commit:
            self.session.commit()
        return commenter

    def create(
        self,
        *,
        path: str,
        offset: Span,
        commenter: Identity,
        body: str,
        commit_hash: str | None = None,
        commit: bool = True,
    ) -> Comment:
        validate_offset(offset.start, offset.end)
        validate_comment(body)
        owner = self.register_commenter(commenter, commit=False)
        comment = Comment(
            path=path,
            offset_start=offset.start,
            offset_end=offset.end,
            commenter_id=owner.commenter_id,
            body=body,
            commit_hash=commit_hash,
        )
        self.session.add(comment)
        self.session.flush()
        if commit:
            self.session.commit()
        logger.info("Comment %s created on %s", comment.comment_id, path)
        return comment

    def get(self, comment_id: int) -> Comment | None:
        return self.session.get(Comment, comment_id)

    def get_owner(self, comment_id: int) -> Identity | None:
        comment = self.get(comment_id)
        if comment is None:
            return None
        return comment.commenter.identity()

    def update(self, comment_id: int, body: str) -> Comment | None:
        validate_comment(body)
        comment = self.session.get(Comment, comment_id, with_for_update=True)
        if comment is None:
            return None
        comment.body = body
        comment.last_edited_at = datetime.now(timezone.utc)
        self.session.commit()
        logger.info("Comment %s edited", comment_id)
        return comment

    def delete(self, comment_id: int) -> str | None:
        """Delete a comment and return the path it was anchored to."""
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            return None
        path = comment.path
        self.session.delete(comment)
        self.session.commit()
        logger.info("Comment %s deleted", comment_id)
        return path

    def list_by_path(self, path: str) -> Sequence[Comment]:
        return (
            self.session.scalars(
                select(Comment)
                .where(Comment.path == path)
                .where(Comment.offset_start >= 0)
                .where(Comment.offset_start < Comment.offset_end)
                .order_by(Comment.comment_id.asc())
            )
            .unique()
            .all()
        )

    def bulk_rewrite_path(self, old_path: str, new_path: str) -> int:
        """Move every comment on ``old_path`` to ``new_path`` in one statement. Offsets are untouched."""
        result = self.session.execute(
            update(Comment)
            .where(Comment.path == old_path)
            .values(path=new_path)
            .execution_options(synchronize_session=False)
        )
        moved = result.rowcount or 0
        self.session.commit()
        logger.info("Renamed %s -> %s (%d comments)", old_path, new_path, moved)
        return moved

    def bulk_apply_offset_edits(
        self, path: str, edits: Sequence[Edit], *, new_length: int | None = None
    ) -> int:
        """Rewrite the offsets of every comment on ``path`` for a batch of text edits."""
        transformer = OffsetTransformer(edits, new_length=new_length)
        comments = self.session.scalars(
            select(Comment).where(Comment.path == path).order_by(Comment.comment_id).with_for_update()
        ).unique().all()

        changed = 0
        for comment in comments:
            span = transformer.transform(Span(comment.offset_start, comment.offset_end))
            if (span.start, span.end) != (comment.offset_start, comment.offset_end):
                comment.offset_start = span.start
                comment.offset_end = span.end
                changed += 1
        self.session.commit()
        logger.info("Applied %d edits to %s (%d of %d comments moved)", len(edits), path, changed, len(comments))
        return changed


class PathRenamer:
    """Repoints all comments of a renamed document."""

    def __init__(self, store: CommentStore) -> None:
        self.store = store

    def rename(self, old_path: str, new_path: str) -> int:
        if old_path == new_path:
            return 0
        return self.store.bulk_rewrite_path(old_path, new_path)
