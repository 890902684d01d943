"""
The commit hash of the last acknowledged site build.

Stored as a single ``meta`` row so every request process sees the same value.
Comments posted against any other hash were anchored on stale text and are
rejected with a conflict.
"""

from __future__ import annotations

import hmac
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from wikicomment_core.db.enums import MetaKey
from wikicomment_core.db.models import Meta
from wikicomment_core.errors import ConflictError
from wikicomment_core.validation import validate_commit_hash

logger = logging.getLogger(__name__)


class CommitHashGuard:
    def __init__(self, session: Session) -> None:
        self.session = session

    def current(self, *, lock: bool = False) -> str | None:
        query = select(Meta).where(Meta.key == MetaKey.commit_hash.value)
        if lock:
            # Serialises concurrent posts against a concurrent hash update.
            query = query.with_for_update()
        row = self.session.scalars(query).first()
        return row.value if row is not None else None

    def compare(self, candidate: str | None, *, lock: bool = False) -> bool:
        stored = self.current(lock=lock)
        if not stored or not candidate:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))

    def require(self, candidate: str | None, *, lock: bool = False) -> None:
        if not self.compare(candidate, lock=lock):
            raise ConflictError()

    def set(self, new_hash: str) -> None:
        """Unconditionally replace the stored hash. Commits."""
        validate_commit_hash(new_hash)
        row = self.session.get(Meta, MetaKey.commit_hash.value, with_for_update=True)
        if row is None:
            self.session.add(Meta(key=MetaKey.commit_hash.value, value=new_hash))
        else:
            row.value = new_hash
        self.session.commit()
        logger.info("Commit hash set to %s", new_hash)
