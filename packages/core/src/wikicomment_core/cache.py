"""
Read-through cache of rendered comment lists, keyed by (origin, path).

Entries have no TTL; they live until a write purges them. A purge leaves a
tombstone row and bumps its generation. A reader records the generation
before it builds a response and passes it to ``populate``, which refuses to
write if a purge landed in between, so a list computed before a write can
never be cached after that write's purge.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wikicomment_core.db.models import ResponseCacheEntry
from wikicomment_core.hashing import cache_key_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedResponse:
    body: str
    content_type: str = "application/json"


class CacheGate:
    """Each operation opens its own short-lived session, so it is safe to call after the request ended."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def lookup(self, origin: str, path: str) -> CachedResponse | None:
        with self.session_factory() as session:
            entry = session.get(ResponseCacheEntry, cache_key_for(origin, path))
            if entry is None or entry.body is None:
                logger.debug("Cache miss %s%s", origin, path)
                return None
            logger.debug("Cache hit %s%s", origin, path)
            return CachedResponse(body=entry.body, content_type=entry.content_type)

    def generation(self, origin: str, path: str) -> int:
        """Number of purges seen by ``path``; read this before computing a response to populate."""
        with self.session_factory() as session:
            entry = session.get(ResponseCacheEntry, cache_key_for(origin, path))
            return entry.generation if entry is not None else 0

    def populate(
        self, origin: str, path: str, response: CachedResponse, *, generation: int | None = None
    ) -> bool:
        """
        Store a response. With ``generation``, only store it if no purge happened
        since that generation was read. Returns whether the entry was written.
        """
        key = cache_key_for(origin, path)
        with self.session_factory() as session:
            entry = session.get(ResponseCacheEntry, key, with_for_update=True)
            if entry is None:
                if generation:
                    logger.debug("Cache populate skipped %s%s (entry gone)", origin, path)
                    return False
                entry = ResponseCacheEntry(cache_key=key, origin=origin, path=path, generation=0)
                session.add(entry)
            elif generation is not None and entry.generation != generation:
                logger.debug("Cache populate skipped %s%s (purged since read)", origin, path)
                return False
            entry.body = response.body
            entry.content_type = response.content_type
            entry.created_at = datetime.now(timezone.utc)
            try:
                session.commit()
            except IntegrityError:
                # A concurrent purge or populate created the row first.
                session.rollback()
                logger.debug("Cache populate lost race on %s%s", origin, path)
                return False
        return True

    def purge(self, origin: str, path: str) -> bool:
        """Drop the entry for one path. Returns whether anything was removed."""
        key = cache_key_for(origin, path)
        for _ in range(2):
            with self.session_factory() as session:
                entry = session.get(ResponseCacheEntry, key, with_for_update=True)
                if entry is None:
                    session.add(ResponseCacheEntry(cache_key=key, origin=origin, path=path, body=None, generation=1))
                    removed = False
                else:
                    removed = entry.body is not None
                    entry.body = None
                    entry.generation += 1
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    continue
            logger.debug("Cache purge %s%s (removed=%s)", origin, path, removed)
            return removed
        raise RuntimeError(f"could not purge cache entry for {origin}{path}")

    def purge_all(self, origin: str) -> int:
        with self.session_factory() as session:
            result = session.execute(
                update(ResponseCacheEntry)
                .where(ResponseCacheEntry.origin == origin)
                .where(ResponseCacheEntry.body.is_not(None))
                .values(body=None, generation=ResponseCacheEntry.generation + 1)
                .execution_options(synchronize_session=False)
            )
            removed = result.rowcount or 0
            session.commit()
        logger.info("Cache purged for %s (%d entries)", origin, removed)
        return removed
