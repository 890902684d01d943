"""FastAPI dependencies for database access, caching and notification."""

from collections.abc import Callable, Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from wikicomment_core.cache import CacheGate
from wikicomment_core.db.session import SessionLocal
from wikicomment_core.notify import TelegramNotifier


def get_session_factory() -> Callable[[], Session]:
    """Session factory shared by request handlers and detached tasks."""
    return SessionLocal


def get_db(
    factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
) -> Generator[Session, None, None]:
    """Yield a database session for request handling."""
    db = factory()
    try:
        yield db
    finally:
        db.close()


def get_cache_gate(
    factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
) -> CacheGate:
    return CacheGate(factory)


def get_notifier() -> TelegramNotifier:
    return TelegramNotifier()


DbSession = Annotated[Session, Depends(get_db)]
Cache = Annotated[CacheGate, Depends(get_cache_gate)]
Notifier = Annotated[TelegramNotifier, Depends(get_notifier)]
