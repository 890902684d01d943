from __future__ import annotations

from hashlib import sha256


def cache_key_for(origin: str, path: str) -> str:
    """Stable key of the cached comment list for ``path`` served from ``origin``."""
    # NUL separator: ("a", "/b") and ("a/", "b") never collide.
    return sha256(f"{origin}\x00{path}".encode("utf-8")).hexdigest()
