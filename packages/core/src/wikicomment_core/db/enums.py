from __future__ import annotations

import enum


class MetaKey(str, enum.Enum):
    commit_hash = "commit_hash"


class DocumentChangeType(str, enum.Enum):
    renamed = "renamed"
    modified = "modified"


class OAuthProvider(str, enum.Enum):
    github = "github"
