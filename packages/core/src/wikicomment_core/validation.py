"""Shape checks run before any mutation is attempted."""

from __future__ import annotations

from urllib.parse import unquote

from wikicomment_core.errors import ErrorCode, ValidationError

MAX_COMMENT_LENGTH = 65535


def is_valid_path(path: str | None) -> bool:
    return path is not None and path.startswith("/")


def validate_path(path: str | None) -> str:
    """Require an already-decoded document path to be absolute."""
    if not is_valid_path(path):
        raise ValidationError("Invalid path", code=ErrorCode.INVALID_PATH)
    return path  # type: ignore[return-value]


def validate_and_decode_path(path: str | None) -> str:
    """Percent-decode a raw document path once and require it to be absolute."""
    if path is None:
        raise ValidationError("Invalid path", code=ErrorCode.INVALID_PATH)
    return validate_path(unquote(path))


def validate_target_path(path: str | None) -> str:
    if not is_valid_path(path):
        raise ValidationError("Invalid request body", code=ErrorCode.INVALID_BODY)
    return path  # type: ignore[return-value]


def validate_offset(start: int | None, end: int | None) -> tuple[int, int]:
    if start is None or end is None:
        raise ValidationError("Invalid request body", code=ErrorCode.INVALID_BODY)
    if start < 0 or end < 0 or start >= end:
        raise ValidationError("Invalid offset", code=ErrorCode.INVALID_OFFSET)
    return start, end


def validate_comment(body: str | None) -> str:
    if body is None or not (1 <= len(body) <= MAX_COMMENT_LENGTH):
        raise ValidationError("Invalid comment", code=ErrorCode.INVALID_COMMENT)
    return body


def validate_commit_hash(commit_hash: str | None) -> str:
    if commit_hash is None or len(commit_hash) == 0:
        raise ValidationError("Invalid commit hash", code=ErrorCode.INVALID_COMMIT_HASH)
    return commit_hash
