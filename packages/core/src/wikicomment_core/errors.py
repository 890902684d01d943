"""
Error taxonomy shared by the core and the HTTP layer.

Every failure carries a machine-readable code and the HTTP status it maps to,
so handlers can render ``{"status", "code", "error"}`` without inspecting
the exception type.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_PATH = "invalid_path"
    INVALID_BODY = "invalid_body"
    INVALID_OFFSET = "invalid_offset"
    INVALID_COMMENT = "invalid_comment"
    INVALID_DIFF = "invalid_diff"
    INVALID_COMMIT_HASH = "invalid_commit_hash"
    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    COMMIT_HASH_MISMATCH = "commit_hash_mismatch"
    INTERNAL_ERROR = "internal_error"


class CommentServiceError(Exception):
    status_code: int = 500
    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, code: ErrorCode | None = None) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        return {"status": self.status_code, "code": self.code.value, "error": self.message}


class ValidationError(CommentServiceError):
    """Malformed path, offset, comment, diff or commit hash. Always client-correctable."""

    status_code = 400
    default_code = ErrorCode.INVALID_BODY
    default_message = "Invalid request body"


class AuthenticationError(CommentServiceError):
    """Missing or invalid identity token or administrative secret."""

    status_code = 401
    default_code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class AuthorizationError(CommentServiceError):
    """Authenticated, but not the owner. Rendered as 401 like authentication failures."""

    status_code = 401
    default_code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class ConflictError(CommentServiceError):
    """The posted commit hash does not match the current build; the client should refetch and retry."""

    status_code = 409
    default_code = ErrorCode.COMMIT_HASH_MISMATCH
    default_message = (
        "Commit hash mismatch, usually due to outdated cache or running CI/CD, "
        "please retry after a few minutes"
    )
