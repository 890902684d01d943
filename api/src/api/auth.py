"""Bearer credential checks: user identity tokens and the administrative secret."""

import hmac
from typing import Any

import jwt
from fastapi import Request

from api.config import settings
from wikicomment_core.errors import AuthenticationError
from wikicomment_core.identity import Identity

JWT_ALGORITHM = "HS256"


def _bearer(request: Request) -> str | None:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, secret = authorization.partition(" ")
    if scheme != "Bearer" or not secret:
        return None
    return secret


def sign_token(identity: Identity, secret: str | None = None) -> str:
    key = secret if secret is not None else settings.jwt_secret
    if not key:
        raise RuntimeError("API_JWT_SECRET is not configured")
    payload: dict[str, Any] = {"provider": identity.provider, "id": identity.subject_id, "name": identity.name}
    return jwt.encode(payload, key, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str | None = None) -> Identity | None:
    key = secret if secret is not None else settings.jwt_secret
    if not key:
        return None
    try:
        payload = jwt.decode(token, key, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    provider = payload.get("provider")
    subject_id = payload.get("id")
    if not provider or subject_id is None:
        return None
    return Identity(provider=str(provider), subject_id=str(subject_id), name=str(payload.get("name") or ""))


def require_identity(request: Request) -> Identity:
    token = _bearer(request)
    identity = decode_token(token) if token else None
    if identity is None:
        raise AuthenticationError()
    return identity


def is_administrator(request: Request) -> bool:
    secret = _bearer(request)
    expected = settings.administrator_secret
    if not secret or not expected:
        return False
    return hmac.compare_digest(secret.encode("utf-8"), expected.encode("utf-8"))


def require_administrator(request: Request) -> None:
    if not is_administrator(request):
        raise AuthenticationError()
