"""GitHub OAuth code exchange."""

from collections.abc import Generator
from dataclasses import dataclass
from typing import Any

import httpx

from api.config import settings
from wikicomment_core.errors import ErrorCode, ValidationError

GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
USER_AGENT = "wikicomment/0.1"


@dataclass(frozen=True)
class GitHubUser:
    id: str
    login: str
    name: str | None

    @property
    def display_name(self) -> str:
        return self.name or self.login


class GitHubOAuthClient:
    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout_s: float = 15.0,
    ) -> None:
        self.client_id = client_id if client_id is not None else settings.github_client_id
        self.client_secret = client_secret if client_secret is not None else settings.github_client_secret
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_s),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubOAuthClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_access_token(self, code: str) -> str:
        resp = self._client.post(
            GITHUB_TOKEN_URL,
            data={"client_id": self.client_id, "client_secret": self.client_secret, "code": code},
        )
        resp.raise_for_status()
        body: dict[str, Any] = resp.json()
        # GitHub answers 200 with an "error" field for a bad or expired code.
        token = body.get("access_token")
        if not token:
            raise ValidationError("Invalid request", code=ErrorCode.INVALID_REQUEST)
        return str(token)

    def get_user(self, access_token: str) -> GitHubUser:
        resp = self._client.get(GITHUB_USER_URL, headers={"Authorization": f"Bearer {access_token}"})
        resp.raise_for_status()
        body: dict[str, Any] = resp.json()
        return GitHubUser(id=str(body["id"]), login=str(body["login"]), name=body.get("name"))


def get_oauth_client() -> Generator[GitHubOAuthClient, None, None]:
    client = GitHubOAuthClient()
    try:
        yield client
    finally:
        client.close()
