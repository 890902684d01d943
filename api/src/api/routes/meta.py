"""Site metadata endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.auth import require_administrator
from api.config import settings
from api.deps import DbSession
from api.routes.comments import StatusResponse
from wikicomment_core.commit_hash import CommitHashGuard
from wikicomment_core.validation import validate_commit_hash

router = APIRouter()


class PutCommitHashBody(BaseModel):
    commit_hash: str | None = None


class GitHubAppInfo(BaseModel):
    client_id: str


class GitHubAppResponse(BaseModel):
    status: int = 200
    data: GitHubAppInfo


@router.get("/github-app", response_model=GitHubAppResponse)
def get_github_app() -> GitHubAppResponse:
    """Client id the frontend needs to start the OAuth flow."""
    return GitHubAppResponse(data=GitHubAppInfo(client_id=settings.github_client_id))


@router.put("/commithash", response_model=StatusResponse)
def put_commit_hash(body: PutCommitHashBody, request: Request, db: DbSession) -> StatusResponse:
    """Record the hash of the build that is now live. Called by CI after each deploy."""
    commit_hash = validate_commit_hash(body.commit_hash)
    require_administrator(request)
    CommitHashGuard(db).set(commit_hash)
    return StatusResponse()
