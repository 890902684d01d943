"""OAuth login callback."""

import json
import logging
from typing import Annotated
from urllib.parse import unquote, urlencode

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from api.auth import sign_token
from api.deps import DbSession
from api.github import GitHubOAuthClient, get_oauth_client
from wikicomment_core.db.enums import OAuthProvider
from wikicomment_core.errors import ErrorCode, ValidationError
from wikicomment_core.identity import Identity
from wikicomment_core.store import CommentStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_state(raw_state: str) -> str:
    """Return the redirect target carried in the URL-encoded JSON ``state``."""
    try:
        state = json.loads(unquote(raw_state))
    except ValueError:
        raise ValidationError("Invalid request", code=ErrorCode.INVALID_REQUEST) from None
    redirect = state.get("redirect") if isinstance(state, dict) else None
    if not isinstance(redirect, str) or not redirect:
        raise ValidationError("Invalid request", code=ErrorCode.INVALID_REQUEST)
    return redirect


@router.get("/callback")
def oauth_callback(
    db: DbSession,
    github: Annotated[GitHubOAuthClient, Depends(get_oauth_client)],
    code: str | None = None,
    state: str | None = None,
) -> RedirectResponse:
    """Exchange the GitHub code for a signed identity token and send the user back."""
    if not code or not state:
        raise ValidationError("Invalid request", code=ErrorCode.INVALID_REQUEST)
    redirect = _parse_state(state)

    access_token = github.get_access_token(code)
    user = github.get_user(access_token)
    identity = Identity(provider=OAuthProvider.github.value, subject_id=user.id, name=user.display_name)

    token = sign_token(identity)
    CommentStore(db).register_commenter(identity)
    logger.info("Issued token for %s:%s", identity.provider, identity.subject_id)

    # Query parameter rather than a cookie: the wiki and this API live on different sites.
    return RedirectResponse(f"{redirect}?{urlencode({'oauth_token': token})}", status_code=302)
