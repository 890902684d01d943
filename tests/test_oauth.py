import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from api.auth import decode_token
from api.github import GitHubOAuthClient, get_oauth_client
from api.main import app
from wikicomment_core.db.models import Commenter
from wikicomment_core.identity import Identity

STATE = json.dumps({"redirect": "https://oi-wiki.org/basic/dp/"})


def _github_handler(token_body):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/login/oauth/access_token":
            assert b"code=good-code" in request.content
            return httpx.Response(200, json=token_body)
        if request.url.path == "/user":
            assert request.headers["Authorization"] == "Bearer gho_token"
            return httpx.Response(200, json={"id": 42, "login": "carol", "name": None})
        return httpx.Response(404)

    return handler


@pytest.fixture()
def github(client):
    def install(token_body):
        transport = httpx.MockTransport(_github_handler(token_body))
        app.dependency_overrides[get_oauth_client] = lambda: GitHubOAuthClient(transport=transport)

    yield install
    app.dependency_overrides.pop(get_oauth_client, None)


def test_callback_issues_token_and_registers_commenter(client, github, session):
    github({"access_token": "gho_token"})

    resp = client.get("/oauth/callback", params={"code": "good-code", "state": STATE}, follow_redirects=False)

    assert resp.status_code == 302
    location = urlparse(resp.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == "https://oi-wiki.org/basic/dp/"
    token = parse_qs(location.query)["oauth_token"][0]
    identity = decode_token(token)
    assert identity == Identity("github", "42")
    assert identity.name == "carol"

    commenter = session.query(Commenter).one()
    assert (commenter.oauth_provider, commenter.oauth_user_id, commenter.name) == ("github", "42", "carol")


def test_callback_rejects_bad_code(client, github):
    github({"error": "bad_verification_code"})
    resp = client.get("/oauth/callback", params={"code": "good-code", "state": STATE}, follow_redirects=False)
    assert resp.status_code == 400


@pytest.mark.parametrize(
    "params",
    [
        {"state": STATE},
        {"code": "good-code"},
        {"code": "good-code", "state": "{not json"},
        {"code": "good-code", "state": json.dumps({"to": "https://oi-wiki.org"})},
        {"code": "good-code", "state": json.dumps(["https://oi-wiki.org"])},
    ],
)
def test_callback_rejects_bad_query(client, github, params):
    github({"access_token": "gho_token"})
    resp = client.get("/oauth/callback", params=params, follow_redirects=False)
    assert resp.status_code == 400
