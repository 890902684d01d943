from conftest import ADMIN_HEADERS, ALICE, BOB, COMMIT_HASH, auth_headers, comment_url


def _list(client, path):
    resp = client.get(comment_url(path))
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def test_post_then_get(client, post_comment, notifier):
    resp = post_comment("/basic/dp", 3, 9, body="Great section")
    assert resp.json() == {"status": 200}

    data = _list(client, "/basic/dp")
    assert len(data) == 1
    assert data[0]["offset"] == {"start": 3, "end": 9}
    assert data[0]["comment"] == "Great section"
    assert data[0]["commenter"] == {"name": "Alice"}
    assert data[0]["last_edited_time"] is None
    assert "oauth_user_id" not in data[0]["commenter"]

    assert len(notifier.events) == 1
    assert notifier.events[0].path == "/basic/dp"
    assert notifier.events[0].commenter_name == "Alice"


def test_comments_come_back_in_creation_order(client, post_comment):
    post_comment("/a", 10, 12, body="later offset", identity=BOB)
    post_comment("/a", 0, 2, body="earlier offset")
    assert [c["comment"] for c in _list(client, "/a")] == ["later offset", "earlier offset"]


def test_post_with_stale_commit_hash_conflicts(client, commit_hash):
    resp = client.post(
        comment_url("/a"),
        json={"offset": {"start": 0, "end": 1}, "comment": "hi", "commit_hash": "0000000"},
        headers=auth_headers(ALICE),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "commit_hash_mismatch"
    assert _list(client, "/a") == []


def test_post_before_any_build_is_recorded_conflicts(client):
    resp = client.post(
        comment_url("/a"),
        json={"offset": {"start": 0, "end": 1}, "comment": "hi", "commit_hash": COMMIT_HASH},
        headers=auth_headers(ALICE),
    )
    assert resp.status_code == 409


def test_post_requires_identity_token(client, commit_hash):
    body = {"offset": {"start": 0, "end": 1}, "comment": "hi", "commit_hash": commit_hash}
    assert client.post(comment_url("/a"), json=body).status_code == 401
    assert client.post(comment_url("/a"), json=body, headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.post(comment_url("/a"), json=body, headers=ADMIN_HEADERS).status_code == 401
    assert _list(client, "/a") == []


def test_post_rejects_invalid_offsets(client, commit_hash):
    for offset, code in [
        ({"start": 5, "end": 5}, "invalid_offset"),
        ({"start": 6, "end": 2}, "invalid_offset"),
        ({"start": -1, "end": 2}, "invalid_offset"),
        ({"start": 1}, "invalid_body"),
    ]:
        resp = client.post(
            comment_url("/a"),
            json={"offset": offset, "comment": "hi", "commit_hash": commit_hash},
            headers=auth_headers(ALICE),
        )
        assert resp.status_code == 400, offset
        assert resp.json()["code"] == code


def test_post_rejects_invalid_comment(client, commit_hash):
    for text in ["", "x" * 65536]:
        resp = client.post(
            comment_url("/a"),
            json={"offset": {"start": 0, "end": 1}, "comment": text, "commit_hash": commit_hash},
            headers=auth_headers(ALICE),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_comment"


def test_post_accepts_longest_comment(client, post_comment):
    post_comment("/a", 0, 1, body="x" * 65535)
    assert len(_list(client, "/a")[0]["comment"]) == 65535


def test_post_rejects_missing_fields_and_bad_json(client, commit_hash):
    headers = auth_headers(ALICE)
    resp = client.post(comment_url("/a"), json={"offset": {"start": 0, "end": 1}, "comment": "hi"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"status": 400, "code": "invalid_body", "error": "Invalid request body"}

    resp = client.post(comment_url("/a"), content=b"{not json", headers={**headers, "Content-Type": "application/json"})
    assert resp.status_code == 400


def test_relative_path_is_rejected(client):
    resp = client.get(comment_url("docs/a"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_path"


def test_path_is_decoded_exactly_once(client, post_comment):
    # The document is literally named "/x%41"; it must not alias "/xA".
    post_comment("/x%41", 0, 1)
    assert len(_list(client, "/x%41")) == 1
    assert _list(client, "/xA") == []


def test_encoded_slash_is_part_of_the_name(client, post_comment):
    post_comment("/a%2Fb", 0, 1)
    assert _list(client, "/a/b") == []
    assert len(_list(client, "/a%2Fb")) == 1


def test_edit_own_comment(client, post_comment):
    post_comment("/a", 0, 4, body="tpyo")
    comment_id = _list(client, "/a")[0]["id"]

    resp = client.patch(comment_url("/a", comment_id), json={"comment": "typo"}, headers=auth_headers(ALICE))
    assert resp.status_code == 200

    data = _list(client, "/a")
    assert data[0]["comment"] == "typo"
    assert data[0]["last_edited_time"] is not None


def test_cannot_edit_someone_elses_comment(client, post_comment):
    post_comment("/a", 0, 4, body="original")
    comment_id = _list(client, "/a")[0]["id"]

    resp = client.patch(comment_url("/a", comment_id), json={"comment": "hijacked"}, headers=auth_headers(BOB))
    assert resp.status_code == 401
    assert _list(client, "/a")[0]["comment"] == "original"


def test_edit_validation(client, post_comment):
    post_comment("/a", 0, 4)
    comment_id = _list(client, "/a")[0]["id"]
    headers = auth_headers(ALICE)

    assert client.patch(comment_url("/a", comment_id), json={"comment": ""}, headers=headers).status_code == 400
    assert client.patch(comment_url("/a", "abc"), json={"comment": "x"}, headers=headers).status_code == 400
    assert client.patch(comment_url("/a", 9999), json={"comment": "x"}, headers=headers).status_code == 401
    assert client.patch(comment_url("/a", comment_id), json={"comment": "x"}).status_code == 401


def test_delete_own_comment(client, post_comment):
    post_comment("/a", 0, 4)
    comment_id = _list(client, "/a")[0]["id"]

    resp = client.delete(comment_url("/a", comment_id), headers=auth_headers(ALICE))
    assert resp.status_code == 200
    assert _list(client, "/a") == []


def test_cannot_delete_someone_elses_comment(client, post_comment):
    post_comment("/a", 0, 4)
    comment_id = _list(client, "/a")[0]["id"]

    assert client.delete(comment_url("/a", comment_id), headers=auth_headers(BOB)).status_code == 401
    assert client.delete(comment_url("/a", comment_id)).status_code == 401
    assert len(_list(client, "/a")) == 1


def test_notification_failure_does_not_fail_post(client, notifier, post_comment):
    def broken(event):
        raise RuntimeError("telegram is down")

    notifier.notify = broken
    post_comment("/a", 0, 1)
    assert len(_list(client, "/a")) == 1
