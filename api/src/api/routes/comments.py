"""Comment endpoints."""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Request, Response
from pydantic import AliasChoices, BaseModel, Field

from api.auth import require_administrator, require_identity
from api.deps import Cache, DbSession, Notifier
from api.tasks import fire_and_forget
from wikicomment_core.cache import CachedResponse
from wikicomment_core.commit_hash import CommitHashGuard
from wikicomment_core.db.enums import DocumentChangeType
from wikicomment_core.db.models import Comment
from wikicomment_core.errors import AuthorizationError, ValidationError
from wikicomment_core.identity import is_same_commenter
from wikicomment_core.notify import CommentEvent
from wikicomment_core.offsets import Edit, Span, validate_edits
from wikicomment_core.store import CommentStore, PathRenamer
from wikicomment_core.validation import (
    validate_comment,
    validate_offset,
    validate_path,
    validate_target_path,
)

router = APIRouter()


class OffsetBody(BaseModel):
    start: int | None = None
    end: int | None = None


class PostCommentBody(BaseModel):
    offset: OffsetBody | None = None
    comment: str | None = None
    commit_hash: str | None = None


class PatchCommentIDBody(BaseModel):
    comment: str | None = None


class DiffEdit(BaseModel):
    """One replaced span of the previous document text."""

    start: int
    end: int
    inserted_length: int = Field(validation_alias=AliasChoices("inserted_length", "insertedLength"))


class PatchCommentBody(BaseModel):
    type: str | None = None
    to: str | None = None
    diff: list[DiffEdit] | None = None
    # Length of the new document text; bounds spans that had to be collapsed.
    length: int | None = None


class StatusResponse(BaseModel):
    status: int = 200


class CommenterInfo(BaseModel):
    name: str


class OffsetInfo(BaseModel):
    start: int
    end: int


class CommentInfo(BaseModel):
    id: int
    offset: OffsetInfo
    commenter: CommenterInfo
    comment: str
    created_time: datetime
    last_edited_time: datetime | None

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentInfo":
        return cls(
            id=comment.comment_id,
            offset=OffsetInfo(start=comment.offset_start, end=comment.offset_end),
            commenter=CommenterInfo(name=comment.commenter.name),
            comment=comment.body,
            created_time=comment.created_at,
            last_edited_time=comment.last_edited_at,
        )


class CommentListResponse(BaseModel):
    status: int = 200
    data: list[CommentInfo]


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def _purge_paths(background: BackgroundTasks, cache: Cache, origin: str, *paths: str) -> None:
    for path in dict.fromkeys(paths):
        fire_and_forget(background, cache.purge, origin, path)


@router.patch("/{path:path}/id/{comment_id}", response_model=StatusResponse)
def patch_comment(
    path: str,
    comment_id: int,
    body: PatchCommentIDBody,
    request: Request,
    background: BackgroundTasks,
    db: DbSession,
    cache: Cache,
) -> StatusResponse:
    """Edit the body of one's own comment."""
    doc_path = validate_path(path)
    text = validate_comment(body.comment)
    identity = require_identity(request)

    store = CommentStore(db)
    if not is_same_commenter(store.get_owner(comment_id), identity):
        raise AuthorizationError()

    comment = store.update(comment_id, text)
    stored_path = comment.path if comment is not None else doc_path
    _purge_paths(background, cache, request_origin(request), doc_path, stored_path)
    return StatusResponse()


@router.delete("/{path:path}/id/{comment_id}", response_model=StatusResponse)
def delete_comment(
    path: str,
    comment_id: int,
    request: Request,
    background: BackgroundTasks,
    db: DbSession,
    cache: Cache,
) -> StatusResponse:
    """Delete one's own comment."""
    doc_path = validate_path(path)
    identity = require_identity(request)

    store = CommentStore(db)
    if not is_same_commenter(store.get_owner(comment_id), identity):
        raise AuthorizationError()

    stored_path = store.delete(comment_id) or doc_path
    _purge_paths(background, cache, request_origin(request), doc_path, stored_path)
    return StatusResponse()


@router.post("/{path:path}", response_model=StatusResponse)
def post_comment(
    path: str,
    body: PostCommentBody,
    request: Request,
    background: BackgroundTasks,
    db: DbSession,
    cache: Cache,
    notifier: Notifier,
) -> StatusResponse:
    """Anchor a new comment to a span of the document at ``path``."""
    doc_path = validate_path(path)
    if body.offset is None or body.comment is None or body.commit_hash is None:
        raise ValidationError()
    start, end = validate_offset(body.offset.start, body.offset.end)
    text = validate_comment(body.comment)
    identity = require_identity(request)

    # The hash check and the insert share one transaction.
    CommitHashGuard(db).require(body.commit_hash, lock=True)
    CommentStore(db).create(
        path=doc_path,
        offset=Span(start, end),
        commenter=identity,
        body=text,
        commit_hash=body.commit_hash,
    )

    event = CommentEvent(
        path=doc_path,
        commenter_name=identity.name or identity.subject_id,
        body=text,
        offset_start=start,
        offset_end=end,
    )
    fire_and_forget(background, notifier.notify, event)
    _purge_paths(background, cache, request_origin(request), doc_path)
    return StatusResponse()


@router.get("/{path:path}", response_model=CommentListResponse)
def get_comments(
    path: str,
    request: Request,
    background: BackgroundTasks,
    db: DbSession,
    cache: Cache,
) -> Response:
    """List the comments of a document, served from the response cache when possible."""
    doc_path = validate_path(path)
    origin = request_origin(request)

    cached = cache.lookup(origin, doc_path)
    if cached is not None:
        return Response(content=cached.body, media_type=cached.content_type, headers={"X-Cache": "HIT"})

    # Generation is read before the list; populate is refused if a purge lands in between.
    generation = cache.generation(origin, doc_path)
    comments = CommentStore(db).list_by_path(doc_path)
    payload = CommentListResponse(data=[CommentInfo.from_model(c) for c in comments]).model_dump_json()
    fire_and_forget(
        background, cache.populate, origin, doc_path, CachedResponse(body=payload), generation=generation
    )
    return Response(content=payload, media_type="application/json", headers={"X-Cache": "MISS"})


@router.patch("/{path:path}", response_model=StatusResponse)
def patch_document(
    path: str,
    body: PatchCommentBody,
    request: Request,
    background: BackgroundTasks,
    db: DbSession,
    cache: Cache,
) -> StatusResponse:
    """Carry comments along when the document at ``path`` is renamed or edited."""
    doc_path = validate_path(path)

    if body.type == DocumentChangeType.renamed.value:
        new_path = validate_target_path(body.to)
        edits: list[Edit] = []
    elif body.type == DocumentChangeType.modified.value:
        if not body.diff:
            raise ValidationError()
        edits = validate_edits(Edit(e.start, e.end, e.inserted_length) for e in body.diff)
        if body.length is not None and body.length < 0:
            raise ValidationError()
    else:
        raise ValidationError()

    require_administrator(request)

    store = CommentStore(db)
    origin = request_origin(request)
    if body.type == DocumentChangeType.renamed.value:
        PathRenamer(store).rename(doc_path, new_path)
        _purge_paths(background, cache, origin, doc_path, new_path)
    else:
        store.bulk_apply_offset_edits(doc_path, edits, new_length=body.length)
        _purge_paths(background, cache, origin, doc_path)
    return StatusResponse()
