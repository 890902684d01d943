from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from wikicomment_core.cache import CacheGate
from wikicomment_core.commit_hash import CommitHashGuard
from wikicomment_core.db import models  # noqa: F401
from wikicomment_core.db.base import Base
from wikicomment_core.db.session import SessionLocal, engine
from wikicomment_core.errors import CommentServiceError
from wikicomment_core.offsets import Edit
from wikicomment_core.store import CommentStore, PathRenamer
from wikicomment_core.validation import validate_and_decode_path, validate_target_path

app = typer.Typer(help="Operator commands for the wiki comment store.")
console = Console()


def _fail(exc: CommentServiceError) -> NoReturn:
    typer.echo(f"error: {exc.message} ({exc.code.value})", err=True)
    raise typer.Exit(code=1)


@app.command("init-db")
def init_db() -> None:
    """
    Create all tables directly from the models.

    Intended for local development; production databases go through Alembic.
    """
    Base.metadata.create_all(engine)
    typer.echo("tables created")


@app.command("set-commit-hash")
def set_commit_hash(commit_hash: str) -> None:
    """Record the hash of the build that is now live."""
    with SessionLocal() as session:
        try:
            CommitHashGuard(session).set(commit_hash)
        except CommentServiceError as exc:
            _fail(exc)
    typer.echo(f"commit hash: {commit_hash}")


@app.command("show-commit-hash")
def show_commit_hash() -> None:
    with SessionLocal() as session:
        current = CommitHashGuard(session).current()
    typer.echo(current or "(unset)")


@app.command("list")
def list_comments(path: str) -> None:
    """Show the comments anchored to a document."""
    try:
        doc_path = validate_and_decode_path(path)
    except CommentServiceError as exc:
        _fail(exc)
    with SessionLocal() as session:
        comments = CommentStore(session).list_by_path(doc_path)
        table = Table(title=f"{doc_path} ({len(comments)} comments)")
        table.add_column("id", justify="right")
        table.add_column("offset")
        table.add_column("commenter")
        table.add_column("comment", overflow="fold")
        for c in comments:
            table.add_row(str(c.comment_id), f"[{c.offset_start}, {c.offset_end})", c.commenter.name, c.body)
    console.print(table)


@app.command()
def rename(old_path: str, new_path: str) -> None:
    """Move all comments from one document path to another."""
    try:
        old = validate_and_decode_path(old_path)
        new = validate_target_path(new_path)
    except CommentServiceError as exc:
        _fail(exc)
    with SessionLocal() as session:
        moved = PathRenamer(CommentStore(session)).rename(old, new)
    typer.echo(f"moved {moved} comments: {old} -> {new}")
    typer.echo("note: purge the response cache (purge-cache) for both paths")


@app.command("apply-diff")
def apply_diff(
    path: str,
    diff_file: Path = typer.Argument(..., exists=True, readable=True, help="JSON list of {start, end, inserted_length}."),
    length: int | None = typer.Option(None, help="Length of the new document text."),
) -> None:
    """Rewrite comment offsets on a document after its text changed."""
    raw = json.loads(diff_file.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        typer.echo("error: diff file must contain a JSON list", err=True)
        raise typer.Exit(code=1)
    try:
        edits = [
            Edit(int(e["start"]), int(e["end"]), int(e.get("inserted_length", e.get("insertedLength", 0))))
            for e in raw
        ]
    except (KeyError, TypeError, ValueError, AttributeError):
        typer.echo("error: every edit needs integer start, end and inserted_length", err=True)
        raise typer.Exit(code=1) from None
    try:
        doc_path = validate_and_decode_path(path)
        with SessionLocal() as session:
            changed = CommentStore(session).bulk_apply_offset_edits(doc_path, edits, new_length=length)
    except CommentServiceError as exc:
        _fail(exc)
    typer.echo(f"moved {changed} comments on {doc_path}")


@app.command("purge-cache")
def purge_cache(
    origin: str = typer.Argument(..., help="Origin the API is served from, e.g. https://comment.example.org"),
    path: str | None = typer.Option(None, help="Only purge this document path."),
) -> None:
    """Drop cached comment lists for an origin."""
    cache = CacheGate(SessionLocal)
    if path is None:
        removed = cache.purge_all(origin)
        typer.echo(f"purged {removed} entries")
        return
    removed_one = cache.purge(origin, path)
    typer.echo("purged 1 entry" if removed_one else "nothing cached")


if __name__ == "__main__":
    app()
