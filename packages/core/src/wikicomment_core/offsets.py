"""
Offset rewriting for comments when the text of a document changes.

Edits describe how the previous build of a document became the current one:
each ``Edit(start, end, inserted_length)`` says the span ``[start, end)`` of the
*old* text was replaced by ``inserted_length`` characters. Pure insertions have
``start == end``; pure deletions have ``inserted_length == 0``.

All edits of one batch refer to the same old snapshot and must be given in
ascending, non-overlapping order.

Mapping rules for a comment span ``[a, b)``:
- edits ending at or before ``a`` shift both ends by their length delta
- a start at the beginning of a replaced span keeps the replacement text
- a start that falls inside a replaced span moves to the end of the replacement
- an end that falls inside a replaced span moves to the start of the replacement
- an insertion exactly at ``b`` is not absorbed into the comment
- a span that ends up empty collapses to ``{p, p + 1}`` instead of being dropped
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from wikicomment_core.errors import ErrorCode, ValidationError


@dataclass(frozen=True)
class Edit:
    start: int
    end: int
    inserted_length: int

    @property
    def delta(self) -> int:
        return self.inserted_length - (self.end - self.start)


@dataclass(frozen=True)
class Span:
    start: int
    end: int


def validate_edits(edits: Iterable[Edit]) -> list[Edit]:
    """Reject empty, negative, inverted or overlapping edit lists."""
    checked = list(edits)
    if not checked:
        raise ValidationError("Invalid diff", code=ErrorCode.INVALID_DIFF)

    prev_end = 0
    for edit in checked:
        if edit.start < 0 or edit.end < edit.start or edit.inserted_length < 0:
            raise ValidationError("Invalid diff", code=ErrorCode.INVALID_DIFF)
        if edit.start < prev_end:
            raise ValidationError("Overlapping or unordered diff", code=ErrorCode.INVALID_DIFF)
        prev_end = edit.end
    return checked


class OffsetTransformer:
    """Maps spans from the old text of a document to the new one."""

    def __init__(self, edits: Sequence[Edit], *, new_length: int | None = None) -> None:
        self.edits = validate_edits(edits)
        if new_length is not None and new_length < 0:
            raise ValidationError("Invalid diff", code=ErrorCode.INVALID_DIFF)
        self.new_length = new_length

        # New-text start of every edit, i.e. edit.start shifted by all earlier deltas.
        self._new_starts: list[int] = []
        shift = 0
        for edit in self.edits:
            self._new_starts.append(edit.start + shift)
            shift += edit.delta

    def _map_start(self, pos: int) -> int:
        shift = 0
        for edit, new_start in zip(self.edits, self._new_starts):
            if edit.end <= pos:
                shift += edit.delta
                continue
            if edit.start == pos:
                return new_start
            if edit.start < pos:
                return new_start + edit.inserted_length
            break
        return pos + shift

    def _map_end(self, pos: int) -> int:
        shift = 0
        for edit, new_start in zip(self.edits, self._new_starts):
            if edit.start == edit.end:
                # Insertions at the end position stay outside the comment.
                if edit.end < pos:
                    shift += edit.delta
                    continue
                break
            if edit.end <= pos:
                shift += edit.delta
                continue
            if edit.start < pos:
                return new_start
            break
        return pos + shift

    def transform(self, span: Span) -> Span:
        start = self._map_start(span.start)
        end = self._map_end(span.end)

        if self.new_length is not None:
            end = min(end, self.new_length)

        if start >= end:
            point = min(start, end)
            if self.new_length is not None:
                point = min(point, max(self.new_length - 1, 0))
            point = max(point, 0)
            return Span(point, point + 1)
        return Span(start, end)


def transform_span(span: Span, edits: Sequence[Edit], *, new_length: int | None = None) -> Span:
    return OffsetTransformer(edits, new_length=new_length).transform(span)
