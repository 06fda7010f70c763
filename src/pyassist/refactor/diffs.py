# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Translate unified diffs into text edits and apply them."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Final

from ..core.documents import TextDocument, split_lines
from ..core.errors import ApplyEditsError
from ..core.models import Position, Range, TextEdit

HUNK_HEADER: Final[re.Pattern[str]] = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@",
)
NO_NEWLINE_MARKER: Final[str] = "\\"
_DOCUMENT_URI: Final[str] = "untitled:patch"


@dataclass(slots=True)
class Hunk:
    """One parsed hunk with its original and replacement lines."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    old_lines: list[str] = field(default_factory=list)
    new_lines: list[str] = field(default_factory=list)
    old_missing_eol: bool = False
    new_missing_eol: bool = False
    saw_marker: bool = False

    @property
    def complete(self) -> bool:
        return len(self.old_lines) >= self.old_count and len(self.new_lines) >= self.new_count

    @property
    def first_line(self) -> int:
        """Zero-based index of the first original line touched by the hunk."""

        return self.old_start if self.old_count == 0 else self.old_start - 1


def _hunk_from_header(line: str) -> Hunk:
    match = HUNK_HEADER.match(line)
    if match is None:
        raise ApplyEditsError(f"Malformed hunk header: {line!r}")
    old_count = match.group("old_count")
    new_count = match.group("new_count")
    return Hunk(
        old_start=int(match.group("old_start")),
        old_count=1 if old_count is None else int(old_count),
        new_start=int(match.group("new_start")),
        new_count=1 if new_count is None else int(new_count),
    )


def parse_hunks(patch: str) -> list[Hunk]:
    """Parse every hunk of ``patch``.

    File headers and any preamble before the first hunk are ignored. Hunk
    bodies are consumed by count so removed lines that look like headers are
    handled correctly.

    Raises:
        ApplyEditsError: If a hunk is malformed or truncated.
    """

    hunks: list[Hunk] = []
    current: Hunk | None = None
    last_kind = ""
    raw_lines = patch.split("\n")
    if raw_lines and raw_lines[-1] == "":
        raw_lines.pop()
    for raw in raw_lines:
        line = raw.removesuffix("\r")
        if current is not None and line.startswith(NO_NEWLINE_MARKER):
            current.saw_marker = True
            if last_kind in ("-", " "):
                current.old_missing_eol = True
            if last_kind in ("+", " "):
                current.new_missing_eol = True
            continue
        if current is None or current.complete:
            if line.startswith("@@"):
                current = _hunk_from_header(line)
                hunks.append(current)
                last_kind = ""
            continue
        kind, content = (line[:1], line[1:]) if line else (" ", "")
        if kind == " ":
            current.old_lines.append(content)
            current.new_lines.append(content)
        elif kind == "-":
            current.old_lines.append(content)
        elif kind == "+":
            current.new_lines.append(content)
        else:
            raise ApplyEditsError(f"Unexpected line in hunk body: {line!r}")
        last_kind = kind
    for hunk in hunks:
        if not hunk.complete:
            raise ApplyEditsError(
                f"Truncated hunk at line {hunk.old_start}: expected {hunk.old_count} old and "
                f"{hunk.new_count} new lines",
            )
        if len(hunk.old_lines) != hunk.old_count or len(hunk.new_lines) != hunk.new_count:
            raise ApplyEditsError(f"Hunk at line {hunk.old_start} does not match its header counts")
    return hunks


def get_text_edits_from_patch(before: str, patch: str) -> list[TextEdit]:
    """Convert a unified diff against ``before`` into ordered line-range edits.

    Each hunk becomes one edit replacing the original lines it covers. Removed
    and context lines must match ``before`` exactly (ignoring line terminators);
    inserted lines use the line terminator already used by ``before``.

    Args:
        before: Original text the diff was produced from.
        patch: Unified diff text.

    Returns:
        list[TextEdit]: Edits ordered by position in ``before``.

    Raises:
        ApplyEditsError: If the patch is malformed or does not apply to ``before``.
    """

    document = TextDocument(uri=_DOCUMENT_URI, text=before)
    eol = document.eol
    original = split_lines(before, remove_empty_entries=False, trim=False)
    # The entry after a trailing terminator is not a real line.
    if original and original[-1] == "":
        original.pop()
    ends_with_eol = before.endswith(("\n", "\r"))

    edits: list[TextEdit] = []
    previous_end = 0
    for hunk in parse_hunks(patch):
        first = hunk.first_line
        last = first + hunk.old_count
        if first < previous_end:
            raise ApplyEditsError(f"Hunk at line {hunk.old_start} overlaps the previous hunk")
        if last > len(original):
            raise ApplyEditsError(
                f"Hunk at line {hunk.old_start} extends past the end of the document ({len(original)} lines)",
            )
        for index, expected in enumerate(hunk.old_lines):
            actual = original[first + index]
            if actual != expected:
                raise ApplyEditsError(
                    f"Patch does not apply at line {first + index + 1}: expected {expected!r}, found {actual!r}",
                )
        previous_end = last

        if hunk.saw_marker:
            drop_final_eol = hunk.new_missing_eol
        else:
            drop_final_eol = last == len(original) and not ends_with_eol
        new_text = "".join(f"{line}{eol}" for line in hunk.new_lines)
        if drop_final_eol:
            new_text = new_text.removesuffix(eol)

        start = document.offset_at(Position.create(first, 0))
        end = document.offset_at(Position.create(last, 0))
        edits.append(
            TextEdit(
                range=Range(start=document.position_at(start), end=document.position_at(end)),
                new_text=new_text,
            ),
        )
    return edits


def apply_text_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply ``edits`` to ``text`` and return the result.

    Edits are addressed against the original ``text`` and applied from the end
    of the document backwards so earlier offsets stay valid.

    Raises:
        ApplyEditsError: If two edits overlap.
    """

    document = TextDocument(uri=_DOCUMENT_URI, text=text)
    spans = sorted(
        (
            (document.offset_at(edit.range.start), document.offset_at(edit.range.end), edit.new_text)
            for edit in edits
        ),
        key=lambda span: (span[0], span[1]),
    )
    for (_, previous_end, _), (start, _, _) in zip(spans, spans[1:]):
        if start < previous_end:
            raise ApplyEditsError("Cannot apply overlapping edits")
    result = text
    for start, end, new_text in reversed(spans):
        if end < start:
            raise ApplyEditsError("Edit range ends before it starts")
        result = f"{result[:start]}{new_text}{result[end:]}"
    return result


__all__ = ["Hunk", "apply_text_edits", "get_text_edits_from_patch", "parse_hunks"]
