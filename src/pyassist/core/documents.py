# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""In-memory text documents with offset and position arithmetic."""

from __future__ import annotations

import re
from bisect import bisect_right
from pathlib import Path
from typing import Final
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, PrivateAttr, model_validator

from .models import Position

CRLF: Final[str] = "\r\n"
LF: Final[str] = "\n"
_LINE_BREAK: Final[re.Pattern[str]] = re.compile(r"\r\n|\r|\n")


def split_lines(text: str, *, remove_empty_entries: bool = True, trim: bool = True) -> list[str]:
    """Split ``text`` on any line break.

    Args:
        text: Text to split.
        remove_empty_entries: Drop empty entries after optional trimming.
        trim: Strip surrounding whitespace from each entry.

    Returns:
        list[str]: The resulting lines.
    """

    lines = _LINE_BREAK.split(text)
    if trim:
        lines = [line.strip() for line in lines]
    if remove_empty_entries:
        lines = [line for line in lines if line]
    return lines


class TextDocument(BaseModel):
    """Snapshot of an editor buffer.

    ``dirty`` mirrors the editor's *modified* flag: the in-memory text differs
    from what is persisted at :attr:`path`.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    text: str = ""
    version: int = 0
    dirty: bool = False
    language_id: str = "python"
    _line_offsets: list[int] = PrivateAttr(default_factory=list)

    @model_validator(mode="after")
    def _index_lines(self) -> TextDocument:
        offsets = [0]
        for match in _LINE_BREAK.finditer(self.text):
            offsets.append(match.end())
        self._line_offsets = offsets
        return self

    @classmethod
    def from_path(cls, path: Path, *, version: int = 0) -> TextDocument:
        """Load a document from disk without newline translation.

        Args:
            path: File to read.
            version: Editor version number to record.

        Returns:
            TextDocument: Clean document mirroring the file content.
        """

        resolved = path.resolve()
        with resolved.open(encoding="utf-8", newline="") as handle:
            text = handle.read()
        return cls(uri=resolved.as_uri(), text=text, version=version)

    @property
    def path(self) -> Path:
        """Return the filesystem path addressed by :attr:`uri`."""

        parsed = urlparse(self.uri)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        if not parsed.scheme:
            return Path(self.uri)
        raise ValueError(f"Document '{self.uri}' is not backed by a file")

    @property
    def eol(self) -> str:
        """Return the dominant line terminator used by the document."""

        return CRLF if CRLF in self.text else LF

    @property
    def line_count(self) -> int:
        """Return the number of lines, counting a trailing empty line."""

        return len(self._line_offsets)

    def get_line(self, line: int) -> str:
        """Return the content of ``line`` without its terminator.

        Raises:
            IndexError: If ``line`` lies outside the document.
        """

        if line < 0 or line >= self.line_count:
            raise IndexError(f"line {line} out of range (0..{self.line_count - 1})")
        start = self._line_offsets[line]
        end = self._line_offsets[line + 1] if line + 1 < self.line_count else len(self.text)
        return self.text[start:end].rstrip("\r\n")

    def lines(self) -> list[str]:
        """Return every line of the document without terminators."""

        return [self.get_line(index) for index in range(self.line_count)]

    def offset_at(self, position: Position) -> int:
        """Convert ``position`` into a character offset, clamping to the text.

        Args:
            position: Zero-based position within the document.

        Returns:
            int: Offset from the start of :attr:`text`.
        """

        if position.line >= self.line_count:
            return len(self.text)
        line_start = self._line_offsets[position.line]
        line_length = len(self.get_line(position.line))
        return line_start + min(position.character, line_length)

    def position_at(self, offset: int) -> Position:
        """Convert a character ``offset`` into a :class:`Position`."""

        clamped = max(0, min(offset, len(self.text)))
        line = bisect_right(self._line_offsets, clamped) - 1
        character = min(clamped - self._line_offsets[line], len(self.get_line(line)))
        return Position.create(line, character)

    def with_text(self, text: str, *, dirty: bool | None = None) -> TextDocument:
        """Return a new snapshot carrying ``text`` and a bumped version."""

        return TextDocument(
            uri=self.uri,
            text=text,
            version=self.version + 1,
            dirty=self.dirty if dirty is None else dirty,
            language_id=self.language_id,
        )


def windows_line_ending_count(document: TextDocument, offset: int) -> int:
    """Return how many CRLF terminators end before ``offset``.

    Args:
        document: Document whose text is inspected.
        offset: Character offset bounding the count.

    Returns:
        int: Number of ``\\r\\n`` pairs fully contained in ``text[:offset]``.
    """

    return document.text[: max(offset, 0)].count(CRLF)


__all__ = [
    "CRLF",
    "LF",
    "TextDocument",
    "split_lines",
    "windows_line_ending_count",
]
