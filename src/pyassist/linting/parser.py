# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Convert single lines of linter output into :class:`LintMessage` records."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Final

from ..core.errors import LintParseError
from ..core.models import LintMessage

# Negative columns are allowed: pylint reports -1 when the column is unknown.
DEFAULT_REGEX: Final[str] = (
    r"(?P<line>\d+),(?P<column>-?\d+),(?P<type>\w+),(?P<code>\w+\d+):(?P<message>.*?)\r?(\n|$)"
)


@lru_cache(maxsize=64)
def _compile(regex: str) -> re.Pattern[str]:
    return re.compile(regex)


def match_named_regex(data: str, regex: str) -> dict[str, str | None] | None:
    """Return the named groups captured by ``regex`` in ``data``.

    Args:
        data: Text to search.
        regex: Pattern using ``(?P<name>...)`` groups.

    Returns:
        dict[str, str | None] | None: Captured groups, or ``None`` when nothing matches.
    """

    match = _compile(regex).search(data)
    if match is None:
        return None
    return match.groupdict()


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_line(
    line: str,
    regex: str,
    linter_id: str,
    column_offset: int = 0,
) -> LintMessage | None:
    """Parse one line of linter output.

    Columns that are missing, non-numeric or non-positive collapse to ``0``;
    ``column_offset`` is only subtracted from a valid positive column and the
    result never drops below ``0``.

    Args:
        line: Raw output line, trailing ``\\r`` tolerated.
        regex: Pattern with ``line``, ``column``, ``type``, ``code`` and
            ``message`` groups and an optional ``file`` group.
        linter_id: Identifier of the producing linter.
        column_offset: Amount subtracted from positive columns (tools that
            report 1-based columns use ``1``).

    Returns:
        LintMessage | None: Parsed message, or ``None`` when ``line`` does not match.

    Raises:
        LintParseError: If the line matches but its line number is not an integer.
    """

    groups = match_named_regex(line, regex)
    if groups is None:
        return None

    line_number = _to_int(groups.get("line"))
    if line_number is None:
        raise LintParseError(line, f"invalid line number {groups.get('line')!r}")

    column = _to_int(groups.get("column"))
    if column is None or column <= 0:
        column = 0
    else:
        column = max(column - column_offset, 0)

    return LintMessage(
        line=line_number,
        column=column,
        code=groups.get("code") or "",
        message=groups.get("message") or "",
        type=groups.get("type") or "",
        provider=linter_id,
        file=groups.get("file"),
    )


__all__ = ["DEFAULT_REGEX", "match_named_regex", "parse_line"]
