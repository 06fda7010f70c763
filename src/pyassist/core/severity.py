# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum, IntEnum
from typing import Final


class LintMessageSeverity(str, Enum):
    """Severity levels normalising different linter vocabularies."""

    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"
    HINT = "Hint"


class DiagnosticSeverity(IntEnum):
    """Numeric severities understood by language-server style editors."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


_SEVERITY_BY_NAME: Final[dict[str, LintMessageSeverity]] = {
    member.value.lower(): member for member in LintMessageSeverity
}

_SEVERITY_TO_DIAGNOSTIC: Final[dict[LintMessageSeverity, DiagnosticSeverity]] = {
    LintMessageSeverity.ERROR: DiagnosticSeverity.ERROR,
    LintMessageSeverity.WARNING: DiagnosticSeverity.WARNING,
    LintMessageSeverity.INFORMATION: DiagnosticSeverity.INFORMATION,
    LintMessageSeverity.HINT: DiagnosticSeverity.HINT,
}


def severity_from_name(name: str | None) -> LintMessageSeverity | None:
    """Return the severity whose name matches ``name`` case-insensitively.

    Args:
        name: Severity label such as ``"Error"`` or ``"hint"``.

    Returns:
        LintMessageSeverity | None: Matching severity, or ``None`` when unknown.
    """

    if not name:
        return None
    return _SEVERITY_BY_NAME.get(name.strip().lower())


def parse_messages_severity(
    category: str,
    category_severity: Mapping[str, str],
) -> LintMessageSeverity:
    """Map a tool-reported category onto a :class:`LintMessageSeverity`.

    Args:
        category: Raw category emitted by the linter (``E``, ``convention``...).
        category_severity: Per-linter mapping of category to severity name.

    Returns:
        LintMessageSeverity: Mapped severity; ``INFORMATION`` when the category is
        unmapped or maps to an unknown severity name.
    """

    severity = severity_from_name(category_severity.get(category))
    return severity if severity is not None else LintMessageSeverity.INFORMATION


def to_diagnostic_severity(severity: LintMessageSeverity | None) -> DiagnosticSeverity:
    """Return the editor-facing numeric severity for ``severity``."""

    if severity is None:
        return DiagnosticSeverity.INFORMATION
    return _SEVERITY_TO_DIAGNOSTIC[severity]


__all__ = [
    "DiagnosticSeverity",
    "LintMessageSeverity",
    "parse_messages_severity",
    "severity_from_name",
    "to_diagnostic_severity",
]
