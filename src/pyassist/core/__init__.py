# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core models, errors and logging shared across pyassist."""

from __future__ import annotations

from .documents import TextDocument
from .errors import PyAssistError
from .models import Diagnostic, LintMessage, Position, Range, TextEdit
from .severity import LintMessageSeverity

__all__ = [
    "Diagnostic",
    "LintMessage",
    "LintMessageSeverity",
    "Position",
    "PyAssistError",
    "Range",
    "TextDocument",
    "TextEdit",
]
