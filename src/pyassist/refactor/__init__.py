# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Refactoring through a long-lived worker subprocess."""

from __future__ import annotations

from .diffs import apply_text_edits, get_text_edits_from_patch
from .operations import EditorHost, FileEditorHost, RefactorOperations, RefactorOutcome
from .protocol import (
    AddImportCommand,
    ExtractMethodCommand,
    ExtractVariableCommand,
    RefactorErrorPayload,
    RefactorResult,
)
from .session import RefactorSession, SessionState

__all__ = [
    "AddImportCommand",
    "EditorHost",
    "ExtractMethodCommand",
    "ExtractVariableCommand",
    "FileEditorHost",
    "RefactorErrorPayload",
    "RefactorOperations",
    "RefactorOutcome",
    "RefactorResult",
    "RefactorSession",
    "SessionState",
    "apply_text_edits",
    "get_text_edits_from_patch",
]
