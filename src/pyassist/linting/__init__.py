# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Linter execution, output parsing and diagnostic aggregation."""

from __future__ import annotations

from .base import BaseLinter
from .info import LinterInfo
from .linters import LINTER_CLASSES, available_linters, create_linter
from .manager import LintingEngine, to_diagnostic
from .parser import DEFAULT_REGEX, match_named_regex, parse_line

__all__ = [
    "BaseLinter",
    "DEFAULT_REGEX",
    "LINTER_CLASSES",
    "LinterInfo",
    "LintingEngine",
    "available_linters",
    "create_linter",
    "match_named_regex",
    "parse_line",
    "to_diagnostic",
]
