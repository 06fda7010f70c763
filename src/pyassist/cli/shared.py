# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Final

import typer

from ..config import Settings, load_settings
from ..core.documents import TextDocument
from ..core.errors import ConfigError
from ..core.logging import fail
from ..core.models import Position

CONFIG_ERROR_EXIT_CODE: Final[int] = 2


def load_cli_settings(root: Path | None, *, use_emoji: bool) -> Settings:
    """Load settings for ``root`` or exit with a readable error."""

    try:
        return load_settings(root)
    except ConfigError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=CONFIG_ERROR_EXIT_CODE) from exc


def open_document(path: Path) -> TextDocument:
    """Load ``path`` as a document, rejecting anything but a readable file."""

    resolved = path.expanduser().resolve()
    if not resolved.is_file():
        raise typer.BadParameter(f"File not found: {path}")
    return TextDocument.from_path(resolved)


def parse_position(value: str) -> Position:
    """Parse a 1-based ``line:col`` argument into a 0-based :class:`Position`.

    Raises:
        typer.BadParameter: If ``value`` is not two positive integers.
    """

    line_text, separator, column_text = value.partition(":")
    if not separator:
        raise typer.BadParameter(f"Expected LINE:COL, got {value!r}")
    try:
        line = int(line_text)
        column = int(column_text)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected LINE:COL, got {value!r}") from exc
    if line < 1 or column < 1:
        raise typer.BadParameter(f"Line and column are 1-based, got {value!r}")
    return Position.create(line - 1, column - 1)


__all__ = ["CONFIG_ERROR_EXIT_CODE", "load_cli_settings", "open_document", "parse_position"]
