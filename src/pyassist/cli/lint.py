# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI command linting one Python file with the configured linters."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Final

import typer
from rich.text import Text

from ..core.documents import TextDocument
from ..core.logging import OutputChannel, configure_logging, detect_tty, get_console_manager, ok, section
from ..core.models import Diagnostic
from ..core.severity import DiagnosticSeverity
from ..linting import LintingEngine
from .shared import load_cli_settings, open_document

SEVERITY_STYLES: Final[dict[DiagnosticSeverity, str]] = {
    DiagnosticSeverity.ERROR: "bold red",
    DiagnosticSeverity.WARNING: "yellow",
    DiagnosticSeverity.INFORMATION: "cyan",
    DiagnosticSeverity.HINT: "dim",
}


def render_diagnostics(
    document: TextDocument,
    diagnostics: Sequence[Diagnostic],
    *,
    use_color: bool,
    use_emoji: bool,
) -> None:
    """Print ``diagnostics`` as ``path:line:col severity [source code] message``."""

    console = get_console_manager().get(color=use_color, emoji=use_emoji)
    for diagnostic in diagnostics:
        start = diagnostic.range.start
        text = Text(f"{document.path}:{start.line + 1}:{start.character + 1}: ")
        severity = diagnostic.severity.name.lower()
        text.append(severity, style=SEVERITY_STYLES[diagnostic.severity] if use_color else None)
        code = f" {diagnostic.code}" if diagnostic.code else ""
        text.append(f" [{diagnostic.source}{code}] {diagnostic.message}")
        console.print(text)


def lint_command(
    file: Path = typer.Argument(..., help="Python file to lint."),
    root: Path | None = typer.Option(None, "--root", "-r", help="Workspace root (defaults to the current directory)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log linter invocations and raw output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in output."),
) -> None:
    """Lint FILE and exit with status 1 when any error is reported."""

    configure_logging(verbose=verbose)
    use_emoji = not no_emoji
    use_color = detect_tty() and not no_color
    settings = load_cli_settings(root, use_emoji=use_emoji)
    document = open_document(file)
    engine = LintingEngine(settings, OutputChannel("Linting"))
    diagnostics = asyncio.run(engine.lint_document(document))

    if not diagnostics:
        ok("No problems found", use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=0)
    section(f"{len(diagnostics)} problem(s) in {document.path.name}", use_color=use_color)
    render_diagnostics(document, diagnostics, use_color=use_color, use_emoji=use_emoji)
    has_errors = any(diagnostic.severity == DiagnosticSeverity.ERROR for diagnostic in diagnostics)
    raise typer.Exit(code=1 if has_errors else 0)


__all__ = ["lint_command", "render_diagnostics"]
