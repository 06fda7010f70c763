# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI commands running refactorings against files on disk."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from pathlib import Path

import typer

from ..core.errors import PyAssistError
from ..core.logging import OutputChannel, configure_logging, ok
from ..core.models import Range
from ..refactor import FileEditorHost, RefactorOperations, RefactorOutcome
from .shared import load_cli_settings, open_document, parse_position
from .typer_ext import create_typer

refactor_app = create_typer(name="refactor", help="Refactor Python files with rope.", no_args_is_help=True)


def _operations(root: Path | None, *, verbose: bool, no_emoji: bool) -> RefactorOperations:
    configure_logging(verbose=verbose)
    use_emoji = not no_emoji
    settings = load_cli_settings(root, use_emoji=use_emoji)
    editor = FileEditorHost(input_provider=lambda prompt: typer.prompt(prompt), use_emoji=use_emoji)
    return RefactorOperations(settings, editor, OutputChannel("Refactor"))


def _run(operation: Awaitable[RefactorOutcome | None], *, no_emoji: bool) -> None:
    try:
        outcome = asyncio.run(operation)
    except PyAssistError as exc:
        raise typer.Exit(code=1) from exc
    if outcome is None:
        raise typer.Exit(code=1)
    ok(f"Updated {outcome.document.path}", use_emoji=not no_emoji)


@refactor_app.command("extract-variable")
def extract_variable(
    file: Path = typer.Argument(..., help="Python file to refactor."),
    start: str = typer.Argument(..., metavar="START", help="Selection start as LINE:COL (1-based)."),
    end: str = typer.Argument(..., metavar="END", help="Selection end as LINE:COL (1-based)."),
    root: Path | None = typer.Option(None, "--root", "-r", help="Workspace root."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log worker traffic."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in output."),
) -> None:
    """Extract the selected expression into a new variable."""

    selection = Range(start=parse_position(start), end=parse_position(end))
    document = open_document(file)
    operations = _operations(root, verbose=verbose, no_emoji=no_emoji)
    _run(operations.extract_variable(document, selection), no_emoji=no_emoji)


@refactor_app.command("extract-method")
def extract_method(
    file: Path = typer.Argument(..., help="Python file to refactor."),
    start: str = typer.Argument(..., metavar="START", help="Selection start as LINE:COL (1-based)."),
    end: str = typer.Argument(..., metavar="END", help="Selection end as LINE:COL (1-based)."),
    root: Path | None = typer.Option(None, "--root", "-r", help="Workspace root."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log worker traffic."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in output."),
) -> None:
    """Extract the selected statements into a new method."""

    selection = Range(start=parse_position(start), end=parse_position(end))
    document = open_document(file)
    operations = _operations(root, verbose=verbose, no_emoji=no_emoji)
    _run(operations.extract_method(document, selection), no_emoji=no_emoji)


@refactor_app.command("add-import")
def add_import(
    file: Path = typer.Argument(..., help="Python file to refactor."),
    name: str = typer.Argument(..., help="Name to import."),
    parent: str | None = typer.Option(None, "--parent", "-p", help="Import NAME from this module."),
    ask_parent: bool = typer.Option(False, "--ask-parent", help="Prompt for the parent module."),
    root: Path | None = typer.Option(None, "--root", "-r", help="Workspace root."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log worker traffic."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in output."),
) -> None:
    """Add an import of NAME to FILE."""

    document = open_document(file)
    operations = _operations(root, verbose=verbose, no_emoji=no_emoji)
    parent_module: bool | str = parent if parent is not None else ask_parent
    _run(operations.add_import(document, name, parent_module), no_emoji=no_emoji)


__all__ = ["refactor_app"]
