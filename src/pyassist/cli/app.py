# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring the lint and refactor commands."""

from __future__ import annotations

from .lint import lint_command
from .refactor import refactor_app
from .typer_ext import create_typer

app = create_typer(name="pyassist", help="Lint and refactor Python files.", no_args_is_help=True)
app.command("lint")(lint_command)
app.add_typer(refactor_app, name="refactor")

__all__ = ["app"]
