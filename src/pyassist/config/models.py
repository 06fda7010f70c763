# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for linting and refactoring."""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from fnmatch import fnmatch
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_MAX_NUMBER_OF_PROBLEMS: Final[int] = 100
DEFAULT_IGNORE_PATTERNS: Final[tuple[str, ...]] = ("**/site-packages/**/*.py", ".vscode/*.py")

FLAKE8: Final[str] = "flake8"
PYCODESTYLE: Final[str] = "pycodestyle"
PYLINT: Final[str] = "pylint"
MYPY: Final[str] = "mypy"
BANDIT: Final[str] = "bandit"
PYDOCSTYLE: Final[str] = "pydocstyle"


class LinterSettings(BaseModel):
    """Per-linter switches, executable override and severity vocabulary."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = False
    path: str | None = None
    args: list[str] = Field(default_factory=list)
    category_severity: dict[str, str] = Field(default_factory=dict)
    ignore_patterns: list[str] = Field(default_factory=list)


def _default_linters() -> dict[str, LinterSettings]:
    return {
        FLAKE8: LinterSettings(
            enabled=True,
            category_severity={"E": "Error", "W": "Warning", "F": "Error"},
        ),
        PYCODESTYLE: LinterSettings(category_severity={"E": "Error", "W": "Warning"}),
        PYLINT: LinterSettings(
            category_severity={
                "convention": "Information",
                "error": "Error",
                "fatal": "Error",
                "refactor": "Hint",
                "warning": "Warning",
                "info": "Information",
            },
        ),
        MYPY: LinterSettings(category_severity={"error": "Error", "note": "Information"}),
        BANDIT: LinterSettings(category_severity={"HIGH": "Error", "MEDIUM": "Warning", "LOW": "Information"}),
        PYDOCSTYLE: LinterSettings(category_severity={"D": "Information"}),
    }


class LintingSettings(BaseModel):
    """Global linting behaviour shared by every linter."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = True
    max_number_of_problems: int = Field(default=DEFAULT_MAX_NUMBER_OF_PROBLEMS, ge=1)
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    linters: dict[str, LinterSettings] = Field(default_factory=_default_linters)

    @field_validator("linters", mode="before")
    @classmethod
    def _merge_linter_defaults(
        cls,
        value: Mapping[str, LinterSettings | Mapping[str, object]] | None,
    ) -> dict[str, LinterSettings | Mapping[str, object]]:
        """Overlay user supplied linter sections onto the built-in defaults.

        Args:
            value: Raw mapping of linter id to settings.

        Returns:
            dict: Defaults for every built-in linter updated with ``value``.
        """

        merged: dict[str, LinterSettings | Mapping[str, object]] = dict(_default_linters())
        for linter_id, settings in (value or {}).items():
            base = merged.get(linter_id)
            if isinstance(settings, Mapping) and isinstance(base, LinterSettings):
                merged[linter_id] = {**base.model_dump(), **settings}
            else:
                merged[linter_id] = settings
        return merged

    def linter(self, linter_id: str) -> LinterSettings:
        """Return settings for ``linter_id``, falling back to a disabled entry."""

        return self.linters.get(linter_id) or LinterSettings()

    def is_ignored(self, path: Path, root: Path | None = None, *, extra_patterns: Sequence[str] = ()) -> bool:
        """Return ``True`` when ``path`` matches one of :attr:`ignore_patterns`.

        Args:
            path: File being linted.
            root: Workspace root used to compute a relative match candidate.
            extra_patterns: Additional globs, typically from one linter's section.

        Returns:
            bool: Whether the path is excluded from linting.
        """

        candidates = [path.as_posix()]
        if root is not None:
            try:
                candidates.append(path.resolve().relative_to(root.resolve()).as_posix())
            except ValueError:
                pass
        patterns = [*self.ignore_patterns, *extra_patterns]
        return any(fnmatch(candidate, pattern) for candidate in candidates for pattern in patterns)


class RefactorSettings(BaseModel):
    """Settings controlling the refactor worker subprocess."""

    model_config = ConfigDict(validate_assignment=True)

    script: Path | None = None
    module: str = "rope"
    indent_size: int = Field(default=4, ge=1)
    startup_timeout: float | None = Field(default=None, gt=0)


class Settings(BaseModel):
    """Top-level configuration handed explicitly to every component."""

    model_config = ConfigDict(validate_assignment=True)

    python_path: str = Field(default_factory=lambda: sys.executable)
    workspace_root: Path = Field(default_factory=Path.cwd)
    linting: LintingSettings = Field(default_factory=LintingSettings)
    refactor: RefactorSettings = Field(default_factory=RefactorSettings)

    @model_validator(mode="after")
    def _resolve_script(self) -> Settings:
        script = self.refactor.script
        if script is not None and not script.is_absolute():
            self.refactor.script = self.workspace_root / script
        return self


__all__ = [
    "BANDIT",
    "DEFAULT_IGNORE_PATTERNS",
    "DEFAULT_MAX_NUMBER_OF_PROBLEMS",
    "FLAKE8",
    "LinterSettings",
    "LintingSettings",
    "MYPY",
    "PYCODESTYLE",
    "PYDOCSTYLE",
    "PYLINT",
    "RefactorSettings",
    "Settings",
]
