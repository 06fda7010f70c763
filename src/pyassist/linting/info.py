# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Static description of a linter and how to invoke it."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..config.models import LinterSettings, Settings
from ..core.documents import TextDocument
from ..core.models import ExecutionInfo


@dataclass(slots=True, frozen=True)
class LinterInfo:
    """Identity of a linter plus the settings it is resolved against."""

    id: str
    name: str
    settings: Settings
    module_name: str | None = None

    @property
    def linter_settings(self) -> LinterSettings:
        """Return the per-linter section of :attr:`settings`."""

        return self.settings.linting.linter(self.id)

    @property
    def path_name(self) -> str:
        """Return the configured executable, defaulting to the linter id."""

        return self.linter_settings.path or self.id

    def is_enabled(self, document: TextDocument | None = None) -> bool:
        """Return whether the linter should run for ``document``.

        Args:
            document: Document about to be linted; ``None`` checks only the switches.

        Returns:
            bool: ``True`` when linting, this linter and the document scope all allow it.
        """

        linting = self.settings.linting
        if not linting.enabled or not self.linter_settings.enabled:
            return False
        if document is None:
            return True
        try:
            path = document.path
        except ValueError:
            return False
        return not linting.is_ignored(
            path,
            self.settings.workspace_root,
            extra_patterns=self.linter_settings.ignore_patterns,
        )

    def get_execution_info(self, custom_args: Sequence[str], document: TextDocument | None = None) -> ExecutionInfo:
        """Resolve the executable and final argument list for a run.

        A configured path that differs from the module name is executed directly;
        otherwise the linter runs as ``python -m <module>`` in the configured
        interpreter.

        Args:
            custom_args: Arguments computed by the linter for this run.
            document: Document being linted (reserved for per-document overrides).

        Returns:
            ExecutionInfo: Resolved invocation.
        """

        del document
        args = [*self.linter_settings.args, *custom_args]
        module = self.module_name or self.id
        configured = self.linter_settings.path
        if configured and configured != module:
            return ExecutionInfo(exec_path=configured, args=args, product=self.id)
        return ExecutionInfo(
            exec_path=self.settings.python_path,
            args=["-m", module, *args],
            module_name=module,
            product=self.id,
        )


__all__ = ["LinterInfo"]
