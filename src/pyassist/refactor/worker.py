# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Refactor worker executed by the target interpreter.

The script depends only on the standard library and rope so it can run in any
project environment. It prints ``STARTED`` once ready, then reads one JSON
command per line from stdin and replies on stdout with
``{"id": ..., "results": [{"diff": ...}]}``. Failures are written to stderr as
``{"message": ..., "traceback": ..., "type": ...}``.

Usage: ``python worker.py WORKSPACE_ROOT``
"""

from __future__ import annotations

import difflib
import json
import sys
import traceback
from pathlib import Path
from typing import Any

READY_SENTINEL = "STARTED"


def _emit(stream: Any, payload: dict[str, Any]) -> None:
    stream.write(json.dumps(payload) + "\n")
    stream.flush()


def _report_error(exc: BaseException) -> None:
    _emit(
        sys.stderr,
        {
            "message": str(exc),
            "traceback": traceback.format_exc(),
            "type": type(exc).__name__,
        },
    )


def unified_diff(path: str, before: str, after: str) -> str:
    lines = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    )
    return "".join(line if line.endswith("\n") else f"{line}\n\\ No newline at end of file\n" for line in lines)


class RopeRefactoring:
    """Execute refactor commands with rope against one workspace."""

    def __init__(self, root: Path) -> None:
        from rope.base.project import Project

        self.root = root
        self.project = Project(str(root), ropefolder=None)

    def close(self) -> None:
        self.project.close()

    def _resource(self, file: str) -> Any:
        from rope.base import libutils

        return libutils.path_to_resource(self.project, file)

    def extract(self, command: dict[str, Any], *, method: bool) -> str:
        from rope.base.change import ChangeContents
        from rope.refactor.extract import ExtractMethod, ExtractVariable

        resource = self._resource(command["file"])
        refactoring_type = ExtractMethod if method else ExtractVariable
        refactoring = refactoring_type(self.project, resource, int(command["start"]), int(command["end"]))
        changes = refactoring.get_changes(command["name"], similar=False, global_=False)
        diffs = []
        for change in changes.changes:
            if isinstance(change, ChangeContents) and change.resource == resource:
                before = resource.read()
                diffs.append(unified_diff(command["file"], before, change.new_contents))
        return "".join(diffs)

    def add_import(self, command: dict[str, Any]) -> str:
        from rope.base import libutils
        from rope.refactor.importutils import ImportTools, importinfo

        text = command["text"]
        resource = self._resource(command["file"])
        pymodule = libutils.get_string_module(self.project, text, resource)
        module_imports = ImportTools(self.project).module_imports(pymodule)
        name = command["name"]
        parent = command.get("parent") or ""
        if parent:
            import_info = importinfo.FromImport(parent, 0, ((name, None),))
        else:
            import_info = importinfo.NormalImport(((name, None),))
        module_imports.add_import(import_info)
        changed = module_imports.get_changed_source()
        return unified_diff(command["file"], text, changed)

    def execute(self, command: dict[str, Any]) -> str:
        self.project.prefs.set("indent_size", int(command.get("indent_size", 4)))
        lookup = command.get("lookup")
        if lookup == "add_import":
            return self.add_import(command)
        if lookup == "extract_variable":
            return self.extract(command, method=False)
        if lookup == "extract_method":
            return self.extract(command, method=True)
        raise ValueError(f"Unknown refactor command: {lookup!r}")


def main(argv: list[str]) -> int:
    root = Path(argv[1] if len(argv) > 1 else ".").resolve()
    try:
        refactoring = RopeRefactoring(root)
    except Exception as exc:  # reported to the parent before the sentinel
        _report_error(exc)
        return 1

    sys.stdout.write(f"{READY_SENTINEL}\n")
    sys.stdout.flush()
    try:
        for line in sys.stdin:
            if not line.strip():
                continue
            try:
                command = json.loads(line)
                diff = refactoring.execute(command)
            except Exception as exc:  # every failure is reported on stderr
                _report_error(exc)
                continue
            _emit(sys.stdout, {"id": command.get("id"), "results": [{"diff": diff}]})
    finally:
        refactoring.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
