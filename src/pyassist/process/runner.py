# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Asynchronous wrappers around external tool processes."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import os
import shutil
import sys
from asyncio.subprocess import PIPE, Process
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Final

from ..core.errors import ProcessSpawnError
from ..core.models import ExecutionInfo, ExecutionResult, OutputChunk, OutputSource
from .cancellation import CancellationToken

LOGGER = logging.getLogger(__name__)

READ_CHUNK_SIZE: Final[int] = 4096
TERMINATE_GRACE_SECONDS: Final[float] = 2.0
_STREAM_EOF: Final[object] = object()


def normalize_command(args: Sequence[str]) -> list[str]:
    """Resolve the executable of ``args`` to a concrete path.

    Args:
        args: Command and argument sequence supplied by the caller.

    Returns:
        list[str]: Command with an absolute or PATH-resolved executable.

    Raises:
        ProcessSpawnError: If ``args`` is empty or the executable cannot be found.
    """

    if not args:
        raise ProcessSpawnError((), "command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise ProcessSpawnError(args, f"executable '{head}' was not found on PATH")
    return [resolved, *rest]


def _decode(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


async def _drain(stream: asyncio.StreamReader | None, sink: bytearray) -> None:
    if stream is None:
        return
    while chunk := await stream.read(READ_CHUNK_SIZE):
        sink.extend(chunk)


async def terminate_process(proc: Process, *, grace: float = TERMINATE_GRACE_SECONDS) -> None:
    """Terminate ``proc`` and escalate to ``kill`` if it ignores the request.

    Errors raised because the process already exited are suppressed.
    """

    if proc.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        proc.terminate()
    try:
        await asyncio.wait_for(proc.wait(), timeout=grace)
    except TimeoutError:
        LOGGER.warning("Process %s ignored terminate; killing", proc.pid)
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()


class ObservableProcess:
    """Long-lived child process exposing an incremental stream of output chunks."""

    def __init__(self, proc: Process, command: Sequence[str]) -> None:
        """Wrap an already spawned ``proc``.

        Args:
            proc: Process created with piped stdin, stdout and stderr.
            command: Command used to spawn ``proc`` (for diagnostics).
        """

        self.proc = proc
        self.command = tuple(command)
        self._queue: asyncio.Queue[OutputChunk | object] = asyncio.Queue()
        self._readers = [
            asyncio.ensure_future(self._pump(proc.stdout, "stdout")),
            asyncio.ensure_future(self._pump(proc.stderr, "stderr")),
        ]

    async def _pump(self, stream: asyncio.StreamReader | None, source: OutputSource) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            if stream is None:
                return
            while data := await stream.read(READ_CHUNK_SIZE):
                text = decoder.decode(data)
                if text:
                    await self._queue.put(OutputChunk(source=source, text=text))
            tail = decoder.decode(b"", final=True)
            if tail:
                await self._queue.put(OutputChunk(source=source, text=tail))
        finally:
            await self._queue.put(_STREAM_EOF)

    async def chunks(self) -> AsyncIterator[OutputChunk]:
        """Yield output chunks from stdout and stderr in arrival order.

        Iteration finishes once both streams reach end of file.
        """

        open_streams = len(self._readers)
        while open_streams:
            item = await self._queue.get()
            if item is _STREAM_EOF:
                open_streams -= 1
                continue
            if isinstance(item, OutputChunk):
                yield item

    async def write(self, text: str) -> None:
        """Write ``text`` to the child's stdin and flush it.

        Raises:
            ConnectionError: If stdin is closed or the child has exited.
        """

        stdin = self.proc.stdin
        if stdin is None or stdin.is_closing():
            raise ConnectionResetError("process stdin is closed")
        stdin.write(text.encode("utf-8"))
        await stdin.drain()

    def kill(self) -> None:
        """Kill the child, ignoring errors from an already exited process."""

        if self.proc.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            self.proc.kill()

    async def aclose(self) -> None:
        """Kill the child and release its pipes and reader tasks."""

        self.kill()
        if self.proc.stdin is not None:
            with contextlib.suppress(OSError, RuntimeError):
                self.proc.stdin.close()
        with contextlib.suppress(ProcessLookupError):
            await self.proc.wait()
        for reader in self._readers:
            reader.cancel()
        await asyncio.gather(*self._readers, return_exceptions=True)


class ProcessService:
    """Spawn linters and helper processes for a configured Python environment."""

    def __init__(self, python_path: str | None = None, *, env: Mapping[str, str] | None = None) -> None:
        """Create a service bound to ``python_path``.

        Args:
            python_path: Interpreter used for module-based tools and checks.
            env: Extra environment variables applied to every child process.
        """

        self.python_path = python_path or sys.executable
        self._env = dict(env) if env else None

    def _merge_env(self, env: Mapping[str, str] | None) -> dict[str, str] | None:
        if not self._env and not env:
            return None
        merged = os.environ.copy()
        merged.update(self._env or {})
        merged.update(env or {})
        return merged

    async def exec(
        self,
        info: ExecutionInfo,
        *,
        cwd: Path | None = None,
        token: CancellationToken | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        """Run ``info`` to completion and capture stdout and stderr separately.

        A non-zero exit status is reported through :attr:`ExecutionResult.returncode`
        rather than raised. When ``token`` is cancelled the child is terminated and
        the output collected so far is returned with ``cancelled`` set.

        Args:
            info: Resolved tool invocation.
            cwd: Working directory for the child.
            token: Optional cancellation token bound to the run.
            env: Extra environment variables for this run.

        Returns:
            ExecutionResult: Captured streams and exit status.

        Raises:
            ProcessSpawnError: If the executable is missing or cannot be started.
        """

        command = normalize_command(info.command)
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=PIPE,
                stderr=PIPE,
                cwd=str(cwd) if cwd is not None else None,
                env=self._merge_env(env),
            )
        except OSError as exc:
            raise ProcessSpawnError(command, str(exc)) from exc

        stdout = bytearray()
        stderr = bytearray()
        collect = asyncio.ensure_future(
            asyncio.gather(_drain(proc.stdout, stdout), _drain(proc.stderr, stderr), proc.wait()),
        )
        cancelled = False
        if token is not None:
            cancel_wait = asyncio.ensure_future(token.wait())
            try:
                done, _ = await asyncio.wait({collect, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                cancel_wait.cancel()
            if collect not in done:
                cancelled = True
                LOGGER.debug("Cancellation requested; terminating %s", command[0])
                await terminate_process(proc)
        await collect
        return ExecutionResult(
            stdout=_decode(bytes(stdout)),
            stderr=_decode(bytes(stderr)),
            returncode=proc.returncode,
            cancelled=cancelled,
        )

    async def exec_observable(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ObservableProcess:
        """Spawn ``command`` with piped stdio and return an :class:`ObservableProcess`.

        Raises:
            ProcessSpawnError: If the executable is missing or cannot be started.
        """

        normalized = normalize_command(command)
        try:
            proc = await asyncio.create_subprocess_exec(
                *normalized,
                stdin=PIPE,
                stdout=PIPE,
                stderr=PIPE,
                cwd=str(cwd) if cwd is not None else None,
                env=self._merge_env(env),
            )
        except OSError as exc:
            raise ProcessSpawnError(normalized, str(exc)) from exc
        LOGGER.debug("Spawned %s (pid %s)", " ".join(normalized), proc.pid)
        return ObservableProcess(proc, normalized)

    async def is_module_installed(self, module: str) -> bool:
        """Return ``True`` when ``module`` imports in the configured interpreter."""

        info = ExecutionInfo(exec_path=self.python_path, args=("-c", f"import {module}"))
        try:
            result = await self.exec(info)
        except ProcessSpawnError as exc:
            LOGGER.debug("Module check for %s failed: %s", module, exc)
            return False
        return result.returncode == 0


__all__ = [
    "ObservableProcess",
    "ProcessService",
    "normalize_command",
    "terminate_process",
]
