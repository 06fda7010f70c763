# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Single-command session with the refactor worker subprocess."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Final

from ..config.models import Settings
from ..core.errors import (
    ProcessSpawnError,
    PyAssistError,
    RefactorCommandError,
    RefactorDependencyMissingError,
    RefactorProtocolError,
    RefactorStartupError,
)
from ..process.runner import ObservableProcess, ProcessService
from .protocol import (
    READY_SENTINEL,
    RefactorCommand,
    RefactorErrorPayload,
    RefactorResult,
    consume_sentinel,
    drop_noise_lines,
    parse_error,
    parse_result,
    split_json_records,
)

LOGGER = logging.getLogger(__name__)

NOT_INSTALLED_MESSAGE: Final[str] = "Not installed"
WORKER_SCRIPT: Final[Path] = Path(__file__).with_name("worker.py")


class SessionState(str, Enum):
    """Lifecycle states of a :class:`RefactorSession`."""

    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    READY = "ready"
    BUSY = "busy"
    FAILED = "failed"
    DISPOSED = "disposed"


class RefactorSession:
    """Drive one refactor worker process through exactly one command.

    The worker is spawned lazily by :meth:`send`, which waits for the ready
    sentinel, writes the command and resolves with the first JSON record read
    from stdout. Output is framed incrementally so a response split across
    several reads is still recognised once its line is complete. Whatever the
    outcome, the worker is killed afterwards; a session is never reused.
    """

    def __init__(
        self,
        settings: Settings,
        process_service: ProcessService | None = None,
        *,
        command: Sequence[str] | None = None,
        cwd: Path | None = None,
        sentinel: str = READY_SENTINEL,
    ) -> None:
        """Configure the session without spawning anything.

        Args:
            settings: Configuration providing the interpreter, worker script and
                workspace root.
            process_service: Service used to spawn the worker.
            command: Explicit worker command overriding the configured script.
            cwd: Working directory for the worker; defaults to the script folder.
            sentinel: Ready marker the worker prints once on stdout.
        """

        self.settings = settings
        self.process_service = process_service or ProcessService(settings.python_path)
        self._command = list(command) if command is not None else self._default_command()
        self._cwd = cwd if cwd is not None else self._default_cwd()
        self._sentinel = sentinel
        self._state = SessionState.UNINITIALIZED
        self._process: ObservableProcess | None = None
        self._reader: asyncio.Task[None] | None = None
        self._stdout_buffer = ""
        self._stderr_buffer = ""
        self._stderr_noise: list[str] = []
        self._ready: asyncio.Future[None] | None = None
        self._pending: asyncio.Future[RefactorResult] | None = None
        self._pending_id: str | None = None
        self.last_error: PyAssistError | None = None

    def _default_command(self) -> list[str]:
        script = self.settings.refactor.script or WORKER_SCRIPT
        return [self.settings.python_path, str(script), str(self.settings.workspace_root)]

    def _default_cwd(self) -> Path:
        script = self.settings.refactor.script or WORKER_SCRIPT
        return script.parent

    @property
    def state(self) -> SessionState:
        """Return the current lifecycle state."""

        return self._state

    async def __aenter__(self) -> RefactorSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.dispose()

    async def start(self) -> None:
        """Spawn the worker and wait for its ready sentinel.

        Raises:
            RefactorDependencyMissingError: If the worker reports a missing module.
            RefactorStartupError: If the worker fails before becoming ready.
            RuntimeError: If the session was already started.
        """

        if self._state is not SessionState.UNINITIALIZED:
            raise RuntimeError(f"Refactor session cannot start from state {self._state.value}")
        self._state = SessionState.STARTING
        loop = asyncio.get_running_loop()
        self._ready = loop.create_future()
        try:
            self._process = await self.process_service.exec_observable(self._command, cwd=self._cwd)
        except ProcessSpawnError as exc:
            self._state = SessionState.FAILED
            raise RefactorStartupError(f"Refactor failed. {exc}") from exc
        self._reader = asyncio.ensure_future(self._read_loop(self._process))
        timeout = self.settings.refactor.startup_timeout
        try:
            await asyncio.wait_for(asyncio.shield(self._ready), timeout=timeout)
        except TimeoutError as exc:
            self._fail_startup(RefactorStartupError(f"Refactor worker did not start within {timeout}s"))
            await self.dispose()
            raise self._startup_error() from exc
        except PyAssistError:
            await self.dispose()
            raise

    async def send(self, command: RefactorCommand) -> RefactorResult:
        """Send ``command`` and wait for the worker's response.

        The session is disposed once the command settles, successfully or not.

        Args:
            command: Refactor command to execute.

        Returns:
            RefactorResult: Validated worker response.

        Raises:
            RuntimeError: If a command is already in flight or the session is
                no longer usable.
            RefactorStartupError: If the worker fails to start.
            RefactorCommandError: If the worker reports an error for the command.
            RefactorProtocolError: If the worker answers with an unexpected payload.
        """

        if self._state is SessionState.BUSY:
            raise RuntimeError("A refactor command is already in flight for this session")
        if self._state in (SessionState.FAILED, SessionState.DISPOSED):
            raise RuntimeError(f"Refactor session is {self._state.value}") from self.last_error
        if self._state is SessionState.UNINITIALIZED:
            await self.start()
        if self._state is not SessionState.READY or self._process is None:
            raise RuntimeError(f"Refactor session is {self._state.value}")

        self._state = SessionState.BUSY
        self._pending = asyncio.get_running_loop().create_future()
        self._pending_id = command.id
        payload = command.to_line()
        LOGGER.debug("Sending refactor command %s", payload.rstrip())
        try:
            try:
                await self._process.write(payload)
            except (ConnectionError, OSError) as exc:
                self._reject(RefactorCommandError(f"Refactor failed. {exc}"))
            return await self._pending
        finally:
            await self.dispose()

    async def dispose(self) -> None:
        """Kill the worker and drop all buffered output; safe to call repeatedly."""

        if self._state is not SessionState.FAILED:
            self._state = SessionState.DISPOSED
        process, self._process = self._process, None
        reader, self._reader = self._reader, None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
        if process is not None:
            try:
                await process.aclose()
            except (OSError, RuntimeError) as exc:
                LOGGER.debug("Ignoring error while killing refactor worker: %s", exc)
        if reader is not None and reader is not asyncio.current_task():
            await asyncio.gather(reader, return_exceptions=True)
        self._stdout_buffer = ""
        self._stderr_buffer = ""
        self._stderr_noise.clear()
        for future in (self._ready, self._pending):
            if future is not None and not future.done():
                future.cancel()

    async def _read_loop(self, process: ObservableProcess) -> None:
        try:
            async for chunk in process.chunks():
                if chunk.source == "stdout":
                    self._on_stdout(chunk.text)
                else:
                    self._on_stderr(chunk.text)
        except asyncio.CancelledError:
            raise
        except (OSError, RuntimeError) as exc:
            self._on_transport_error(RefactorCommandError(f"Refactor failed. {exc}"))
            return
        returncode = await process.proc.wait()
        self._on_transport_error(
            RefactorCommandError(f"Refactor worker exited with status {returncode}{self._stderr_tail()}"),
        )

    def _stderr_tail(self) -> str:
        tail = "\n".join(line for line in [*self._stderr_noise, self._stderr_buffer.strip()] if line)
        return f": {tail}" if tail else ""

    def _on_stdout(self, text: str) -> None:
        self._stdout_buffer += text
        if self._state is SessionState.STARTING:
            found, remaining, preamble = consume_sentinel(self._stdout_buffer, self._sentinel)
            if not found:
                return
            for line in preamble:
                LOGGER.debug("Refactor worker: %s", line)
            self._stdout_buffer = remaining
            self._state = SessionState.READY
            if self._ready is not None and not self._ready.done():
                self._ready.set_result(None)
            return
        if self._pending is None or self._pending.done():
            if self._stdout_buffer.strip():
                LOGGER.debug("Discarding unsolicited refactor output: %s", self._stdout_buffer.strip())
            self._stdout_buffer = ""
            return

        records, self._stdout_buffer = split_json_records(self._stdout_buffer)
        if not records:
            return
        try:
            result = parse_result(records[0])
        except RefactorProtocolError as exc:
            self._reject(exc)
            return
        if result.id is not None and self._pending_id is not None and str(result.id) != self._pending_id:
            self._reject(
                RefactorProtocolError(
                    f"Refactor response id {result.id!r} does not match command id {self._pending_id!r}",
                ),
            )
            return
        self._state = SessionState.READY
        self._pending.set_result(result)

    def _on_stderr(self, text: str) -> None:
        self._stderr_buffer, noise = drop_noise_lines(self._stderr_buffer + text)
        for line in noise:
            LOGGER.debug("Refactor worker stderr: %s", line)
        self._stderr_noise.extend(noise)
        records, self._stderr_buffer = split_json_records(self._stderr_buffer)
        if not records:
            return
        try:
            payload = parse_error(records[0])
        except RefactorProtocolError as exc:
            self._on_transport_error(exc)
            return
        self._on_error_payload(payload)

    def _on_error_payload(self, payload: RefactorErrorPayload) -> None:
        message = f"Refactor failed. {payload.formatted}"
        if self._pending is not None and not self._pending.done():
            self._reject(RefactorCommandError(message))
            return
        if payload.is_dependency_missing:
            self._fail_startup(RefactorDependencyMissingError(NOT_INSTALLED_MESSAGE))
        else:
            self._fail_startup(RefactorStartupError(message))

    def _on_transport_error(self, error: PyAssistError) -> None:
        if self._pending is not None and not self._pending.done():
            self._reject(error)
            return
        self._fail_startup(error)

    def _reject(self, error: PyAssistError) -> None:
        self._state = SessionState.FAILED
        if self._pending is not None and not self._pending.done():
            self._pending.set_exception(error)

    def _fail_startup(self, error: PyAssistError) -> None:
        if self._ready is None or self._ready.done():
            self.last_error = error
            if self._state is not SessionState.DISPOSED:
                self._state = SessionState.FAILED
            LOGGER.debug("Refactor worker failed while idle: %s", error)
            return
        self._state = SessionState.FAILED
        startup_error = error if isinstance(error, RefactorStartupError) else RefactorStartupError(str(error))
        self._ready.set_exception(startup_error)

    def _startup_error(self) -> BaseException:
        if self._ready is not None and self._ready.done() and not self._ready.cancelled():
            error = self._ready.exception()
            if error is not None:
                return error
        return RefactorStartupError("Refactor worker failed to start")


__all__ = ["NOT_INSTALLED_MESSAGE", "RefactorSession", "SessionState", "WORKER_SCRIPT"]
