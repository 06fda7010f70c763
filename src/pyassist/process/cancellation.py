# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cooperative cancellation tokens for asynchronous tool runs."""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class CancellationToken:
    """Read-only view of a cancellation signal.

    Tokens are observed by the process layer, which terminates the child process
    as soon as :meth:`wait` completes.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancellation_requested(self) -> bool:
        """Return ``True`` once the owning source has been cancelled."""

        return self._event.is_set()

    async def wait(self) -> None:
        """Block until cancellation is requested."""

        await self._event.wait()

    def on_cancelled(self, callback: Callable[[], None]) -> None:
        """Invoke ``callback`` when the token is cancelled, or now if it already is."""

        if self._event.is_set():
            callback()
            return
        self._callbacks.append(callback)

    def _trigger(self) -> None:
        if self._event.is_set():
            return
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()


class CancellationTokenSource:
    """Owner of a :class:`CancellationToken`.

    A source created with a ``parent`` token is cancelled together with the
    parent, while cancelling the child leaves the parent untouched.
    """

    def __init__(self, parent: CancellationToken | None = None) -> None:
        """Create a new source, optionally linked to ``parent``.

        Args:
            parent: Token whose cancellation propagates to this source.
        """

        self._token = CancellationToken()
        if parent is not None:
            parent.on_cancelled(self.cancel)

    @property
    def token(self) -> CancellationToken:
        """Return the token controlled by this source."""

        return self._token

    def cancel(self) -> None:
        """Request cancellation of :attr:`token`."""

        self._token._trigger()


__all__ = ["CancellationToken", "CancellationTokenSource"]
