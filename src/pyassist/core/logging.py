# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Audit output channels and user-facing console helpers."""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Final, Literal

from rich.console import Console
from rich.rule import Rule
from rich.text import Text

BANNER: Final[str] = "#" * 10
_LOGGER_PREFIX: Final[str] = "pyassist.output"


class OutputChannel:
    """Named audit sink recording raw tool invocations and their output.

    Text is kept in memory so callers can display or inspect it later, and every
    completed line is forwarded to a :mod:`logging` logger named
    ``pyassist.output.<name>``.
    """

    def __init__(self, name: str, *, logger: logging.Logger | None = None) -> None:
        """Create a channel called ``name``.

        Args:
            name: Channel identifier used for the backing logger name.
            logger: Optional logger overriding the default channel logger.
        """

        self.name = name
        self._logger = logger or logging.getLogger(f"{_LOGGER_PREFIX}.{name.lower()}")
        self._lines: list[str] = []
        self._partial = ""

    def append(self, text: str) -> None:
        """Append ``text`` without adding a trailing newline.

        Args:
            text: Raw text to record; completed lines are forwarded to logging.
        """

        if not text:
            return
        pending = self._partial + text
        *complete, self._partial = pending.split("\n")
        for line in complete:
            self._emit(line)

    def append_line(self, text: str = "") -> None:
        """Append ``text`` followed by a newline."""

        self.append(f"{text}\n")

    def banner(self, title: str, *, closed: bool = False) -> None:
        """Record a ``##########`` separated heading.

        Args:
            title: Heading text.
            closed: When ``True`` the banner is also appended after the title.
        """

        suffix = BANNER if closed else ""
        self.append_line(f"{BANNER}{title}{suffix}")

    def lines(self) -> list[str]:
        """Return the recorded lines, including any unterminated tail."""

        if self._partial:
            return [*self._lines, self._partial]
        return list(self._lines)

    def _emit(self, line: str) -> None:
        self._lines.append(line)
        self._logger.debug("%s", line)


def configure_logging(*, verbose: bool = False) -> None:
    """Stream ``pyassist`` log records to stderr.

    Args:
        verbose: Emit debug records, including every output channel line.
    """

    logger = logging.getLogger("pyassist")
    if not getattr(logger, "_pyassist_configured", False):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
        setattr(logger, "_pyassist_configured", True)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal.

    Returns:
        bool: ``True`` when ``sys.stdout`` reports TTY support, ``False`` otherwise.
    """

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


class RichConsoleManager:
    """Provision Rich :class:`Console` instances keyed by colour and emoji settings."""

    def __init__(self) -> None:
        self._cache: dict[tuple[bool, bool, bool], Console] = {}

    def get(self, *, color: bool, emoji: bool) -> Console:
        """Return a Rich console configured for ``color`` and ``emoji`` preferences.

        Args:
            color: ``True`` when ANSI colour output should be enabled.
            emoji: ``True`` when Rich should render emoji glyphs.

        Returns:
            Console: Cached or newly constructed console matching the preferences.
        """

        tty = detect_tty()
        key = (color, emoji, tty)
        if key not in self._cache:
            color_system: Literal["auto", "standard", "256", "truecolor", "windows"] | None = (
                "auto" if color and tty else None
            )
            self._cache[key] = Console(
                color_system=color_system,
                force_terminal=tty,
                no_color=not (color and tty),
                emoji=emoji,
                soft_wrap=True,
            )
        return self._cache[key]


@lru_cache(maxsize=1)
def get_console_manager() -> RichConsoleManager:
    """Return the process-wide :class:`RichConsoleManager` instance."""

    return RichConsoleManager()


def emoji(symbol: str, enable: bool) -> str:
    """Return ``symbol`` when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
) -> None:
    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def section(title: str, *, use_color: bool) -> None:
    """Render a section header to delineate console output blocks.

    Args:
        title: Section title displayed to the user.
        use_color: Flag indicating whether ANSI colour support is desired.
    """

    console = get_console_manager().get(color=use_color, emoji=True)
    if use_color:
        console.print()
        console.print(Rule(title))
    else:
        console.print(f"\n--- {title} ---")


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    _print_line(f"{emoji('ℹ️ ', use_emoji)}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message."""

    _print_line(f"{emoji('✅ ', use_emoji)}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message."""

    _print_line(f"{emoji('⚠️ ', use_emoji)}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message."""

    _print_line(f"{emoji('❌ ', use_emoji)}{msg}", style="red", use_emoji=use_emoji, use_color=use_color)


__all__ = [
    "BANNER",
    "OutputChannel",
    "RichConsoleManager",
    "configure_logging",
    "detect_tty",
    "emoji",
    "fail",
    "get_console_manager",
    "info",
    "ok",
    "section",
    "warn",
]
