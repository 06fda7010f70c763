# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Process execution services and cancellation primitives."""

from __future__ import annotations

from .cancellation import CancellationToken, CancellationTokenSource
from .runner import ObservableProcess, ProcessService, normalize_command

__all__ = [
    "CancellationToken",
    "CancellationTokenSource",
    "ObservableProcess",
    "ProcessService",
    "normalize_command",
]
