# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and loaders."""

from __future__ import annotations

from .loader import load_config_fragment, load_settings
from .models import LinterSettings, LintingSettings, RefactorSettings, Settings

__all__ = [
    "LinterSettings",
    "LintingSettings",
    "RefactorSettings",
    "Settings",
    "load_config_fragment",
    "load_settings",
]
