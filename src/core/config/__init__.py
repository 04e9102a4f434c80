# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for StudyTrack.

Settings are Pydantic-based and loaded from environment variables.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.analytics.trend_margin
    5.0
"""

from src.core.config.settings import (
    AnalyticsSettings,
    FirestoreSettings,
    LLMSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "FirestoreSettings",
    "LLMSettings",
    "AnalyticsSettings",
]
