# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for StudyTrack.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Record date parsing and bucket key helpers
"""

from src.utils.datetime import (
    days_between,
    days_in_month,
    format_record_date,
    iso_week_key,
    minutes_to_human,
    month_key,
    parse_record_date,
    parse_week_key,
    utc_now,
    utc_today,
    week_bounds,
)
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "utc_today",
    "parse_record_date",
    "format_record_date",
    "iso_week_key",
    "month_key",
    "parse_week_key",
    "week_bounds",
    "days_in_month",
    "days_between",
    "minutes_to_human",
]
