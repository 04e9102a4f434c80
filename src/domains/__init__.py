# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for StudyTrack.

Domains:
    analytics: Study record normalization, aggregation, weak-topic scoring,
        insights, export and chat assistants.
"""
