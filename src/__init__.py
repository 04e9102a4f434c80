"""StudyTrack Analytics.

Study-progress tracking library: revision and mock-test logging against a
hosted document store, plus the analytics pipeline behind the dashboard
(accuracy trends, weak-topic detection, time efficiency) and the AI
performance analyst.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
