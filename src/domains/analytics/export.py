# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CSV export of filtered records.

The header line is plain; every data field is double-quoted with embedded
quotes doubled, one record per line.
"""

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import date

from src.domains.analytics.records import QuestionRecord, RevisionRecord

REVISION_COLUMNS = (
    "date",
    "subject",
    "type",
    "totalQuestions",
    "correct",
    "wrong",
    "accuracy",
    "remarks",
)

QUESTION_COLUMNS = (
    "date",
    "subject",
    "type",
    "question",
    "remarks",
    "importanceLevel",
)


def _write(columns: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    buffer.write(",".join(columns) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def revisions_to_csv(records: Iterable[RevisionRecord]) -> str:
    """Serialize revisions, accuracy with one decimal."""
    return _write(
        REVISION_COLUMNS,
        (
            (
                record.date,
                record.subject,
                record.type,
                record.num_questions,
                record.num_correct,
                record.num_wrong,
                f"{record.accuracy:.1f}",
                record.remarks,
            )
            for record in records
        ),
    )


def questions_to_csv(records: Iterable[QuestionRecord]) -> str:
    """Serialize saved questions."""
    return _write(
        QUESTION_COLUMNS,
        (
            (
                record.date,
                record.subject,
                record.type,
                record.question,
                record.remarks,
                record.importance_level or "",
            )
            for record in records
        ),
    )


def export_filename(kind: str, today: date) -> str:
    """File name stamped with the export day, e.g. ``revisions-data-2025-01-12.csv``."""
    return f"{kind}-data-{today.isoformat()}.csv"
