"""Export of screening results to CSV and JSON."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from .schemas import ResultView

CSV_COLUMNS: tuple[str, ...] = (
    "candidateId",
    "candidateName",
    "filename",
    "status",
    "matchPercentage",
    "matchCategory",
    "rank",
    "isShortlisted",
    "skillsMatched",
    "skillsMissing",
    "error",
)


def select_views(views: Iterable[ResultView], candidate_ids: Sequence[str] | None = None) -> list[ResultView]:
    """Keep the given candidates (all when None), ordered by rank with errored results last."""
    wanted = set(candidate_ids) if candidate_ids is not None else None
    selected = [view for view in views if wanted is None or view.candidate_id in wanted]
    return sorted(selected, key=lambda view: (view.rank is None, view.rank or 0))


def to_csv(views: Iterable[ResultView]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for view in views:
        writer.writerow(
            [
                view.candidate_id,
                view.candidate_name,
                view.filename,
                view.status.value,
                f"{view.match_percentage:.1f}",
                view.category.value if view.category else "",
                view.rank if view.rank is not None else "",
                str(view.shortlisted).lower(),
                "|".join(view.skills_matched),
                "|".join(view.skills_missing),
                view.error or "",
            ]
        )
    return buffer.getvalue()


def to_json_payload(job_id: str, views: Sequence[ResultView]) -> dict[str, Any]:
    return {
        "screeningJobId": job_id,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "count": len(views),
        "results": [view.to_wire() for view in views],
    }
