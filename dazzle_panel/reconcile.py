from __future__ import annotations

from typing import Sequence

from dazzle_panel.constants import MAX_PRINT_JOBS
from dazzle_panel.state import PrintJob


def upsert_job(
    jobs: Sequence[PrintJob], job: PrintJob, limit: int = MAX_PRINT_JOBS
) -> list[PrintJob]:
    """
    Return a new job list with job merged in.

    A known id is replaced where it stands; a new id goes to the front.
    The result keeps at most `limit` entries, dropping from the end.
    """
    updated = list(jobs)
    for i, existing in enumerate(updated):
        if existing.id == job.id:
            updated[i] = job
            break
    else:
        updated.insert(0, job)
    return updated[:limit]
