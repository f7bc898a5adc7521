from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from qjob_insights.durations import parse_timestamps
from qjob_insights.schemas import JobRecord

SORT_DIRECTIONS = {"asc", "desc"}


def filter_jobs(jobs: Iterable[JobRecord], status: str = "all", backend: str = "all") -> List[JobRecord]:
    selected = list(jobs)
    if status != "all":
        selected = [job for job in selected if job.status == status]
    if backend != "all":
        selected = [job for job in selected if job.backend_name() == backend]
    return selected


def sort_jobs(jobs: Iterable[JobRecord], field: str = "creation_time", direction: str = "desc") -> List[JobRecord]:
    """Sort jobs by a record field; submission time sorts chronologically.

    Jobs with no value for the field go last in either direction.
    """
    if field not in JobRecord.model_fields:
        raise ValueError(f"Unknown sort field: {field}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")

    jobs = list(jobs)
    if field == "creation_time":
        keys = parse_timestamps(job.creation_time for job in jobs).tolist()
    else:
        keys = [getattr(job, field) for job in jobs]
    frame = pd.DataFrame({"key": keys, "position": range(len(jobs))})
    frame = frame.sort_values(
        "key",
        ascending=direction == "asc",
        kind="stable",
        na_position="last",
    )
    return [jobs[position] for position in frame["position"]]


def distinct_backends(jobs: Iterable[JobRecord]) -> List[str]:
    return sorted({job.backend_name() for job in jobs})
