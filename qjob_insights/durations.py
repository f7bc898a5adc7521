from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import pandas as pd

from qjob_insights.schemas import DurationRecord, JobRecord

logger = logging.getLogger(__name__)

# pandas resolves these to the wall clock; they are not timestamps
RELATIVE_KEYWORDS = {"now", "today"}


def _is_relative_keyword(value: object) -> bool:
    return isinstance(value, str) and value.strip().lower() in RELATIVE_KEYWORDS


def parse_timestamps(values: Iterable[Optional[str]]) -> pd.Series:
    """Parse ISO-8601 timestamp text in one pass; anything unparseable becomes ``NaT``.

    Naive values are read as UTC.
    """
    texts = pd.Series(list(values), dtype=object)
    texts = texts.mask(texts.map(_is_relative_keyword).astype(bool))
    return pd.to_datetime(texts, utc=True, errors="coerce", format="ISO8601")


def parse_millis(value: Optional[str]) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        millis = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    if millis < 0:
        return None
    return millis


def _span_sec(start: pd.Timestamp, end: pd.Timestamp) -> float:
    return max(0.0, (end - start).total_seconds())


def _duration_record(job: JobRecord, start: pd.Timestamp, end: Optional[pd.Timestamp]) -> DurationRecord:
    """Execution time prefers the reported milliseconds and falls back to the
    submission-to-completion span; queue time is whatever remains of the
    turnaround once execution is taken out.
    """
    exec_ms = parse_millis(job.execution_time)

    if exec_ms is not None:
        exec_sec = exec_ms / 1000
    elif end is not None:
        exec_sec = _span_sec(start, end)
    else:
        exec_sec = 0.0

    turnaround_sec = _span_sec(start, end) if end is not None else exec_sec
    queue_sec = max(0.0, turnaround_sec - exec_sec)

    return DurationRecord(
        job_id=job.job_id,
        backend=job.backend_name(),
        backend_type=job.backend_type,
        status=job.status,
        queue_sec=queue_sec,
        exec_sec=exec_sec,
    )


def estimate_durations(jobs: Iterable[JobRecord]) -> List[DurationRecord]:
    """Estimate queue and execution seconds per job.

    Jobs whose submission time is missing or unparseable are left out.
    """
    jobs = list(jobs)
    starts = parse_timestamps(job.creation_time for job in jobs)
    ends = parse_timestamps(job.end_time for job in jobs)

    durations: List[DurationRecord] = []
    for job, start, end in zip(jobs, starts, ends):
        if not job.creation_time or pd.isna(start):
            continue
        durations.append(_duration_record(job, start, None if pd.isna(end) else end))
    if len(durations) < len(jobs):
        logger.debug("skipped jobs without usable submission time", extra={"skipped": len(jobs) - len(durations)})
    return durations
