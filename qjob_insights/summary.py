"""Aggregates behind the dashboard's stat cards and charts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from qjob_insights.durations import parse_millis, parse_timestamps
from qjob_insights.formatting import format_duration
from qjob_insights.schemas import JOB_STATUSES, UNKNOWN, JobRecord
from qjob_insights.wait_times import nearest_rank

TIME_RANGES = {
    "24h": (pd.Timedelta(days=1), "h"),
    "7d": (pd.Timedelta(days=7), "D"),
    "30d": (pd.Timedelta(days=30), "D"),
    "all": (None, "D"),
}


@dataclass
class TimeStats:
    min: float
    max: float
    avg: float
    median: float
    p90: float
    count: int


@dataclass
class ShotsBin:
    range_start: int
    range_end: int
    count: int
    percentage: float
    cumulative: int
    cumulative_percentage: float


@dataclass
class TimelinePoint:
    bucket: str
    count: int


def status_counts(jobs: Iterable[JobRecord]) -> Dict[str, int]:
    counts = {status: 0 for status in JOB_STATUSES}
    total = 0
    for job in jobs:
        counts[job.status] += 1
        total += 1
    counts["total"] = total
    return counts


def counts_by(jobs: Iterable[JobRecord], field: str) -> Dict[str, int]:
    if field not in JobRecord.model_fields:
        raise ValueError(f"Unknown job field: {field}")
    values = pd.Series([getattr(job, field) or UNKNOWN for job in jobs], dtype=object)
    if values.empty:
        return {}
    counts = values.value_counts(sort=False).sort_values(ascending=False, kind="stable")
    return {str(key): int(value) for key, value in counts.items()}


def time_stats(values: Iterable[float]) -> TimeStats:
    ordered = np.sort(np.asarray(list(values), dtype=float))
    if not len(ordered):
        return TimeStats(min=0.0, max=0.0, avg=0.0, median=0.0, p90=0.0, count=0)
    return TimeStats(
        min=float(ordered[0]),
        max=float(ordered[-1]),
        avg=float(ordered.mean()),
        median=nearest_rank(ordered, 0.5),
        p90=nearest_rank(ordered, 0.9),
        count=len(ordered),
    )


def execution_time_stats(jobs: Iterable[JobRecord]) -> Dict[str, object]:
    """Execution-time spread of completed jobs, per backend type and overall."""
    rows = []
    for job in jobs:
        if job.status != "COMPLETED":
            continue
        millis = parse_millis(job.execution_time)
        if millis is None:
            continue
        rows.append({"backend_type": job.backend_type or UNKNOWN, "exec_sec": millis / 1000})
    df = pd.DataFrame(rows, columns=["backend_type", "exec_sec"])

    by_type = []
    for backend_type, group in df.groupby("backend_type", sort=False):
        stats = time_stats(group["exec_sec"])
        labels = {name: format_duration(getattr(stats, name)) for name in ("min", "avg", "max", "median", "p90")}
        by_type.append({"backend_type": backend_type, **stats.__dict__, "labels": labels})
    by_type.sort(key=lambda entry: entry["count"], reverse=True)

    return {"by_backend_type": by_type, "overall": time_stats(df["exec_sec"]).__dict__}


def shots_histogram(jobs: Iterable[JobRecord], bin_size: int = 100) -> List[ShotsBin]:
    if bin_size <= 0:
        raise ValueError("bin_size must be positive")
    shots = np.array([job.shots for job in jobs if job.shots > 0], dtype=int)
    if not len(shots):
        return []
    num_bins = int(shots.max()) // bin_size + 1
    counts = np.bincount(shots // bin_size, minlength=num_bins)
    cumulative = np.cumsum(counts)
    total = len(shots)
    return [
        ShotsBin(
            range_start=index * bin_size,
            range_end=(index + 1) * bin_size - 1,
            count=int(counts[index]),
            percentage=float(counts[index]) / total * 100,
            cumulative=int(cumulative[index]),
            cumulative_percentage=float(cumulative[index]) / total * 100,
        )
        for index in range(num_bins)
    ]


def _utc(now: Optional[datetime]) -> pd.Timestamp:
    stamp = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    return stamp


def submission_timeline(
    jobs: Iterable[JobRecord],
    time_range: str = "all",
    now: Optional[datetime] = None,
) -> List[TimelinePoint]:
    """Submission counts per hour (``24h``) or per day, with empty buckets filled in."""
    if time_range not in TIME_RANGES:
        raise ValueError(f"Unknown time range: {time_range}")
    window, freq = TIME_RANGES[time_range]
    stamps = parse_timestamps(job.creation_time for job in jobs).dropna()
    if stamps.empty:
        return []
    if window is not None:
        stamps = stamps[stamps >= _utc(now) - window]
        if stamps.empty:
            return []

    buckets = stamps.dt.floor(freq)
    counts = buckets.value_counts()
    full_range = pd.date_range(buckets.min(), buckets.max(), freq=freq)
    counts = counts.reindex(full_range, fill_value=0)
    return [TimelinePoint(bucket=bucket.isoformat(), count=int(count)) for bucket, count in counts.items()]
