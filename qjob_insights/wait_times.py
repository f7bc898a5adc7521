from __future__ import annotations

import math
from typing import Dict, Iterable, Sequence

import numpy as np

from qjob_insights.durations import estimate_durations
from qjob_insights.grouping import group_by
from qjob_insights.schemas import JobRecord, WaitTimeStats


def nearest_rank(sorted_values: Sequence[float], quantile: float) -> float:
    """Pick the sorted value at ``floor(n * quantile)``, clamped to the last index."""
    index = min(len(sorted_values) - 1, math.floor(len(sorted_values) * quantile))
    return float(sorted_values[index])


def summarize_queue_times(values: Sequence[float]) -> WaitTimeStats:
    ordered = np.sort(np.asarray(values, dtype=float), kind="stable")
    return WaitTimeStats(
        mean=float(ordered.mean()),
        p90=nearest_rank(ordered, 0.9),
        count=len(ordered),
    )


def estimate_wait_times_by_backend(jobs: Iterable[JobRecord]) -> Dict[str, WaitTimeStats]:
    durations = estimate_durations(jobs)
    by_backend = group_by(durations, lambda record: record.backend)
    return {
        backend: summarize_queue_times([record.queue_sec for record in records])
        for backend, records in by_backend.items()
        if records
    }
