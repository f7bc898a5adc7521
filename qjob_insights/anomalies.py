from __future__ import annotations

import logging
from typing import Iterable, List

import numpy as np

from qjob_insights.durations import estimate_durations, parse_timestamps
from qjob_insights.formatting import round_half_up
from qjob_insights.grouping import group_by
from qjob_insights.schemas import Anomaly, DurationRecord, JobRecord

logger = logging.getLogger(__name__)

MIN_QUEUE_SAMPLES = 8
STUCK_Z_THRESHOLD = 2.5
FAILURE_WINDOW = 20
MIN_FAILURE_WINDOW = 10
FAILURE_RATE_THRESHOLD = 0.5


def detect_stuck_jobs(durations: List[DurationRecord]) -> List[Anomaly]:
    anomalies: List[Anomaly] = []
    for backend, records in group_by(durations, lambda record: record.backend).items():
        if len(records) < MIN_QUEUE_SAMPLES:
            continue
        queue = np.array([record.queue_sec for record in records], dtype=float)
        mean = float(queue.mean())
        std = float(queue.std()) or 1.0
        for record, value in zip(records, queue):
            z = (value - mean) / std
            if z > STUCK_Z_THRESHOLD:
                anomalies.append(
                    Anomaly(
                        job_id=record.job_id,
                        type="stuck",
                        details=f"{backend}: queue {round_half_up(value)}s (z={z:.2f})",
                    )
                )
    return anomalies


def _is_chronological(window: List[JobRecord]) -> bool:
    return parse_timestamps(job.creation_time for job in window).dropna().is_monotonic_increasing


def detect_failure_clusters(jobs: List[JobRecord]) -> List[Anomaly]:
    """Flag backends whose most recent jobs mostly failed.

    "Most recent" is positional: the last ``FAILURE_WINDOW`` jobs per backend
    in input order. Input that is not sorted by submission time is used as-is.
    """
    anomalies: List[Anomaly] = []
    for backend, backend_jobs in group_by(jobs, lambda job: job.backend_name()).items():
        window = backend_jobs[-FAILURE_WINDOW:]
        if len(window) < MIN_FAILURE_WINDOW:
            continue
        if not _is_chronological(window):
            logger.debug("failure window not in submission order", extra={"backend": backend})
        fail_rate = sum(1 for job in window if job.status == "FAILED") / len(window)
        if fail_rate >= FAILURE_RATE_THRESHOLD:
            anomalies.append(
                Anomaly(
                    job_id=window[-1].job_id,
                    type="failure_cluster",
                    details=f"{backend}: recent failure rate {round_half_up(fail_rate * 100)}%",
                )
            )
    return anomalies


def detect_anomalies(jobs: Iterable[JobRecord]) -> List[Anomaly]:
    jobs = list(jobs)
    return detect_stuck_jobs(estimate_durations(jobs)) + detect_failure_clusters(jobs)
