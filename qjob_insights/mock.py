"""Synthetic job records for demos and offline use."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np

from qjob_insights.schemas import JOB_STATUSES, JobRecord

BACKENDS = [
    "ibm_quantum_backend_1",
    "ibm_quantum_backend_2",
    "ibm_quantum_backend_3",
    "ibm_brisbane",
    "ibm_kyoto",
    "ibm_osaka",
]
BACKEND_TYPES = ["QPU", "Simulator"]
SHOT_SIZES = [100, 500, 1000, 2000, 4000, 8192]
SUBMISSION_WINDOW = timedelta(days=7)
MAX_TURNAROUND = timedelta(hours=1)


def _isoformat(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_mock_job(rng: np.random.Generator, index: int, now: datetime) -> JobRecord:
    status = str(rng.choice(JOB_STATUSES))
    backend = str(rng.choice(BACKENDS))
    created = now - SUBMISSION_WINDOW * float(rng.random())

    end_time = None
    execution_time = None
    if status in {"COMPLETED", "FAILED"}:
        turnaround = MAX_TURNAROUND * float(rng.random())
        end_time = _isoformat(created + turnaround)
        execution_ms = int(turnaround.total_seconds() * 1000 * rng.uniform(0.1, 0.9))
        execution_time = str(execution_ms)

    return JobRecord(
        job_id=f"qjob_{index:04d}_{int(rng.integers(0, 16 ** 8)):08x}",
        job_name=f"job-{index:04d}",
        backend=backend,
        target=backend,
        backend_type=str(rng.choice(BACKEND_TYPES)),
        provider="ibm-q",
        status=status,
        creation_time=_isoformat(created),
        end_time=end_time,
        execution_time=execution_time,
        shots=int(rng.choice(SHOT_SIZES)),
    )


def generate_mock_jobs(count: int = 250, seed: Optional[int] = None, now: Optional[datetime] = None) -> List[JobRecord]:
    rng = np.random.default_rng(seed)
    now = now or datetime.now(timezone.utc)
    return [generate_mock_job(rng, index, now) for index in range(1, count + 1)]
