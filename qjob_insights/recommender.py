from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Union

from qjob_insights.durations import estimate_durations
from qjob_insights.formatting import round_half_up
from qjob_insights.grouping import group_by
from qjob_insights.schemas import BackendScore, DurationRecord, JobRecord, RecommendationWeights


@dataclass
class BackendStats:
    backend: str
    success: float
    avg_queue: float
    avg_exec: float
    count: int


@dataclass
class MetricRange:
    low: float
    high: float

    @classmethod
    def over(cls, values: Iterable[float]) -> "MetricRange":
        finite = [value for value in values if math.isfinite(value)]
        if not finite:
            return cls(low=0.0, high=1.0)
        return cls(low=min(finite), high=max(finite))

    def inverted(self, value: float) -> float:
        # lower raw values score higher
        if not math.isfinite(value) or self.high == self.low:
            return 0.0
        return 1 - (value - self.low) / (self.high - self.low)


def _seconds_label(value: float) -> str:
    if not math.isfinite(value):
        return "n/a"
    return f"{round_half_up(value)}s"


def _mean_or_inf(values: List[float]) -> float:
    if not values:
        return math.inf
    return sum(values) / len(values)


def _backend_stats(backend: str, jobs: List[JobRecord], durations: List[DurationRecord]) -> BackendStats:
    n = len(jobs) or 1
    completed = sum(1 for job in jobs if job.status == "COMPLETED")
    return BackendStats(
        backend=backend,
        success=completed / n,
        avg_queue=_mean_or_inf([record.queue_sec for record in durations]),
        avg_exec=_mean_or_inf([record.exec_sec for record in durations]),
        count=n,
    )


def _coerce_weights(weights: Optional[Union[RecommendationWeights, Mapping[str, float]]]) -> RecommendationWeights:
    if weights is None:
        return RecommendationWeights()
    if isinstance(weights, RecommendationWeights):
        return weights
    return RecommendationWeights(**weights)


def recommend_backends(
    jobs: Iterable[JobRecord],
    weights: Optional[Union[RecommendationWeights, Mapping[str, float]]] = None,
) -> List[BackendScore]:
    """Rank backends by a weighted blend of success rate, queue time and execution time.

    Each metric is normalized onto ``[0, 1]`` across the backends present, with
    higher meaning better. Weights are applied as given; supply weights that
    sum to 1 for a bounded score.
    """
    jobs = list(jobs)
    weights = _coerce_weights(weights)
    durations = estimate_durations(jobs)

    jobs_by_backend = group_by(jobs, lambda job: job.backend_name())
    durations_by_backend = group_by(durations, lambda record: record.backend)
    stats = [
        _backend_stats(backend, backend_jobs, durations_by_backend.get(backend, []))
        for backend, backend_jobs in jobs_by_backend.items()
    ]
    if not stats:
        return []

    max_success = max(max(s.success for s in stats), 1)
    queue_range = MetricRange.over(s.avg_queue for s in stats)
    exec_range = MetricRange.over(s.avg_exec for s in stats)

    scored: List[BackendScore] = []
    for s in stats:
        success_n = s.success / max_success
        queue_n = queue_range.inverted(s.avg_queue)
        exec_n = exec_range.inverted(s.avg_exec)
        score = weights.success * success_n + weights.queue * queue_n + weights.exec * exec_n
        scored.append(
            BackendScore(
                backend=s.backend,
                success=s.success,
                avg_queue=s.avg_queue,
                avg_exec=s.avg_exec,
                count=s.count,
                score=score,
                reasons=[
                    f"Success {round_half_up(s.success * 100)}%",
                    f"Avg queue {_seconds_label(s.avg_queue)}",
                    f"Avg exec {_seconds_label(s.avg_exec)}",
                ],
            )
        )
    return sorted(scored, key=lambda entry: entry.score, reverse=True)
