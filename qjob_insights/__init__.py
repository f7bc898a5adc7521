"""Queue, execution and reliability analytics for quantum job exports."""

from qjob_insights.anomalies import detect_anomalies
from qjob_insights.durations import estimate_durations
from qjob_insights.loader import load_jobs_csv
from qjob_insights.recommender import recommend_backends
from qjob_insights.schemas import Anomaly, BackendScore, DurationRecord, JobRecord, RecommendationWeights, WaitTimeStats
from qjob_insights.wait_times import estimate_wait_times_by_backend

__all__ = [
    "estimate_durations",
    "estimate_wait_times_by_backend",
    "recommend_backends",
    "detect_anomalies",
    "load_jobs_csv",
    "JobRecord",
    "DurationRecord",
    "WaitTimeStats",
    "RecommendationWeights",
    "BackendScore",
    "Anomaly",
]
