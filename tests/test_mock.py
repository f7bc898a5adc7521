from datetime import datetime, timezone

from qjob_insights.anomalies import detect_anomalies
from qjob_insights.durations import estimate_durations
from qjob_insights.mock import BACKENDS, generate_mock_jobs
from qjob_insights.recommender import recommend_backends

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_mock_jobs_are_deterministic_for_seed():
    first = generate_mock_jobs(count=30, seed=7, now=NOW)
    second = generate_mock_jobs(count=30, seed=7, now=NOW)
    assert [job.model_dump() for job in first] == [job.model_dump() for job in second]


def test_mock_jobs_follow_record_contract():
    jobs = generate_mock_jobs(count=200, seed=1, now=NOW)
    assert len({job.job_id for job in jobs}) == 200
    for job in jobs:
        assert job.backend in BACKENDS
        assert job.shots > 0
        if job.status in {"COMPLETED", "FAILED"}:
            assert job.end_time is not None
            assert job.execution_time is not None
        else:
            assert job.end_time is None
            assert job.execution_time is None


def test_mock_jobs_feed_the_analytics():
    jobs = generate_mock_jobs(count=250, seed=3, now=NOW)
    durations = estimate_durations(jobs)
    assert len(durations) == 250
    assert all(record.queue_sec >= 0 and record.exec_sec >= 0 for record in durations)
    assert {entry.backend for entry in recommend_backends(jobs)} <= set(BACKENDS)
    assert all(anomaly.type in {"stuck", "failure_cluster"} for anomaly in detect_anomalies(jobs))
