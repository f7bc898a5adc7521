from datetime import datetime, timedelta

from qjob_insights.anomalies import detect_anomalies, detect_failure_clusters
from qjob_insights.schemas import JobRecord

START = datetime(2024, 1, 1, 10, 0, 0)


def _job(job_id, backend, queue_sec=0, status="COMPLETED", offset_min=0):
    created = START + timedelta(minutes=offset_min)
    return JobRecord(
        job_id=job_id,
        backend=backend,
        status=status,
        creation_time=created.isoformat(),
        end_time=(created + timedelta(seconds=queue_sec + 1)).isoformat(),
        execution_time="1000",
    )


def test_outlier_queue_time_is_flagged_stuck():
    jobs = [_job(f"a{i}", "A", queue_sec=10) for i in range(7)]
    jobs.append(_job("slow", "A", queue_sec=1000))
    anomalies = detect_anomalies(jobs)
    assert len(anomalies) == 1
    assert anomalies[0].job_id == "slow"
    assert anomalies[0].type == "stuck"
    assert anomalies[0].details == "A: queue 1000s (z=2.65)"


def test_seven_samples_never_flag_stuck():
    jobs = [_job(f"a{i}", "A", queue_sec=10) for i in range(6)]
    jobs.append(_job("slow", "A", queue_sec=100000))
    assert detect_anomalies(jobs) == []


def test_constant_queue_times_do_not_flag():
    jobs = [_job(f"a{i}", "A", queue_sec=42) for i in range(12)]
    assert detect_anomalies(jobs) == []


def test_failure_cluster_on_last_job_of_window():
    jobs = [_job(f"b{i}", "B", status="FAILED" if i % 5 in (0, 1, 2) else "COMPLETED", offset_min=i) for i in range(20)]
    assert sum(job.status == "FAILED" for job in jobs) == 12
    anomalies = detect_anomalies(jobs)
    assert len(anomalies) == 1
    assert anomalies[0].type == "failure_cluster"
    assert anomalies[0].job_id == "b19"
    assert anomalies[0].details == "B: recent failure rate 60%"


def test_failure_window_is_positional_last_twenty():
    old_failures = [_job(f"old{i}", "B", status="FAILED") for i in range(10)]
    recent = [_job(f"new{i}", "B", status="FAILED" if i < 9 else "COMPLETED") for i in range(20)]
    assert detect_failure_clusters(old_failures + recent) == []
    recent[-1] = _job("new19", "B", status="FAILED")
    (anomaly,) = detect_failure_clusters(old_failures + recent)
    assert anomaly.job_id == "new19"


def test_small_failure_window_is_skipped():
    jobs = [_job(f"c{i}", "C", status="FAILED") for i in range(9)]
    assert detect_anomalies(jobs) == []


def test_failure_clusters_count_jobs_without_timestamps():
    jobs = [JobRecord(job_id=f"d{i}", backend=None, status="FAILED") for i in range(10)]
    (anomaly,) = detect_anomalies(jobs)
    assert anomaly.details == "Unknown: recent failure rate 100%"


def test_stuck_anomalies_come_before_failure_clusters():
    failing = [_job(f"f{i}", "F", status="FAILED") for i in range(10)]
    stuck = [_job(f"a{i}", "A", queue_sec=10) for i in range(7)] + [_job("slow", "A", queue_sec=1000)]
    anomalies = detect_anomalies(failing + stuck)
    assert [a.type for a in anomalies] == ["stuck", "failure_cluster"]
    assert [a.job_id for a in anomalies] == ["slow", "f9"]
