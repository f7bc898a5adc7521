import pytest

from qjob_insights.filters import distinct_backends, filter_jobs, sort_jobs
from qjob_insights.schemas import JobRecord


def _jobs():
    return [
        JobRecord(job_id="a", backend="ibm_osaka", status="COMPLETED", creation_time="2024-01-02T00:00:00Z", shots=100),
        JobRecord(job_id="b", backend="ibm_kyoto", status="FAILED", creation_time="2024-01-03T00:00:00Z", shots=300),
        JobRecord(job_id="c", backend=None, status="COMPLETED", creation_time="unknown", shots=200),
        JobRecord(job_id="d", backend="ibm_kyoto", status="QUEUED", creation_time="2024-01-01T00:00:00Z", shots=100),
    ]


def test_filter_by_status_and_backend():
    assert [job.job_id for job in filter_jobs(_jobs(), status="COMPLETED")] == ["a", "c"]
    assert [job.job_id for job in filter_jobs(_jobs(), backend="ibm_kyoto")] == ["b", "d"]
    assert [job.job_id for job in filter_jobs(_jobs(), status="COMPLETED", backend="Unknown")] == ["c"]
    assert len(filter_jobs(_jobs())) == 4


def test_sort_by_creation_time_puts_unparseable_last():
    assert [job.job_id for job in sort_jobs(_jobs())] == ["b", "a", "d", "c"]
    assert [job.job_id for job in sort_jobs(_jobs(), direction="asc")] == ["d", "a", "b", "c"]


def test_sort_by_shots_is_stable():
    assert [job.job_id for job in sort_jobs(_jobs(), field="shots", direction="asc")] == ["a", "d", "c", "b"]


def test_sort_rejects_bad_arguments():
    with pytest.raises(ValueError):
        sort_jobs(_jobs(), field="colour")
    with pytest.raises(ValueError):
        sort_jobs(_jobs(), direction="sideways")


def test_distinct_backends_sorted():
    assert distinct_backends(_jobs()) == ["Unknown", "ibm_kyoto", "ibm_osaka"]
