import pytest
from pydantic import ValidationError

from qjob_insights.grouping import group_by
from qjob_insights.schemas import DurationRecord, JobRecord


def test_status_is_case_sensitive():
    with pytest.raises(ValidationError):
        JobRecord(job_id="a", status="completed")


def test_shots_coerce_to_non_negative_int():
    assert JobRecord(job_id="a", status="QUEUED", shots="2048").shots == 2048
    assert JobRecord(job_id="a", status="QUEUED", shots="lots").shots == 0
    assert JobRecord(job_id="a", status="QUEUED", shots=-4).shots == 0
    assert JobRecord(job_id="a", status="QUEUED", shots=None).shots == 0
    assert JobRecord(job_id="a", status="QUEUED", shots="1024 shots").shots == 1024
    assert JobRecord(job_id="a", status="QUEUED", shots="1e3").shots == 1
    assert JobRecord(job_id="a", status="QUEUED", shots=" 12.7").shots == 12
    assert JobRecord(job_id="a", status="QUEUED", shots="-5").shots == 0


def test_job_records_are_immutable():
    job = JobRecord(job_id="a", status="RUNNING", backend="ibm_kyoto")
    with pytest.raises(ValidationError):
        job.backend = "ibm_osaka"


def test_duration_record_serializes_camel_case():
    record = DurationRecord(job_id="a", backend="A", status="COMPLETED", queue_sec=1.5, exec_sec=2.0)
    assert record.model_dump(by_alias=True)["queueSec"] == 1.5
    assert record.model_dump()["exec_sec"] == 2.0


def test_group_by_preserves_key_and_item_order():
    groups = group_by(["b1", "a1", "b2", "c1", "a2"], lambda item: item[0])
    assert list(groups) == ["b", "a", "c"]
    assert groups["b"] == ["b1", "b2"]
