from __future__ import annotations

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

JOB_STATUSES = ("RUNNING", "QUEUED", "COMPLETED", "FAILED")
UNKNOWN = "Unknown"
UNKNOWN_BACKEND = UNKNOWN
LEADING_INT = re.compile(r"\s*[+-]?\d+")


class JobRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_id: str
    backend: Optional[str] = None
    backend_type: Optional[str] = None
    status: str
    creation_time: Optional[str] = None
    end_time: Optional[str] = None
    execution_time: Optional[str] = None
    shots: int = 0
    job_name: Optional[str] = None
    provider: Optional[str] = None
    target: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        if value not in JOB_STATUSES:
            raise ValueError(f"Invalid status: {value}")
        return value

    @field_validator("shots", mode="before")
    @classmethod
    def coerce_shots(cls, value: object) -> int:
        if value is None or isinstance(value, bool):
            return 0
        match = LEADING_INT.match(str(value))
        if not match:
            return 0
        shots = int(match.group(0))
        return shots if shots >= 0 else 0

    def backend_name(self) -> str:
        return self.backend or UNKNOWN_BACKEND


class DurationRecord(BaseModel):
    job_id: str
    backend: str
    backend_type: Optional[str] = None
    status: str
    queue_sec: float = Field(ge=0, serialization_alias="queueSec")
    exec_sec: float = Field(ge=0, serialization_alias="execSec")


class WaitTimeStats(BaseModel):
    mean: float
    p90: float
    count: int


class RecommendationWeights(BaseModel):
    success: float = 0.5
    queue: float = 0.3
    exec: float = 0.2


class BackendScore(BaseModel):
    backend: str
    success: float
    avg_queue: float = Field(serialization_alias="avgQueue")
    avg_exec: float = Field(serialization_alias="avgExec")
    count: int
    score: float
    reasons: List[str]


class Anomaly(BaseModel):
    job_id: str
    type: Literal["stuck", "failure_cluster"]
    details: str
