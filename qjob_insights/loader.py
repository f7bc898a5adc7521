from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd
import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from qjob_insights.schemas import JobRecord

logger = logging.getLogger(__name__)

EXPORT_COLUMNS: Dict[str, str] = {
    "JOB ID": "job_id",
    "JOB NAME": "job_name",
    "BACKEND TYPE": "backend_type",
    "JOB STATUS": "status",
    "SUBMISSION TIME": "creation_time",
    "COMPLETION TIME": "end_time",
    "EXECUTION TIME (MS)": "execution_time",
    "SHOTS": "shots",
    "PROVIDER": "provider",
    "TARGET": "target",
}
MISSING_MARKERS = {"", "N/A"}


@dataclass
class SourceConfig:
    path: Optional[str] = None
    url: Optional[str] = None
    timeout_sec: int = 30
    verify_tls: bool = True


class CsvExportClient:
    """Download a job export over HTTP with retrying sessions."""

    def __init__(self, config: SourceConfig) -> None:
        self.config = config
        self.session = requests.Session()
        retries = Retry(
            total=5,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        self.session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session.mount("http://", HTTPAdapter(max_retries=retries))

    def fetch_text(self) -> str:
        response = self.session.get(
            self.config.url,
            timeout=self.config.timeout_sec,
            verify=self.config.verify_tls,
        )
        response.raise_for_status()
        return response.text


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text in MISSING_MARKERS:
        return None
    return text


def record_from_row(row: Mapping[str, object]) -> JobRecord:
    fields = {key: _clean(row.get(key)) for key in JobRecord.model_fields}
    if fields["backend"] is None:
        fields["backend"] = fields["target"]
    return JobRecord(**fields)


def records_from_rows(rows: Iterable[Mapping[str, object]]) -> List[JobRecord]:
    records: List[JobRecord] = []
    skipped = 0
    for index, row in enumerate(rows):
        try:
            records.append(record_from_row(row))
        except ValidationError as exc:
            skipped += 1
            logger.warning("skipping invalid job row", extra={"row": index, "errors": exc.error_count()})
    logger.info("jobs loaded", extra={"rows": len(records), "skipped": skipped})
    return records


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns=lambda column: str(column).strip())
    return df.rename(columns=EXPORT_COLUMNS)


def load_jobs_csv(source: Union[str, io.IOBase]) -> List[JobRecord]:
    df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    df = normalize_columns(df)
    return records_from_rows(df.to_dict("records"))


def fetch_jobs_csv(config: SourceConfig) -> List[JobRecord]:
    text = CsvExportClient(config).fetch_text()
    return load_jobs_csv(io.StringIO(text))


def load_jobs(config: SourceConfig) -> List[JobRecord]:
    if config.path:
        return load_jobs_csv(config.path)
    if config.url:
        return fetch_jobs_csv(config)
    raise ValueError("No job source configured; pass --in/--url or set QJOB_DATA_PATH/QJOB_DATA_URL")


def to_export_frame(jobs: Iterable[JobRecord]) -> pd.DataFrame:
    """Lay records out in the export's column layout, with ``N/A`` for missing completion data."""
    columns = {field: header for header, field in EXPORT_COLUMNS.items()}
    rows = []
    for job in jobs:
        data = job.model_dump()
        row = {header: data.get(field) for field, header in columns.items()}
        row["TARGET"] = job.backend_name()
        for header in ("COMPLETION TIME", "EXECUTION TIME (MS)"):
            if row[header] is None:
                row[header] = "N/A"
        rows.append(row)
    return pd.DataFrame(rows, columns=list(EXPORT_COLUMNS))
