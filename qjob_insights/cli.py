from __future__ import annotations

import argparse
import json
import logging
import math
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from qjob_insights.anomalies import detect_anomalies
from qjob_insights.durations import estimate_durations
from qjob_insights.filters import distinct_backends, filter_jobs
from qjob_insights.loader import SourceConfig, load_jobs, to_export_frame
from qjob_insights.mock import generate_mock_jobs
from qjob_insights.recommender import recommend_backends
from qjob_insights.schemas import JobRecord, RecommendationWeights
from qjob_insights.summary import counts_by, execution_time_stats, shots_histogram, status_counts, submission_timeline
from qjob_insights.wait_times import estimate_wait_times_by_backend

logger = logging.getLogger(__name__)


def _ensure_parent_dir(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def _setup_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _source_config(args: argparse.Namespace) -> SourceConfig:
    return SourceConfig(
        path=args.input or os.environ.get("QJOB_DATA_PATH"),
        url=args.url or os.environ.get("QJOB_DATA_URL"),
        timeout_sec=int(os.environ.get("QJOB_HTTP_TIMEOUT_SEC", "30")),
        verify_tls=os.environ.get("QJOB_VERIFY_TLS", "true").lower() == "true",
    )


def _env_weight(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _weights(args: argparse.Namespace) -> RecommendationWeights:
    defaults = RecommendationWeights()
    return RecommendationWeights(
        success=args.success_weight if args.success_weight is not None else _env_weight("QJOB_WEIGHT_SUCCESS", defaults.success),
        queue=args.queue_weight if args.queue_weight is not None else _env_weight("QJOB_WEIGHT_QUEUE", defaults.queue),
        exec=args.exec_weight if args.exec_weight is not None else _env_weight("QJOB_WEIGHT_EXEC", defaults.exec),
    )


def _load(args: argparse.Namespace) -> List[JobRecord]:
    jobs = load_jobs(_source_config(args))
    jobs = filter_jobs(jobs, status=args.status, backend=args.backend)
    logger.info("jobs selected", extra={"rows": len(jobs), "status": args.status, "backend": args.backend})
    return jobs


def _json_safe(value: object) -> object:
    """Replace non-finite floats with ``None`` so output stays strict JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def _write_json(payload: object, out: Optional[str]) -> None:
    text = json.dumps(_json_safe(payload), indent=2, default=str, allow_nan=False)
    if not out:
        sys.stdout.write(text + "\n")
        return
    _ensure_parent_dir(out)
    Path(out).write_text(text + "\n", encoding="utf-8")
    logger.info("output written", extra={"out": out})


def durations(args: argparse.Namespace) -> None:
    records = estimate_durations(_load(args))
    _write_json([record.model_dump(by_alias=True) for record in records], args.out)


def wait_times(args: argparse.Namespace) -> None:
    stats = estimate_wait_times_by_backend(_load(args))
    _write_json({backend: value.model_dump() for backend, value in stats.items()}, args.out)


def recommend(args: argparse.Namespace) -> None:
    ranked = recommend_backends(_load(args), _weights(args))
    if args.top:
        ranked = ranked[: args.top]
    _write_json([entry.model_dump(by_alias=True) for entry in ranked], args.out)


def anomalies(args: argparse.Namespace) -> None:
    found = detect_anomalies(_load(args))
    if found:
        logger.warning("anomalies detected", extra={"count": len(found)})
    _write_json([anomaly.model_dump() for anomaly in found], args.out)


def summary(args: argparse.Namespace) -> None:
    jobs = _load(args)
    payload = {
        "status_counts": status_counts(jobs),
        "backends": distinct_backends(jobs),
        "by_backend": counts_by(jobs, "backend"),
        "by_backend_type": counts_by(jobs, "backend_type"),
        "execution_time": execution_time_stats(jobs),
        "shots": [asdict(entry) for entry in shots_histogram(jobs, bin_size=args.bin_size)],
        "timeline": [asdict(point) for point in submission_timeline(jobs, time_range=args.time_range)],
    }
    _write_json(payload, args.out)


def mock(args: argparse.Namespace) -> None:
    jobs = generate_mock_jobs(count=args.count, seed=args.seed)
    frame = to_export_frame(jobs)
    if not args.out:
        frame.to_csv(sys.stdout, index=False)
        return
    _ensure_parent_dir(args.out)
    frame.to_csv(args.out, index=False)
    logger.info("mock jobs written", extra={"rows": len(frame), "out": args.out})


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--in", dest="input", help="CSV export of job records")
    parser.add_argument("--url", help="URL serving the CSV export")
    parser.add_argument("--status", default="all", choices=["all", "RUNNING", "QUEUED", "COMPLETED", "FAILED"])
    parser.add_argument("--backend", default="all")
    parser.add_argument("--out", help="Write JSON here instead of stdout")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quantum job analytics")
    sub = parser.add_subparsers(dest="command", required=True)

    durations_cmd = sub.add_parser("durations", help="Per-job queue and execution estimates")
    _add_source_arguments(durations_cmd)
    durations_cmd.set_defaults(func=durations)

    wait_cmd = sub.add_parser("wait-times", help="Mean and P90 queue time per backend")
    _add_source_arguments(wait_cmd)
    wait_cmd.set_defaults(func=wait_times)

    recommend_cmd = sub.add_parser("recommend", help="Rank backends; averages with no data are written as null")
    _add_source_arguments(recommend_cmd)
    recommend_cmd.add_argument("--success-weight", type=float)
    recommend_cmd.add_argument("--queue-weight", type=float)
    recommend_cmd.add_argument("--exec-weight", type=float)
    recommend_cmd.add_argument("--top", type=int, default=0)
    recommend_cmd.set_defaults(func=recommend)

    anomalies_cmd = sub.add_parser("anomalies", help="Stuck jobs and failure clusters")
    _add_source_arguments(anomalies_cmd)
    anomalies_cmd.set_defaults(func=anomalies)

    summary_cmd = sub.add_parser("summary", help="Dashboard aggregates")
    _add_source_arguments(summary_cmd)
    summary_cmd.add_argument("--bin-size", type=int, default=100)
    summary_cmd.add_argument("--time-range", default="all", choices=["24h", "7d", "30d", "all"])
    summary_cmd.set_defaults(func=summary)

    mock_cmd = sub.add_parser("mock", help="Write a synthetic CSV export")
    mock_cmd.add_argument("--count", type=int, default=250)
    mock_cmd.add_argument("--seed", type=int)
    mock_cmd.add_argument("--out")
    mock_cmd.set_defaults(func=mock)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    _setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
