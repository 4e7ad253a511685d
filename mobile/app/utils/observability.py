from __future__ import annotations

import json
import logging

from prometheus_client import Counter  # type: ignore[import]

from mobile.app import config


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for console logging."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - simple serialization
        payload = {
            "message": record.getMessage(),
            "severity": record.levelname,
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
        }
        if record.exc_info:
            payload["trace"] = self.formatException(record.exc_info)
        json_fields = getattr(record, "json_fields", None)
        if isinstance(json_fields, dict):
            payload.update(json_fields)
        return json.dumps(payload, default=str, separators=(",", ":"))


def configure_logging() -> None:
    """Route the root logger through the JSON console formatter."""

    root_logger = logging.getLogger()
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
    # request lines from the HTTP client are noise at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))
    logging.getLogger(__name__).info(
        "JSON console logging configured",
        extra={"json_fields": {"logLevel": logging.getLevelName(log_level)}},
    )


_guard_outcome_counter = Counter(
    "guard_outcomes_total",
    "Number of protected-screen guard decisions",
    labelnames=("outcome",),
    namespace=config.PROMETHEUS_METRICS_NAMESPACE,
    subsystem=config.PROMETHEUS_METRICS_SUBSYSTEM,
)

_logout_counter = Counter(
    "logouts_total",
    "Number of logouts performed",
    labelnames=("cause",),
    namespace=config.PROMETHEUS_METRICS_NAMESPACE,
    subsystem=config.PROMETHEUS_METRICS_SUBSYSTEM,
)

_report_submission_counter = Counter(
    "report_submissions_total",
    "Number of community-service report submissions",
    labelnames=("status",),
    namespace=config.PROMETHEUS_METRICS_NAMESPACE,
    subsystem=config.PROMETHEUS_METRICS_SUBSYSTEM,
)

_fanout_failure_counter = Counter(
    "fanout_failures_total",
    "Number of failed per-student sub-fetches",
    labelnames=("policy",),
    namespace=config.PROMETHEUS_METRICS_NAMESPACE,
    subsystem=config.PROMETHEUS_METRICS_SUBSYSTEM,
)


def record_guard_outcome(outcome: str) -> None:
    if not config.ENABLE_PROMETHEUS_METRICS:
        return
    _guard_outcome_counter.labels(outcome=outcome).inc()


def record_logout(cause: str) -> None:
    if not config.ENABLE_PROMETHEUS_METRICS:
        return
    _logout_counter.labels(cause=cause).inc()


def record_report_submission(status: str) -> None:
    if not config.ENABLE_PROMETHEUS_METRICS:
        return
    _report_submission_counter.labels(status=status).inc()


def record_fanout_failure(policy: str) -> None:
    if not config.ENABLE_PROMETHEUS_METRICS:
        return
    _fanout_failure_counter.labels(policy=policy).inc()


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "record_guard_outcome",
    "record_logout",
    "record_report_submission",
    "record_fanout_failure",
]
