"""Prometheus metrics for the upload and transcode service.

Exposes HTTP request metrics and per-job encode counters and durations.
"""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

REGISTRY = CollectorRegistry()

# Multiprocess mode (several uvicorn workers)
if "PROMETHEUS_MULTIPROC_DIR" in os.environ or "prometheus_multiproc_dir" in os.environ:
    multiprocess.MultiProcessCollector(REGISTRY)


# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "vodpack_app",
    "Application information",
    registry=REGISTRY,
)


# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
    registry=REGISTRY,
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method", "endpoint"],
    registry=REGISTRY,
)


# ============================================
# Transcode Metrics
# ============================================
TRANSCODE_JOBS_TOTAL = Counter(
    "transcode_jobs_total",
    "Encode jobs by packaging kind and outcome",
    ["job_kind", "status"],
    registry=REGISTRY,
)

TRANSCODE_JOB_DURATION_SECONDS = Histogram(
    "transcode_job_duration_seconds",
    "Wall-clock duration of successful encode jobs",
    ["job_kind"],
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0],
    registry=REGISTRY,
)

TRANSCODE_REQUESTS_IN_PROGRESS = Gauge(
    "transcode_requests_in_progress",
    "Number of HLS/DASH transcode pairs currently running",
    registry=REGISTRY,
)


def get_metrics() -> bytes:
    """Generate latest metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def set_app_info(version: str, environment: str, hw_accel: str) -> None:
    """Set application info metrics.

    Args:
        version: Application version
        environment: Deployment environment
        hw_accel: Hardware acceleration profile the encoder runs with
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
        "hw_accel": hw_accel,
    })
