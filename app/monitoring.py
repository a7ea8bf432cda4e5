"""
Monitoring & Observability

Features:
- Sentry for error tracking and performance monitoring
- Prometheus metrics for HTTP traffic and the career generation pipeline
"""

import logging

import sentry_sdk
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

PROMETHEUS_CONTENT_TYPE = CONTENT_TYPE_LATEST


# Prometheus Metrics
# ==================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"]
)

# Generation pipeline
career_ai_generations_total = Counter(
    "career_ai_generations_total",
    "Career generation calls by task and outcome",
    ["task", "outcome"]
)

career_ai_generation_seconds = Histogram(
    "career_ai_generation_seconds",
    "Career generation duration in seconds",
    ["task"]
)

career_ai_dropped_entries_total = Counter(
    "career_ai_dropped_entries_total",
    "Model output entries dropped during validation",
    ["task"]
)


def init_sentry():
    """
    Initialize Sentry for error tracking and performance monitoring.

    Call this function at application startup.
    """
    if not settings.sentry_dsn:
        logger.info("Sentry DSN not configured, skipping Sentry initialization")
        return

    try:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.sentry_environment,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            integrations=[
                FastApiIntegration(),
                SqlalchemyIntegration(),
            ],
            send_default_pii=False,
            release=f"careerpath@{get_app_version()}",
        )

        logger.info(
            "Sentry initialized: env=%s, sample_rate=%s",
            settings.sentry_environment,
            settings.sentry_traces_sample_rate,
        )
    except Exception as e:
        logger.error("Failed to initialize Sentry: %s", e)


def get_app_version() -> str:
    """Get application version from package metadata."""
    try:
        from importlib.metadata import PackageNotFoundError, version
        return version("careerpath")
    except PackageNotFoundError:
        return "0.1.0"


def get_prometheus_metrics() -> bytes:
    """
    Get current Prometheus metrics.

    Returns:
        bytes: Prometheus metrics in text format
    """
    return generate_latest()


def record_generation(task: str, outcome: str, duration: float) -> None:
    career_ai_generations_total.labels(task=task, outcome=outcome).inc()
    career_ai_generation_seconds.labels(task=task).observe(duration)


def record_dropped_entries(task: str, count: int) -> None:
    if count > 0:
        career_ai_dropped_entries_total.labels(task=task).inc(count)
