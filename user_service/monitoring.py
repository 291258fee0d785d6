"""Prometheus metrics for the HTTP layer."""

from prometheus_fastapi_instrumentator import Instrumentator
from fastapi import FastAPI

METRICS_PATH = "/metrics"


def setup_monitoring(app: FastAPI) -> Instrumentator:
    """Instrument request counts and latencies and expose them at /metrics.

    Disabled unless ENABLE_METRICS=true is set in the environment.
    """
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        env_var_name="ENABLE_METRICS",
        excluded_handlers=[METRICS_PATH, "/health", "/favicon.ico"],
    )
    instrumentator.instrument(app).expose(app, endpoint=METRICS_PATH, include_in_schema=False)
    return instrumentator
