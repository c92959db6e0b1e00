"""Prometheus metrics middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.routing import Match


http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0]
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    ['method', 'endpoint']
)

pipeline_runs_total = Counter(
    'pipeline_runs_total',
    'Total pipeline runs',
    ['contract_type', 'status']
)

pipeline_run_duration_seconds = Histogram(
    'pipeline_run_duration_seconds',
    'Pipeline run duration in seconds',
    ['contract_type'],
    buckets=[1, 5, 10, 30, 60, 120, 300, 600]
)

pipeline_stage_transitions_total = Counter(
    'pipeline_stage_transitions_total',
    'Stage transitions by resulting state',
    ['stage', 'action']
)

pipeline_stage_duration_seconds = Histogram(
    'pipeline_stage_duration_seconds',
    'Time from stage start to settle',
    ['stage', 'outcome'],
    buckets=[0.1, 0.5, 1, 5, 10, 30, 60, 120]
)


UNMATCHED_ENDPOINT = "unmatched"


def endpoint_label(request: Request) -> str:
    """Route template for the request, e.g. ``/pipeline/runs/{run_id}``."""
    partial = None
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_ENDPOINT)
        # Path matched but method did not
        if match == Match.PARTIAL and partial is None:
            partial = getattr(route, "path", None)
    return partial or UNMATCHED_ENDPOINT


class MetricsMiddleware:
    """Middleware to collect Prometheus metrics."""

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = endpoint_label(request)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

        start_time = time.time()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            status_code = 500
            raise
        finally:
            duration = time.time() - start_time

            http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        return response


def get_metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def track_pipeline_run_started(contract_type: str):
    pipeline_runs_total.labels(contract_type=contract_type, status="started").inc()


def track_pipeline_run_completed(contract_type: str, status: str, duration: float):
    pipeline_runs_total.labels(contract_type=contract_type, status=status).inc()
    pipeline_run_duration_seconds.labels(contract_type=contract_type).observe(duration)


def track_stage_transition(stage: str, action: str):
    pipeline_stage_transitions_total.labels(stage=stage, action=action).inc()


def track_stage_settled(stage: str, outcome: str, duration: float):
    pipeline_stage_duration_seconds.labels(stage=stage, outcome=outcome).observe(duration)
