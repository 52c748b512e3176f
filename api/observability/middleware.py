"""
Observability Middleware

Per-request tracing and access logging. Requests that address a form
session are tagged with the session id, so the debounced pipeline spans
of one form can be correlated with the HTTP calls that fed it.
"""

import time
import logging
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

logger = logging.getLogger(__name__)

# Polled by the platform every few seconds
QUIET_PATHS = ('/api/healthz',)


def _elapsed_ms() -> float:
    return round((time.perf_counter() - g.get('request_started', time.perf_counter())) * 1000, 2)


def add_observability_middleware(app: Flask, instrument: bool = True):
    """Add request logging and, when enabled, OpenTelemetry instrumentation."""

    if instrument:
        FlaskInstrumentor().instrument_app(app)

    @app.before_request
    def start_request_span():
        g.request_started = time.perf_counter()
        g.trace_id = None

        span = trace.get_current_span()
        if not span.is_recording():
            return

        g.trace_id = format(span.get_span_context().trace_id, "032x")
        session_id = (request.view_args or {}).get('session_id')
        if session_id:
            span.set_attribute("form_session.id", session_id)
        span.set_attribute("http.user_agent", request.headers.get("User-Agent", ""))

    @app.after_request
    def log_request(response):
        duration_ms = _elapsed_ms()

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("http.duration_ms", duration_ms)

        level = logging.DEBUG if request.path in QUIET_PATHS else logging.INFO
        logger.log(
            level,
            "HTTP request completed",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "trace_id": g.get('trace_id')
            }
        )

        if g.get('trace_id'):
            response.headers['X-Trace-Id'] = g.trace_id

        return response
