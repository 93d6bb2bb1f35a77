"""
middleware/request_logging.py — One access-log line per request.

    GET /api/v1/clubs/3 -> 200 (4.2 ms)

Registered by the app factory with before_request / after_request hooks.
Requests that end in an unhandled exception are logged twice: once here with
status 500 and once, with the traceback, by the global error handler.
"""

from __future__ import annotations

import logging
import time

from flask import Flask, Response, g, request

logger = logging.getLogger("backend.app.request")


def register_request_logging(app: Flask) -> None:

    @app.before_request
    def _start_timer() -> None:
        g.request_started_at = time.perf_counter()

    @app.after_request
    def _log_request(response: Response) -> Response:
        started = g.pop("request_started_at", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
        )
        return response
