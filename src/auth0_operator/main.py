"""Main entry point for the Auth0 Operator.

Run with ``kopf run -m auth0_operator.main``.
"""

from __future__ import annotations

import os
import threading
from typing import Any

import kopf
from werkzeug.serving import make_server

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .handlers.client import build_client_handler
from .tracing import initialize_tracing


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and wire the Client handler."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Use annotations so kopf's own bookkeeping stays out of status
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    # Start metrics HTTP server with health check endpoints
    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    combined_app = health.create_combined_wsgi_app(
        readiness_check=lambda: getattr(memo, "client_handler", None) is not None
    )
    server = make_server("", metrics_port, combined_app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    memo.client_handler = build_client_handler()
