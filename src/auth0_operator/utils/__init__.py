"""Utility functions for the Auth0 Operator."""

from .client_secrets import build_owner_reference, resolve_client_secret, upsert_output_secret
from .conditions import set_ready_condition, update_condition
from .errors import sanitize_exception
from .events import EventRecorder, emit_event
from .finalizers import FinalizerGuard, has_finalizer, is_being_deleted
from .rate_limit import rate_limit_auth0, rate_limit_k8s
from .secrets import get_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "emit_event",
    "EventRecorder",
    "get_secret_value",
    "resolve_client_secret",
    "upsert_output_secret",
    "build_owner_reference",
    "FinalizerGuard",
    "has_finalizer",
    "is_being_deleted",
    "sanitize_exception",
    "rate_limit_k8s",
    "rate_limit_auth0",
]
