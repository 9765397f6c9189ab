"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CREATE_FAILED,
    EVENT_REASON_CREATED,
    EVENT_REASON_DELETE_FAILED,
    EVENT_REASON_DELETED,
    EVENT_REASON_UPDATE_FAILED,
    EVENT_REASON_UPDATED,
)
from .errors import sanitize_error_message


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Full resource body (apiVersion, kind and metadata are required)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=sanitize_error_message(message),
        type=type_,
    )


def _client_name(body: dict[str, Any]) -> str:
    return body.get("spec", {}).get("name") or body.get("metadata", {}).get("name", "unknown")


class EventRecorder:
    """Reports Client lifecycle events. Informational only."""

    def created(self, body: dict[str, Any], auth0_id: str) -> None:
        emit_event(body, EVENT_REASON_CREATED, f"Created client {_client_name(body)} (ID: {auth0_id})")

    def create_failed(self, body: dict[str, Any], message: str) -> None:
        emit_event(body, EVENT_REASON_CREATE_FAILED, message, type_="Warning")

    def updated(self, body: dict[str, Any], auth0_id: str) -> None:
        emit_event(body, EVENT_REASON_UPDATED, f"Updated client {_client_name(body)} (ID: {auth0_id})")

    def update_failed(self, body: dict[str, Any], message: str) -> None:
        emit_event(body, EVENT_REASON_UPDATE_FAILED, message, type_="Warning")

    def deleted(self, body: dict[str, Any], auth0_id: str) -> None:
        emit_event(body, EVENT_REASON_DELETED, f"Deleted client {_client_name(body)} (ID: {auth0_id})")

    def delete_failed(self, body: dict[str, Any], message: str) -> None:
        emit_event(body, EVENT_REASON_DELETE_FAILED, message, type_="Warning")
