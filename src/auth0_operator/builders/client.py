"""Builder for Auth0 client payloads."""

from __future__ import annotations

import copy
from typing import Any

from ..constants import CLIENT_TYPES, MAX_METADATA_PROPERTIES

# Fields assigned by Auth0 that must never be sent back on update
SERVER_ASSIGNED_FIELDS = ("client_id", "signing_keys")

# Fields compared against the remote client to detect drift
DRIFT_FIELDS = ("name", "description", "app_type", "callbacks", "client_metadata")


def validate_client_spec(spec: dict[str, Any]) -> None:
    """Validate a Client spec.

    Raises:
        ValueError: If the spec is invalid
    """
    if not spec.get("name"):
        raise ValueError("spec.name is required")

    client_type = spec.get("type")
    if client_type and client_type not in CLIENT_TYPES:
        raise ValueError(
            f"spec.type '{client_type}' is not one of {', '.join(sorted(CLIENT_TYPES))}"
        )

    metadata = spec.get("metadata") or {}
    if len(metadata) > MAX_METADATA_PROPERTIES:
        raise ValueError(
            f"spec.metadata has {len(metadata)} entries, at most {MAX_METADATA_PROPERTIES} are allowed"
        )
    for key, value in metadata.items():
        if not isinstance(value, str):
            raise ValueError(f"spec.metadata.{key} must be a string")


def create_client_payload_from_spec(spec: dict[str, Any], client_secret: str | None) -> dict[str, Any]:
    """Create an Auth0 client payload from a Client spec.

    Args:
        spec: Client CRD spec
        client_secret: Resolved client secret, or None to let Auth0 generate one

    Returns:
        Payload for the Auth0 Management API
    """
    payload: dict[str, Any] = {
        "name": spec.get("name"),
        "description": spec.get("description", ""),
        # Auth0 treats a missing list differently from an empty one
        "callbacks": list(spec.get("callbackUrls") or []),
        "client_metadata": dict(spec.get("metadata") or {}),
    }

    client_type = spec.get("type")
    if client_type:
        payload["app_type"] = CLIENT_TYPES[client_type]

    if client_secret is not None:
        payload["client_secret"] = client_secret

    return payload


def strip_server_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the payload without server-assigned fields."""
    stripped = copy.deepcopy(payload)
    for field in SERVER_ASSIGNED_FIELDS:
        stripped.pop(field, None)

    jwt_configuration = stripped.get("jwt_configuration")
    if isinstance(jwt_configuration, dict):
        jwt_configuration.pop("secret_encoded", None)
        if not jwt_configuration:
            stripped.pop("jwt_configuration")

    return stripped


def detect_drift(payload: dict[str, Any], remote: dict[str, Any]) -> list[str]:
    """List the payload fields whose value differs from the remote client."""
    drifted = []
    for field in DRIFT_FIELDS:
        if field not in payload:
            continue
        desired = payload[field]
        actual = remote.get(field)
        if field == "callbacks":
            actual = actual or []
        elif field == "client_metadata":
            actual = actual or {}
        elif field == "description":
            actual = actual or ""
        if desired != actual:
            drifted.append(field)

    if "client_secret" in payload and payload["client_secret"] != remote.get("client_secret"):
        drifted.append("client_secret")

    return drifted
