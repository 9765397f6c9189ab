"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import base64
from typing import Any

from kubernetes import client

from ..constants import FIELD_MANAGER
from .rate_limit import rate_limit_k8s


def decode_secret_value(value: str | bytes) -> str:
    """Decode a value from ``V1Secret.data``.

    Handles both base64 strings (normal case) and raw bytes (some client
    versions and test doubles).
    """
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return base64.b64decode(value).decode("utf-8")


def encode_secret_value(value: str) -> str:
    """Encode a value for ``V1Secret.data``."""
    return base64.b64encode(value.encode("utf-8")).decode("utf-8")


def read_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> client.V1Secret | None:
    """Read a Kubernetes secret, returning None if it does not exist.

    Raises:
        client.exceptions.ApiException: For errors other than 404
    """
    try:
        return rate_limit_k8s(api.read_namespaced_secret)(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            return None
        raise


def get_secret_value(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    key: str,
) -> str:
    """Get a value from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        key: Key in the secret

    Returns:
        Secret value

    Raises:
        ValueError: If secret or key not found
    """
    secret = read_secret(api, namespace, secret_name)
    if secret is None:
        raise ValueError(
            f"Secret '{secret_name}' not found in namespace '{namespace}' (wanted key '{key}')"
        )
    data = secret.data or {}
    if key not in data:
        raise ValueError(f"Key '{key}' not found in secret '{secret_name}' in namespace '{namespace}'")
    return decode_secret_value(data[key])


def create_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
    owner_references: list[dict[str, Any]] | None = None,
    labels: dict[str, str] | None = None,
) -> None:
    """Create a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Secret data (will be base64 encoded)
        owner_references: Owner references for the secret
        labels: Labels for the secret
    """
    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=secret_name,
            namespace=namespace,
            owner_references=owner_references or [],
            labels=labels or {},
        ),
        type="Opaque",
        data={k: encode_secret_value(v) for k, v in data.items()},
    )

    rate_limit_k8s(api.create_namespaced_secret)(
        namespace=namespace,
        body=secret,
        field_manager=FIELD_MANAGER,
    )


def update_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
) -> None:
    """Patch keys of a Kubernetes secret, leaving other keys untouched.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        data: Secret data to merge (will be base64 encoded)
    """
    rate_limit_k8s(api.patch_namespaced_secret)(
        name=secret_name,
        namespace=namespace,
        body={"data": {k: encode_secret_value(v) for k, v in data.items()}},
        field_manager=FIELD_MANAGER,
    )
