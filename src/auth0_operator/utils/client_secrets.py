"""Client secret resolution and output secret materialization."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client

from ..constants import API_GROUP_VERSION, CONTROLLER_NAME, KIND_CLIENT, LABEL_CLIENT_NAME, LABEL_MANAGED_BY
from .secrets import create_secret, decode_secret_value, get_secret_value, read_secret, update_secret

logger = logging.getLogger(__name__)


def resolve_client_secret(
    api: client.CoreV1Api,
    namespace: str,
    spec: dict[str, Any],
) -> str | None:
    """Resolve the client secret to send to Auth0.

    ``secretRef`` wins over ``literal``. When neither is set, None is
    returned and Auth0 generates a secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the Client resource
        spec: Client spec

    Returns:
        Secret value or None

    Raises:
        ValueError: If the referenced secret or key does not exist
    """
    secret_spec = spec.get("clientSecret") or {}
    secret_ref = secret_spec.get("secretRef") or {}

    if secret_ref.get("name"):
        key = secret_ref.get("key")
        if not key:
            raise ValueError(f"clientSecret.secretRef '{secret_ref['name']}' does not name a key")
        return get_secret_value(api, namespace, secret_ref["name"], key)

    literal = secret_spec.get("literal")
    if literal:
        return literal

    return None


def build_owner_reference(owner: dict[str, Any]) -> dict[str, Any]:
    """Build a controller owner reference pointing at a Client resource."""
    meta = owner.get("metadata", {})
    return {
        "apiVersion": owner.get("apiVersion", API_GROUP_VERSION),
        "kind": owner.get("kind", KIND_CLIENT),
        "name": meta.get("name"),
        "uid": meta.get("uid"),
        "controller": True,
        "blockOwnerDeletion": True,
    }


def upsert_output_secret(
    api: client.CoreV1Api,
    owner: dict[str, Any],
    secret_ref: dict[str, Any],
    value: str,
) -> bool:
    """Write the client secret into the output secret.

    An existing secret only has the target key overwritten. A missing secret
    is created with an owner reference to the Client so that garbage
    collection removes it together with the Client.

    Args:
        api: Kubernetes API client
        owner: Client resource body
        secret_ref: ``{"name": ..., "key": ...}`` of the output secret
        value: Client secret value

    Returns:
        True if the secret was created or changed, False if already up to date
    """
    meta = owner.get("metadata", {})
    namespace = meta.get("namespace", "default")
    secret_name = secret_ref.get("name")
    key = secret_ref.get("key")
    if not secret_name or not key:
        raise ValueError("clientSecret.outputSecretRef requires both name and key")

    existing = read_secret(api, namespace, secret_name)
    if existing is None:
        create_secret(
            api,
            namespace,
            secret_name,
            {key: value},
            owner_references=[build_owner_reference(owner)],
            labels={
                LABEL_MANAGED_BY: CONTROLLER_NAME,
                LABEL_CLIENT_NAME: meta.get("name", ""),
            },
        )
        logger.info(f"Created output secret {namespace}/{secret_name}")
        return True

    current = (existing.data or {}).get(key)
    if current is not None and decode_secret_value(current) == value:
        return False

    update_secret(api, namespace, secret_name, {key: value})
    logger.info(f"Updated key {key} in output secret {namespace}/{secret_name}")
    return True
