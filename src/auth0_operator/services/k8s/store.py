"""Kubernetes-backed store for Client custom resources."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client

from ... import metrics
from ...constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL_CLIENTS
from ...utils.rate_limit import rate_limit_k8s


class ClientStore:
    """Get and write Client resources with optimistic concurrency.

    Writes send the object's ``metadata.resourceVersion`` back, so a write
    based on a stale read fails with a 409 Conflict.
    """

    def __init__(self, api: client.CustomObjectsApi | None = None):
        self.api = api or client.CustomObjectsApi()

    def _call(self, operation: str, func: Any, **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            response = rate_limit_k8s(func)(**kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return response
        except Exception:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise
        finally:
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(
                time.time() - start_time
            )

    def get(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Get a Client, or None if it does not exist."""
        try:
            return self._call(
                "get_client",
                self.api.get_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_CLIENTS,
                name=name,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace a Client's metadata and spec. Returns the stored object."""
        meta = obj["metadata"]
        return self._call(
            "update_client",
            self.api.replace_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta["namespace"],
            plural=PLURAL_CLIENTS,
            name=meta["name"],
            body=obj,
            field_manager=FIELD_MANAGER,
        )

    def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace a Client's status subresource. Returns the stored object."""
        meta = obj["metadata"]
        return self._call(
            "update_client_status",
            self.api.replace_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta["namespace"],
            plural=PLURAL_CLIENTS,
            name=meta["name"],
            body=obj,
            field_manager=FIELD_MANAGER,
        )
