"""Shared fixtures and in-memory fakes for unit tests."""

from __future__ import annotations

import base64
import copy
from typing import Any
from unittest.mock import Mock

import pytest
from kubernetes import client

from auth0_operator.constants import API_GROUP_VERSION, KIND_CLIENT
from auth0_operator.handlers.client import ClientHandler
from auth0_operator.services.auth0.base import Auth0APIError
from auth0_operator.utils import rate_limit


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch):
    """Disable client-side throttling in tests."""
    monkeypatch.setattr(rate_limit.k8s_limiter, "min_interval", 0.0)
    monkeypatch.setattr(rate_limit.auth0_limiter, "min_interval", 0.0)


class FakeClientStore:
    """In-memory Client store with resourceVersion checks and finalizer semantics."""

    def __init__(self, journal: list[tuple[Any, ...]] | None = None):
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.journal = journal if journal is not None else []
        self.update_calls = 0
        self.status_calls = 0
        self.status_error: Exception | None = None
        self._version = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def add(self, obj: dict[str, Any]) -> None:
        stored = copy.deepcopy(obj)
        stored["metadata"]["resourceVersion"] = self._next_version()
        meta = stored["metadata"]
        self.objects[(meta["namespace"], meta["name"])] = stored

    def stored(self, namespace: str, name: str) -> dict[str, Any] | None:
        return self.objects.get((namespace, name))

    def get(self, namespace: str, name: str) -> dict[str, Any] | None:
        obj = self.objects.get((namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def _check_version(self, obj: dict[str, Any]) -> dict[str, Any]:
        meta = obj["metadata"]
        current = self.objects.get((meta["namespace"], meta["name"]))
        if current is None:
            raise client.exceptions.ApiException(status=404, reason="Not Found")
        if current["metadata"]["resourceVersion"] != meta.get("resourceVersion"):
            raise client.exceptions.ApiException(status=409, reason="Conflict")
        return current

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        self.update_calls += 1
        self.journal.append(("store.update", list(obj["metadata"].get("finalizers") or [])))
        current = self._check_version(obj)
        meta = obj["metadata"]
        updated = copy.deepcopy(obj)
        updated["status"] = copy.deepcopy(current.get("status", {}))
        updated["metadata"]["resourceVersion"] = self._next_version()
        key = (meta["namespace"], meta["name"])
        if updated["metadata"].get("deletionTimestamp") and not updated["metadata"].get("finalizers"):
            del self.objects[key]
        else:
            self.objects[key] = updated
        return copy.deepcopy(updated)

    def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        self.status_calls += 1
        self.journal.append(("store.update_status", copy.deepcopy(obj.get("status"))))
        if self.status_error is not None:
            raise self.status_error
        current = self._check_version(obj)
        current["status"] = copy.deepcopy(obj.get("status", {}))
        current["metadata"]["resourceVersion"] = self._next_version()
        return copy.deepcopy(current)


class FakeAuth0:
    """In-memory Auth0 client API."""

    def __init__(self, journal: list[tuple[Any, ...]] | None = None):
        self.clients: dict[str, dict[str, Any]] = {}
        self.journal = journal if journal is not None else []
        self.errors: dict[str, Exception] = {}
        self.calls: dict[str, list[Any]] = {"create": [], "get": [], "update": [], "delete": []}
        self._counter = 0

    def _maybe_fail(self, operation: str) -> None:
        error = self.errors.get(operation)
        if error is not None:
            raise error

    def create_client(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls["create"].append(copy.deepcopy(payload))
        self.journal.append(("auth0.create",))
        self._maybe_fail("create")
        self._counter += 1
        client_id = f"client-{self._counter}"
        remote = copy.deepcopy(payload)
        remote["client_id"] = client_id
        remote.setdefault("client_secret", f"generated-secret-{self._counter}")
        remote["signing_keys"] = [{"cert": "cert"}]
        self.clients[client_id] = remote
        return copy.deepcopy(remote)

    def get_client(self, client_id: str) -> dict[str, Any]:
        self.calls["get"].append(client_id)
        self.journal.append(("auth0.get", client_id))
        self._maybe_fail("get")
        if client_id not in self.clients:
            raise Auth0APIError("The client does not exist", status_code=404, operation="get_client")
        return copy.deepcopy(self.clients[client_id])

    def update_client(self, client_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls["update"].append((client_id, copy.deepcopy(payload)))
        self.journal.append(("auth0.update", client_id))
        self._maybe_fail("update")
        if client_id not in self.clients:
            raise Auth0APIError("The client does not exist", status_code=404, operation="update_client")
        self.clients[client_id].update(copy.deepcopy(payload))
        return copy.deepcopy(self.clients[client_id])

    def delete_client(self, client_id: str) -> None:
        self.calls["delete"].append(client_id)
        self.journal.append(("auth0.delete", client_id))
        self._maybe_fail("delete")
        if client_id not in self.clients:
            raise Auth0APIError(
                "The client does not exist",
                status_code=404,
                error_code="inexistent_client",
                operation="delete_client",
            )
        del self.clients[client_id]


class FakeCoreV1Api:
    """In-memory subset of CoreV1Api used for secrets."""

    def __init__(self):
        self.secrets: dict[tuple[str, str], client.V1Secret] = {}
        self.read_calls = 0

    def put(self, namespace: str, name: str, data: dict[str, str]) -> None:
        self.secrets[(namespace, name)] = client.V1Secret(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            data={k: base64.b64encode(v.encode()).decode() for k, v in data.items()},
        )

    def value(self, namespace: str, name: str, key: str) -> str:
        return base64.b64decode(self.secrets[(namespace, name)].data[key]).decode()

    def read_namespaced_secret(self, name: str, namespace: str) -> client.V1Secret:
        self.read_calls += 1
        secret = self.secrets.get((namespace, name))
        if secret is None:
            raise client.exceptions.ApiException(status=404, reason="Not Found")
        return copy.deepcopy(secret)

    def create_namespaced_secret(self, namespace: str, body: client.V1Secret, **kwargs: Any) -> client.V1Secret:
        key = (namespace, body.metadata.name)
        if key in self.secrets:
            raise client.exceptions.ApiException(status=409, reason="AlreadyExists")
        self.secrets[key] = copy.deepcopy(body)
        return body

    def patch_namespaced_secret(self, name: str, namespace: str, body: dict[str, Any], **kwargs: Any) -> client.V1Secret:
        secret = self.secrets.get((namespace, name))
        if secret is None:
            raise client.exceptions.ApiException(status=404, reason="Not Found")
        secret.data = {**(secret.data or {}), **body.get("data", {})}
        return secret


def build_client(
    name: str = "my-client",
    namespace: str = "default",
    spec: dict[str, Any] | None = None,
    status: dict[str, Any] | None = None,
    finalizers: list[str] | None = None,
    deleting: bool = False,
) -> dict[str, Any]:
    """Build a Client resource body."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "uid": f"uid-{name}",
        "generation": 1,
    }
    if finalizers is not None:
        metadata["finalizers"] = finalizers
    if deleting:
        metadata["deletionTimestamp"] = "2026-01-01T00:00:00Z"
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_CLIENT,
        "metadata": metadata,
        "spec": spec if spec is not None else {"name": "app", "type": "spa", "callbackUrls": []},
        "status": status or {},
    }


@pytest.fixture
def journal() -> list[tuple[Any, ...]]:
    return []


@pytest.fixture
def store(journal) -> FakeClientStore:
    return FakeClientStore(journal)


@pytest.fixture
def auth0(journal) -> FakeAuth0:
    return FakeAuth0(journal)


@pytest.fixture
def core_api() -> FakeCoreV1Api:
    return FakeCoreV1Api()


@pytest.fixture
def recorder() -> Mock:
    return Mock()


@pytest.fixture
def handler(store, core_api, auth0, recorder) -> ClientHandler:
    return ClientHandler(store=store, core_api=core_api, auth0=auth0, recorder=recorder, requeue_delay=1.0)


@pytest.fixture
def make_client():
    """Factory for Client resource bodies."""
    return build_client
