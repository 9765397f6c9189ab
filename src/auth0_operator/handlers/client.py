"""Handler for Client CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf
from kubernetes import client, config

from .. import metrics
from ..builders.auth0 import create_auth0_provider_from_env
from ..builders.client import (
    create_client_payload_from_spec,
    detect_drift,
    strip_server_fields,
    validate_client_spec,
)
from ..constants import (
    API_GROUP_VERSION,
    EVENT_REASON_CREATE_FAILED,
    EVENT_REASON_DELETE_FAILED,
    EVENT_REASON_UPDATE_FAILED,
    KIND_CLIENT,
    REASON_CREATED,
    REASON_SYNCED,
    REASON_UPDATE_FAILED,
    STATUS_AUTH0_ID,
)
from ..services.auth0.base import OPERATION_DELETE_CLIENT, Auth0APIError, ClientApi
from ..services.k8s.store import ClientStore
from ..tracing import trace_span
from ..utils.client_secrets import resolve_client_secret, upsert_output_secret
from ..utils.conditions import set_ready_condition
from ..utils.errors import sanitize_exception
from ..utils.events import EventRecorder
from ..utils.finalizers import FinalizerGuard, is_being_deleted
from .base import BaseHandler, ReconcileResult


def get_auth0_id(obj: dict[str, Any]) -> str:
    """Return the Auth0 client id recorded in status, or an empty string."""
    return (obj.get("status") or {}).get(STATUS_AUTH0_ID) or ""


def get_output_secret_ref(obj: dict[str, Any]) -> dict[str, Any] | None:
    """Return the output secret reference if the Client asks for one."""
    ref = ((obj.get("spec") or {}).get("clientSecret") or {}).get("outputSecretRef") or {}
    return ref if ref.get("name") else None


def client_already_deleted(error: Exception) -> bool:
    """Return True if a delete failed only because Auth0 no longer has the client."""
    return isinstance(error, Auth0APIError) and error.is_client_not_found(OPERATION_DELETE_CLIENT)


class ClientHandler(BaseHandler):
    """Reconciles Client resources against Auth0 applications.

    Every call to ``reconcile`` re-reads the Client and derives what to do
    from its deletion marker, finalizers and ``status.auth0Id`` alone, so it
    is safe to call any number of times for the same object.
    """

    def __init__(
        self,
        store: ClientStore,
        core_api: client.CoreV1Api,
        auth0: ClientApi,
        recorder: EventRecorder | None = None,
        requeue_delay: float = 1.0,
    ):
        """Initialize client handler.

        Args:
            store: Store for Client resources
            core_api: Kubernetes core API used for secrets
            auth0: Auth0 client API
            recorder: Event reporting port
            requeue_delay: Delay before the follow-up reconcile after a create
        """
        super().__init__(KIND_CLIENT)
        self.store = store
        self.core_api = core_api
        self.auth0 = auth0
        self.recorder = recorder or EventRecorder()
        self.finalizers = FinalizerGuard(store)
        self.requeue_delay = requeue_delay

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Reconcile one Client identified by namespace and name."""
        with trace_span(
            "reconcile_client",
            kind=KIND_CLIENT,
            attributes={"client.namespace": namespace, "client.name": name},
        ):
            obj = self.store.get(namespace, name)
            if obj is None:
                self.logger.info(f"Client {namespace}/{name} no longer exists")
                return ReconcileResult()

            if is_being_deleted(obj):
                self.finalize(obj)
                return ReconcileResult()

            # The finalizer must be stored before Auth0 can hold anything for this Client
            obj = self.finalizers.add(obj)

            spec = obj.get("spec") or {}
            validate_client_spec(spec)
            client_secret = resolve_client_secret(self.core_api, namespace, spec)
            payload = create_client_payload_from_spec(spec, client_secret)

            if not get_auth0_id(obj):
                return self._create(obj, payload)
            return self._update(obj, payload)

    def finalize(self, obj: dict[str, Any]) -> None:
        """Delete the Auth0 client of a Client marked for deletion, then release it."""
        meta = obj.get("metadata", {})
        if not self.finalizers.has(obj):
            return

        client_name = (obj.get("spec") or {}).get("name")
        auth0_id = get_auth0_id(obj)
        if not auth0_id:
            self.log_info(
                meta,
                "Auth0 ID not present, skipping remote deletion",
                event="deletion",
                reason="Deletion",
                client_name=client_name,
            )
            self.finalizers.remove(obj)
            return

        with trace_span("delete_client", kind=KIND_CLIENT, attributes={"auth0.client_id": auth0_id}):
            try:
                self.auth0.delete_client(auth0_id)
            except Exception as e:
                if not client_already_deleted(e):
                    self.log_error(
                        meta,
                        "Unable to delete client",
                        error=e,
                        event="deletion",
                        reason=EVENT_REASON_DELETE_FAILED,
                        auth0_id=auth0_id,
                    )
                    self.recorder.delete_failed(
                        obj,
                        f"Failed to delete client {client_name} (ID: {auth0_id}): {sanitize_exception(e)}",
                    )
                    raise
                self.log_warning(
                    meta,
                    "Auth0 client already absent",
                    event="deletion",
                    reason="NotFound",
                    auth0_id=auth0_id,
                )

        self.log_info(meta, "Deleted client", event="deletion", reason="Deleted", auth0_id=auth0_id)
        self.recorder.deleted(obj, auth0_id)
        # Output secret is removed by garbage collection through its owner reference
        self.finalizers.remove(obj)

    def _create(self, obj: dict[str, Any], payload: dict[str, Any]) -> ReconcileResult:
        """Create the Auth0 client and record its id."""
        meta = obj["metadata"]
        client_name = payload.get("name")
        self.log_info(meta, "Creating client", event="create", reason="Creating", client_name=client_name)

        with trace_span("create_client", kind=KIND_CLIENT):
            try:
                created = self.auth0.create_client(payload)
            except Exception as e:
                self.log_error(meta, "Unable to create client", error=e, event="create", reason=EVENT_REASON_CREATE_FAILED)
                self.recorder.create_failed(obj, f"Failed to create client {client_name}: {sanitize_exception(e)}")
                raise

            auth0_id = created.get("client_id")
            if not auth0_id:
                raise RuntimeError(f"Auth0 returned no client_id for created client {client_name}")

            status = dict(obj.get("status") or {})
            status[STATUS_AUTH0_ID] = auth0_id
            status["conditions"] = set_ready_condition(
                status.get("conditions") or [],
                True,
                REASON_CREATED,
                f"Client created (ID: {auth0_id})",
                meta.get("generation"),
            )
            status["observedGeneration"] = meta.get("generation", 0)
            obj["status"] = status

            try:
                obj = self.store.update_status(obj)
            except Exception as status_error:
                self._compensate_create(obj, auth0_id, status_error)
                raise

        self.log_info(meta, "Created client", event="create", reason="Created", auth0_id=auth0_id)
        self.recorder.created(obj, auth0_id)
        metrics.resource_status_total.labels(kind=KIND_CLIENT, status="ready").inc()
        # Come back right away so the update branch can write the output secret
        return ReconcileResult(requeue=True, requeue_after=self.requeue_delay)

    def _compensate_create(self, obj: dict[str, Any], auth0_id: str, status_error: Exception) -> None:
        """Delete a just-created Auth0 client whose id could not be stored."""
        meta = obj["metadata"]
        self.log_error(
            meta,
            "Unable to record Auth0 ID in status, deleting created client",
            error=status_error,
            event="create",
            reason="StatusUpdateFailed",
            auth0_id=auth0_id,
        )
        self.recorder.create_failed(
            obj,
            f"Created client {auth0_id} but could not record it in status: {sanitize_exception(status_error)}",
        )

        try:
            self.auth0.delete_client(auth0_id)
        except Exception as delete_error:
            if client_already_deleted(delete_error):
                metrics.compensating_deletes_total.labels(result="success").inc()
                return
            metrics.compensating_deletes_total.labels(result="failed").inc()
            self.log_error(
                meta,
                "Compensating delete failed, Auth0 client may be orphaned",
                error=delete_error,
                event="create",
                reason=EVENT_REASON_DELETE_FAILED,
                auth0_id=auth0_id,
                status_error=sanitize_exception(status_error),
            )
            self.recorder.delete_failed(
                obj,
                f"Failed to delete orphaned client {auth0_id}: {sanitize_exception(delete_error)}",
            )
            return

        metrics.compensating_deletes_total.labels(result="success").inc()
        self.log_warning(meta, "Deleted client after failed status update", event="create", reason="Compensated", auth0_id=auth0_id)

    def _update(self, obj: dict[str, Any], payload: dict[str, Any]) -> ReconcileResult:
        """Converge an existing Auth0 client to the spec."""
        meta = obj["metadata"]
        auth0_id = get_auth0_id(obj)
        client_name = payload.get("name")

        with trace_span("update_client", kind=KIND_CLIENT, attributes={"auth0.client_id": auth0_id}):
            try:
                remote = self.auth0.get_client(auth0_id)
            except Exception as e:
                self.log_error(meta, "Unable to read client", error=e, event="update", reason="ReadFailed", auth0_id=auth0_id)
                raise

            # Written before the update: the secret may not be readable afterwards
            output_ref = get_output_secret_ref(obj)
            if output_ref is not None:
                self._sync_output_secret(obj, output_ref, remote)

            payload = strip_server_fields(payload)
            drifted = detect_drift(payload, remote)
            for field in drifted:
                metrics.drift_detected_total.labels(kind=KIND_CLIENT, field=field).inc()

            try:
                self.auth0.update_client(auth0_id, payload)
            except Exception as e:
                self.log_error(meta, "Unable to update client", error=e, event="update", reason=EVENT_REASON_UPDATE_FAILED, auth0_id=auth0_id)
                message = f"Failed to update client {client_name} (ID: {auth0_id}): {sanitize_exception(e)}"
                self.recorder.update_failed(obj, message)
                self._write_status(obj, False, REASON_UPDATE_FAILED, message)
                raise

        if drifted:
            self.log_info(meta, "Updated client", event="update", reason="Updated", auth0_id=auth0_id, drifted=drifted)
            self.recorder.updated(obj, auth0_id)
        self._write_status(obj, True, REASON_SYNCED, f"Client is in sync with Auth0 (ID: {auth0_id})")
        return ReconcileResult()

    def _sync_output_secret(self, obj: dict[str, Any], output_ref: dict[str, Any], remote: dict[str, Any]) -> None:
        """Materialize the Auth0 client secret into the output secret."""
        meta = obj["metadata"]
        value = remote.get("client_secret")
        if not value:
            self.log_warning(
                meta,
                "Auth0 client has no secret, output secret not written",
                reason="NoClientSecret",
                output_secret=output_ref.get("name"),
            )
            return

        if upsert_output_secret(self.core_api, obj, output_ref, value):
            self.log_info(meta, "Output secret written", reason="OutputSecretSynced", output_secret=output_ref.get("name"))

    def _write_status(self, obj: dict[str, Any], ready: bool, reason: str, message: str) -> None:
        """Best-effort status write, skipped when nothing changed."""
        meta = obj["metadata"]
        current = obj.get("status") or {}
        status = dict(current)
        status["conditions"] = set_ready_condition(
            current.get("conditions") or [],
            ready,
            reason,
            message,
            meta.get("generation"),
        )
        status["observedGeneration"] = meta.get("generation", 0)
        if status == current:
            return

        metrics.resource_status_total.labels(kind=KIND_CLIENT, status="ready" if ready else "not_ready").inc()

        obj["status"] = status
        try:
            self.store.update_status(obj)
        except Exception as e:
            self.log_warning(
                meta,
                "Unable to update client status",
                reason="StatusUpdateFailed",
                error=sanitize_exception(e),
            )


def build_client_handler() -> ClientHandler:
    """Build a ClientHandler wired to the cluster and to Auth0."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return ClientHandler(
        store=ClientStore(client.CustomObjectsApi()),
        core_api=client.CoreV1Api(),
        auth0=create_auth0_provider_from_env(),
        recorder=EventRecorder(),
        requeue_delay=float(os.getenv("REQUEUE_DELAY_SECONDS", "1")),
    )


def run_reconcile(meta: dict[str, Any], memo: kopf.Memo) -> None:
    """Run one reconcile for the object described by ``meta``.

    Raises:
        kopf.TemporaryError: When the reconciler asks to be called again
    """
    handler: ClientHandler = memo.client_handler
    namespace = meta.get("namespace", "default")
    name = meta["name"]

    result = handler.reconcile_with_metrics(meta, lambda: handler.reconcile(namespace, name))
    if result.requeue:
        raise kopf.TemporaryError(f"Requeue Client {namespace}/{name}", delay=result.requeue_after)


@kopf.on.create(API_GROUP_VERSION, KIND_CLIENT)
@kopf.on.update(API_GROUP_VERSION, KIND_CLIENT)
@kopf.on.resume(API_GROUP_VERSION, KIND_CLIENT)
def handle_client(meta: dict[str, Any], memo: kopf.Memo, **kwargs: Any) -> None:
    """Handle Client resource reconciliation."""
    run_reconcile(meta, memo)


# Optional, so kopf adds no finalizer for it. The resync timer does make kopf add
# its own finalizer, and only that finalizer makes kopf deliver the deletion here
# instead of releasing the object. Removing the timer stops this handler from
# running, and ClientHandler's finalizer then blocks deletion forever.
@kopf.on.delete(API_GROUP_VERSION, KIND_CLIENT, optional=True)
def handle_client_delete(meta: dict[str, Any], memo: kopf.Memo, **kwargs: Any) -> None:
    """Handle Client resource deletion."""
    run_reconcile(meta, memo)


@kopf.timer(API_GROUP_VERSION, KIND_CLIENT, interval=int(os.getenv("RESYNC_INTERVAL_SECONDS", "300")))
def resync_client(meta: dict[str, Any], memo: kopf.Memo, **kwargs: Any) -> None:
    """Periodically re-converge Clients to catch drift made in Auth0."""
    run_reconcile(meta, memo)
