"""Prometheus metrics for the Auth0 Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "auth0_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "auth0_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "auth0_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "auth0_operator_resource_status_total",
    "Resource status observations",
    ["kind", "status"],
)

# Auth0 client operation metrics
client_operations_total = Counter(
    "auth0_operator_client_operations_total",
    "Total number of Auth0 client operations",
    ["operation", "result"],
)

# Created Auth0 clients deleted again because their id could not be recorded
compensating_deletes_total = Counter(
    "auth0_operator_compensating_deletes_total",
    "Total number of compensating deletes after a failed status write",
    ["result"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "auth0_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind", "field"],
)

# API call metrics
api_call_total = Counter(
    "auth0_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "auth0_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "auth0_operator_rate_limit_hits_total",
    "Total number of client-side rate limit waits",
    ["api_type"],
)
