"""Constants for the Auth0 Operator."""

# API Group
API_GROUP = "auth0.gracey.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_CLIENT = "Client"
PLURAL_CLIENTS = "clients"

# Labels
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_CLIENT_NAME = f"{API_GROUP}/client-name"

# Finalizers
FINALIZER = f"finalizer.{API_GROUP}"

# Field Manager
FIELD_MANAGER = "auth0-operator"
CONTROLLER_NAME = "auth0-operator"

# Status fields
STATUS_AUTH0_ID = "auth0Id"

# Client types accepted in spec.type, mapped to the Auth0 app_type
CLIENT_TYPES = {
    "spa": "spa",
    "native": "native",
    "regular": "regular_web",
    "non_interactive": "non_interactive",
}
MAX_METADATA_PROPERTIES = 10

# Condition Types
COND_READY = "Ready"

# Condition Reasons
REASON_CREATED = "Created"
REASON_SYNCED = "Synced"
REASON_UPDATE_FAILED = "UpdateFailed"

# Event Reasons
EVENT_REASON_CREATED = "Created"
EVENT_REASON_CREATE_FAILED = "CreateFailed"
EVENT_REASON_UPDATED = "Updated"
EVENT_REASON_UPDATE_FAILED = "UpdateFailed"
EVENT_REASON_DELETED = "Deleted"
EVENT_REASON_DELETE_FAILED = "DeleteFailed"
