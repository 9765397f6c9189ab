"""Auth0 client API interface."""

from __future__ import annotations

from typing import Any, Protocol


class ClientApi(Protocol):
    """Protocol defining the Auth0 client (application) operations."""

    def create_client(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a client. Returns the created client including ``client_id``."""
        ...

    def get_client(self, client_id: str) -> dict[str, Any]:
        """Read a client, including its current ``client_secret``."""
        ...

    def update_client(self, client_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update a client with the given fields."""
        ...

    def delete_client(self, client_id: str) -> None:
        """Delete a client."""
        ...


OPERATION_TOKEN = "token"
OPERATION_CREATE_CLIENT = "create_client"
OPERATION_GET_CLIENT = "get_client"
OPERATION_UPDATE_CLIENT = "update_client"
OPERATION_DELETE_CLIENT = "delete_client"

# errorCode Auth0 returns when a client id does not exist
ERROR_CODE_CLIENT_NOT_FOUND = "inexistent_client"


class Auth0APIError(RuntimeError):
    """Error returned by the Auth0 Management API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        operation: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.operation = operation

    def is_client_not_found(self, operation: str) -> bool:
        """Return True if ``operation`` itself reported that the client does not exist.

        A 404 from any other call, the token endpoint included, says nothing
        about the client.
        """
        if self.operation != operation or self.status_code != 404:
            return False
        return self.error_code in (None, ERROR_CODE_CLIENT_NOT_FOUND)
