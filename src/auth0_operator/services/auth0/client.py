"""Auth0 Management API client implementation."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ... import metrics
from ...utils.rate_limit import rate_limit_auth0
from .base import (
    OPERATION_CREATE_CLIENT,
    OPERATION_DELETE_CLIENT,
    OPERATION_GET_CLIENT,
    OPERATION_TOKEN,
    OPERATION_UPDATE_CLIENT,
    Auth0APIError,
)

logger = logging.getLogger(__name__)

# Refresh the management token this many seconds before it expires
TOKEN_EXPIRY_LEEWAY_SECONDS = 60


class Auth0Provider:
    """Auth0 Management API v2 client for applications."""

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the Auth0 provider.

        Args:
            domain: Auth0 tenant domain, e.g. ``example.eu.auth0.com``
            client_id: Machine-to-machine client id used for the Management API
            client_secret: Secret of that machine-to-machine client
            audience: Management API audience (defaults to ``https://{domain}/api/v2/``)
            timeout: Request timeout in seconds
            session: Optional preconfigured requests session
        """
        domain = domain.removeprefix("https://").removeprefix("http://").rstrip("/")
        self.base_url = f"https://{domain}"
        self.audience = audience or f"{self.base_url}/api/v2/"
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

        if session is None:
            session = requests.Session()
            # Retry connection failures only; HTTP errors go back to the reconciler
            retry = Retry(total=3, connect=3, read=0, status=0, backoff_factor=0.5)
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        self.session = session

    def _get_token(self) -> str:
        """Return a cached Management API token, fetching a new one when expired."""
        with self._token_lock:
            if self._token and time.time() < self._token_expires_at - TOKEN_EXPIRY_LEEWAY_SECONDS:
                return self._token

            response = self.session.post(
                f"{self.base_url}/oauth/token",
                json={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "audience": self.audience,
                },
                timeout=self.timeout,
            )
            if response.status_code >= 400:
                raise _api_error(OPERATION_TOKEN, response)

            data = response.json()
            self._token = data["access_token"]
            self._token_expires_at = time.time() + float(data.get("expires_in", 86400))
            return self._token

    @rate_limit_auth0
    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated Management API request."""
        url = f"{self.base_url}/api/v2{path}"
        headers = {"Authorization": f"Bearer {self._get_token()}"}
        logger.debug(f"Auth0 API {method} {url}")

        start_time = time.time()
        result = "error"
        try:
            response = self.session.request(method, url, json=json_body, headers=headers, timeout=self.timeout)
            if response.status_code >= 400:
                raise _api_error(operation, response)
            result = "success"
            if response.status_code == 204 or not response.content:
                return None
            return response.json()
        finally:
            metrics.api_call_total.labels(api_type="auth0", operation=operation, result=result).inc()
            metrics.client_operations_total.labels(operation=operation, result=result).inc()
            metrics.api_call_duration_seconds.labels(api_type="auth0", operation=operation).observe(
                time.time() - start_time
            )

    def create_client(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a client."""
        created = self._request("POST", "/clients", OPERATION_CREATE_CLIENT, json_body=payload)
        logger.info(f"Created Auth0 client {created.get('client_id')}")
        return created

    def get_client(self, client_id: str) -> dict[str, Any]:
        """Read a client by id."""
        return self._request("GET", f"/clients/{client_id}", OPERATION_GET_CLIENT)

    def update_client(self, client_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update a client by id."""
        return self._request("PATCH", f"/clients/{client_id}", OPERATION_UPDATE_CLIENT, json_body=payload)

    def delete_client(self, client_id: str) -> None:
        """Delete a client by id."""
        self._request("DELETE", f"/clients/{client_id}", OPERATION_DELETE_CLIENT)
        logger.info(f"Deleted Auth0 client {client_id}")


def _api_error(operation: str, response: requests.Response) -> Auth0APIError:
    """Build an Auth0APIError from an error response."""
    error_code = None
    try:
        body = response.json()
        message = body.get("message") or body.get("error_description") or body.get("error") or response.text
        error_code = body.get("errorCode") or body.get("error")
    except ValueError:
        message = response.text
    return Auth0APIError(
        f"Auth0 {operation} failed with status {response.status_code}: {message}",
        status_code=response.status_code,
        error_code=error_code,
        operation=operation,
    )
