"""Builder for the Auth0 Management API client."""

from __future__ import annotations

import os

from ..services.auth0.client import Auth0Provider


def create_auth0_provider_from_env() -> Auth0Provider:
    """Create an Auth0 provider from environment variables.

    Environment Variables:
        AUTH0_DOMAIN: Auth0 tenant domain (required)
        AUTH0_CLIENT_ID: Management API client id (required)
        AUTH0_CLIENT_SECRET: Management API client secret (required)
        AUTH0_AUDIENCE: Management API audience (default: https://{domain}/api/v2/)
        AUTH0_REQUEST_TIMEOUT_SECONDS: Request timeout (default: 30)

    Raises:
        ValueError: If required configuration is missing
    """
    domain = os.getenv("AUTH0_DOMAIN")
    client_id = os.getenv("AUTH0_CLIENT_ID")
    client_secret = os.getenv("AUTH0_CLIENT_SECRET")

    missing = [
        name
        for name, value in (
            ("AUTH0_DOMAIN", domain),
            ("AUTH0_CLIENT_ID", client_id),
            ("AUTH0_CLIENT_SECRET", client_secret),
        )
        if not value
    ]
    if missing:
        raise ValueError(f"Missing Auth0 configuration: {', '.join(missing)}")

    return Auth0Provider(
        domain=domain,
        client_id=client_id,
        client_secret=client_secret,
        audience=os.getenv("AUTH0_AUDIENCE") or None,
        timeout=float(os.getenv("AUTH0_REQUEST_TIMEOUT_SECONDS", "30")),
    )
