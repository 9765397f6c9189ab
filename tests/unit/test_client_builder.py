"""Unit tests for the Auth0 client payload builder."""

from __future__ import annotations

import pytest

from auth0_operator.builders.client import (
    create_client_payload_from_spec,
    detect_drift,
    strip_server_fields,
    validate_client_spec,
)


class TestValidateClientSpec:
    """Test cases for validate_client_spec."""

    def test_minimal_spec(self):
        """A name is all that is required."""
        validate_client_spec({"name": "app"})

    def test_name_required(self):
        """Missing name is rejected."""
        with pytest.raises(ValueError, match="spec.name is required"):
            validate_client_spec({"type": "spa"})

    @pytest.mark.parametrize("client_type", ["spa", "native", "regular", "non_interactive"])
    def test_known_types(self, client_type):
        """All client types are accepted."""
        validate_client_spec({"name": "app", "type": client_type})

    def test_unknown_type(self):
        """Unknown client type is rejected."""
        with pytest.raises(ValueError, match="desktop"):
            validate_client_spec({"name": "app", "type": "desktop"})

    def test_metadata_limit(self):
        """At most 10 metadata entries are allowed."""
        validate_client_spec({"name": "app", "metadata": {f"k{i}": "v" for i in range(10)}})

        with pytest.raises(ValueError, match="at most 10"):
            validate_client_spec({"name": "app", "metadata": {f"k{i}": "v" for i in range(11)}})

    def test_metadata_values_are_strings(self):
        """Metadata values must be strings."""
        with pytest.raises(ValueError, match="spec.metadata.count"):
            validate_client_spec({"name": "app", "metadata": {"count": 3}})


class TestCreateClientPayload:
    """Test cases for create_client_payload_from_spec."""

    def test_full_spec(self):
        """All spec fields are mapped to Auth0 fields."""
        spec = {
            "name": "app",
            "description": "desc",
            "type": "non_interactive",
            "callbackUrls": ["https://a", "https://b"],
            "metadata": {"team": "platform"},
        }

        payload = create_client_payload_from_spec(spec, "secret-value")

        assert payload == {
            "name": "app",
            "description": "desc",
            "app_type": "non_interactive",
            "callbacks": ["https://a", "https://b"],
            "client_metadata": {"team": "platform"},
            "client_secret": "secret-value",
        }

    def test_regular_maps_to_regular_web(self):
        """The regular type is sent as regular_web."""
        payload = create_client_payload_from_spec({"name": "app", "type": "regular"}, None)

        assert payload["app_type"] == "regular_web"

    def test_defaults(self):
        """Absent optional fields become empty values and no secret is sent."""
        payload = create_client_payload_from_spec({"name": "app"}, None)

        assert payload == {"name": "app", "description": "", "callbacks": [], "client_metadata": {}}

    def test_callbacks_copied(self):
        """The payload does not share the spec's list."""
        spec = {"name": "app", "callbackUrls": ["https://a"]}

        payload = create_client_payload_from_spec(spec, None)
        payload["callbacks"].append("https://b")

        assert spec["callbackUrls"] == ["https://a"]


class TestStripServerFields:
    """Test cases for strip_server_fields."""

    def test_removes_server_assigned_fields(self):
        """client_id, signing_keys and jwt secret_encoded are dropped."""
        payload = {
            "name": "app",
            "client_id": "abc",
            "signing_keys": [{"cert": "x"}],
            "jwt_configuration": {"alg": "RS256", "secret_encoded": False},
        }

        stripped = strip_server_fields(payload)

        assert stripped == {"name": "app", "jwt_configuration": {"alg": "RS256"}}
        assert "client_id" in payload

    def test_drops_emptied_jwt_configuration(self):
        """jwt_configuration holding only secret_encoded is removed."""
        stripped = strip_server_fields({"name": "app", "jwt_configuration": {"secret_encoded": True}})

        assert stripped == {"name": "app"}

    def test_keeps_client_secret(self):
        """A configured client secret is still sent."""
        assert strip_server_fields({"client_secret": "s"}) == {"client_secret": "s"}


class TestDetectDrift:
    """Test cases for detect_drift."""

    def test_in_sync(self):
        """Remote defaults equal the payload's empty values."""
        payload = {"name": "app", "description": "", "callbacks": [], "client_metadata": {}}
        remote = {"client_id": "abc", "name": "app", "callbacks": None}

        assert detect_drift(payload, remote) == []

    def test_changed_fields(self):
        """Each differing field is reported."""
        payload = {"name": "app", "description": "new", "callbacks": ["https://a"], "app_type": "spa"}
        remote = {"name": "app", "description": "old", "callbacks": [], "app_type": "spa"}

        assert detect_drift(payload, remote) == ["description", "callbacks"]

    def test_client_secret(self):
        """A differing configured secret is drift."""
        assert detect_drift({"client_secret": "a"}, {"client_secret": "b"}) == ["client_secret"]
        assert detect_drift({"client_secret": "a"}, {"client_secret": "a"}) == []
