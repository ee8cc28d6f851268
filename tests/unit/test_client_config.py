"""Tests for client construction and environment configuration."""

import pytest

from cove_client import CoveClient, CoveClientConfigError


class TestConstruction:

    def test_strips_trailing_slashes(self):
        client = CoveClient("https://cove.example.com/api//", "token")
        assert client.base_url == "https://cove.example.com/api"

    def test_configuration_is_read_only(self):
        client = CoveClient("https://cove.example.com", "token")

        with pytest.raises(AttributeError):
            client.base_url = "https://other.example.com"
        with pytest.raises(AttributeError):
            client.credential = "other"

    @pytest.mark.parametrize("base_url", [
        "",
        "cove.example.com",
        "ftp://cove.example.com",
        "http://",
        None,
    ])
    def test_rejects_invalid_base_url(self, base_url):
        with pytest.raises(CoveClientConfigError):
            CoveClient(base_url, "token")

    def test_repr_masks_credential(self):
        client = CoveClient("https://cove.example.com", "hunter2")

        assert "hunter2" not in repr(client)
        assert "https://cove.example.com" in repr(client)

    def test_headers(self):
        client = CoveClient("https://cove.example.com", "token")

        assert client._get_headers() == {"Accept": "application/json", "Authorization": "Bearer token"}
        assert client._get_headers(authenticated=False, has_body=True) == {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def test_empty_credential_is_not_validated(self):
        client = CoveClient("https://cove.example.com", "")
        assert client._get_headers()["Authorization"] == "Bearer "

    @pytest.mark.parametrize("secret_id,expected", [
        ("api-key", "/secrets/api-key"),
        ("db token", "/secrets/db%20token"),
        ("a/b", "/secrets/a%2Fb"),
    ])
    def test_secret_path_quotes_identifier(self, secret_id, expected):
        client = CoveClient("https://cove.example.com", "token")
        assert client._secret_path(secret_id) == expected

    @pytest.mark.parametrize("secret_id", ["", None, 42])
    def test_secret_path_rejects_invalid_identifier(self, secret_id):
        client = CoveClient("https://cove.example.com", "token")
        with pytest.raises(CoveClientConfigError):
            client._secret_path(secret_id)


class TestFromEnv:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("COVE_BASE_URL", "https://cove.example.com/")
        monkeypatch.setenv("COVE_CLIENT_SECRET", "token")
        monkeypatch.setenv("COVE_TIMEOUT", "5")

        client = CoveClient.from_env()

        assert client.base_url == "https://cove.example.com"
        assert client.credential == "token"
        assert client.timeout.total == 5.0

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("COVE_BASE_URL", "http://localhost:8080")
        monkeypatch.delenv("COVE_CLIENT_SECRET", raising=False)
        monkeypatch.delenv("COVE_TIMEOUT", raising=False)

        client = CoveClient.from_env()

        assert client.credential == ""
        assert client.timeout.total == 30

    def test_missing_base_url(self, monkeypatch):
        monkeypatch.delenv("COVE_BASE_URL", raising=False)

        with pytest.raises(CoveClientConfigError):
            CoveClient.from_env()

    def test_bad_timeout(self, monkeypatch):
        monkeypatch.setenv("COVE_BASE_URL", "http://localhost:8080")
        monkeypatch.setenv("COVE_TIMEOUT", "soon")

        with pytest.raises(CoveClientConfigError):
            CoveClient.from_env()
