"""Verify LOGHOOK configuration loads from environment."""

import json

import pytest
from loghook.errors import BrokerError, BrokerErrorKind, ConfigurationError


def test_settings_load():
    """Settings should initialize without error."""
    from loghook.config import Settings
    s = Settings()
    assert s.version == "0.1.0"
    assert s.ingest_path == "/"
    assert s.outbound_timeout == 10.0
    assert s.token_cache_enabled is True
    assert s.strict_types is False


def test_overrides_from_environment(monkeypatch):
    from loghook.config import Settings
    monkeypatch.setenv("WEBHOOK_SECRET", "abc")
    monkeypatch.setenv("LOGHOOK_TOKEN_CACHE", "false")
    monkeypatch.setenv("LOGHOOK_STRICT_TYPES", "yes")
    monkeypatch.setenv("LOGHOOK_OUTBOUND_TIMEOUT", "2.5")
    s = Settings()
    assert s.auth_enabled is True
    assert s.token_cache_enabled is False
    assert s.strict_types is True
    assert s.outbound_timeout == 2.5


def test_table_ref():
    from loghook.config import Settings
    s = Settings()
    assert s.table_ref() == ("test-project", "hiring_router_mcp", "logging_events")


def test_table_ref_missing(monkeypatch):
    from loghook.config import Settings
    monkeypatch.setenv("BIGQUERY_DATASET", "")
    with pytest.raises(ConfigurationError) as exc:
        Settings().table_ref()
    assert "BIGQUERY_DATASET" in str(exc.value)


class TestServiceCredential:
    def test_json_secret_preferred(self, monkeypatch):
        from loghook.config import Settings
        monkeypatch.setenv(
            "BIGQUERY_CREDS_JSON",
            json.dumps({"client_email": "json@test", "private_key": "pem"}),
        )
        monkeypatch.setenv("GCP_CLIENT_EMAIL", "discrete@test")
        monkeypatch.setenv("GCP_PRIVATE_KEY", "other")
        assert Settings().service_credential().client_email == "json@test"

    def test_discrete_values(self, monkeypatch):
        from loghook.config import Settings
        monkeypatch.delenv("BIGQUERY_CREDS_JSON", raising=False)
        monkeypatch.setenv("GCP_CLIENT_EMAIL", "discrete@test")
        monkeypatch.setenv("GCP_PRIVATE_KEY", "pem")
        cred = Settings().service_credential()
        assert cred.client_email == "discrete@test"
        assert "pem" not in repr(cred)

    @pytest.mark.parametrize(
        "raw",
        ["{not json", "[]", json.dumps({"client_email": "a@b"}), json.dumps({"private_key": "k"})],
    )
    def test_bad_json_secret(self, monkeypatch, raw):
        from loghook.config import Settings
        monkeypatch.setenv("BIGQUERY_CREDS_JSON", raw)
        with pytest.raises(BrokerError) as exc:
            Settings().service_credential()
        assert exc.value.kind == BrokerErrorKind.INVALID_CREDENTIAL
        assert exc.value.is_configuration

    def test_nothing_configured(self, monkeypatch):
        from loghook.config import Settings
        for name in ("BIGQUERY_CREDS_JSON", "GCP_CLIENT_EMAIL", "GCP_PRIVATE_KEY"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(BrokerError):
            Settings().service_credential()
