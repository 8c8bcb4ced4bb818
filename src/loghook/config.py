"""LOGHOOK configuration via environment variables.

The sink location and credential variable names match the ones the
webhook has always been deployed with (WEBHOOK_SECRET, BIGQUERY_*,
GCP_*). Everything tunable that did not exist before is prefixed
LOGHOOK_.

Credentials and sink identifiers are resolved on demand, not at
startup, so the service boots and answers health checks even when the
deployment is incomplete. A missing value surfaces as a 502 on the
first ingest attempt.
"""

import os
import logging

from loghook import __version__
from loghook.errors import ConfigurationError
from loghook.models.credentials import ServiceCredential

logger = logging.getLogger("loghook.config")

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_BIGQUERY_BASE_URL = "https://bigquery.googleapis.com/bigquery/v2"


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "y")


class Settings:
    """All configuration sourced from environment."""

    def __init__(self):
        # Core
        self.version = __version__
        self.log_level = os.environ.get("LOGHOOK_LOG_LEVEL", "info")
        self.api_port = int(os.environ.get("LOGHOOK_API_PORT", "8080"))
        self.ingest_path = os.environ.get("LOGHOOK_INGEST_PATH", "/")

        # Inbound authentication (empty disables signature checks)
        self.webhook_secret = os.environ.get("WEBHOOK_SECRET", "")

        # Sink location
        self.bigquery_project_id = os.environ.get("BIGQUERY_PROJECT_ID", "")
        self.bigquery_dataset = os.environ.get("BIGQUERY_DATASET", "")
        self.bigquery_table = os.environ.get("BIGQUERY_TABLE", "")
        self.bigquery_base_url = os.environ.get(
            "LOGHOOK_BIGQUERY_BASE_URL", DEFAULT_BIGQUERY_BASE_URL
        )

        # Service credential: either one JSON secret or two discrete values
        self.bigquery_creds_json = os.environ.get("BIGQUERY_CREDS_JSON", "")
        self.gcp_client_email = os.environ.get("GCP_CLIENT_EMAIL", "")
        self.gcp_private_key = os.environ.get("GCP_PRIVATE_KEY", "")

        # Token authority
        self.token_uri = os.environ.get("LOGHOOK_TOKEN_URI", DEFAULT_TOKEN_URI)
        self.token_cache_enabled = _env_bool("LOGHOOK_TOKEN_CACHE", "true")
        self.token_refresh_margin = float(
            os.environ.get("LOGHOOK_TOKEN_REFRESH_MARGIN", "300")
        )

        # Outbound calls
        self.outbound_timeout = float(
            os.environ.get("LOGHOOK_OUTBOUND_TIMEOUT", "10")
        )

        # Validation
        self.strict_types = _env_bool("LOGHOOK_STRICT_TYPES", "false")

    @property
    def auth_enabled(self) -> bool:
        return bool(self.webhook_secret)

    def service_credential(self) -> ServiceCredential:
        """Resolve the signing credential.

        BIGQUERY_CREDS_JSON wins when set; otherwise GCP_CLIENT_EMAIL and
        GCP_PRIVATE_KEY are used. Raises BrokerError(INVALID_CREDENTIAL)
        when neither form is complete.
        """
        if self.bigquery_creds_json:
            return ServiceCredential.from_json(self.bigquery_creds_json)
        return ServiceCredential.from_values(
            self.gcp_client_email, self.gcp_private_key
        )

    def table_ref(self) -> tuple[str, str, str]:
        """Return (project, dataset, table) or raise ConfigurationError."""
        missing = [
            name
            for name, value in (
                ("BIGQUERY_PROJECT_ID", self.bigquery_project_id),
                ("BIGQUERY_DATASET", self.bigquery_dataset),
                ("BIGQUERY_TABLE", self.bigquery_table),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"sink location incomplete, missing: {', '.join(missing)}"
            )
        return self.bigquery_project_id, self.bigquery_dataset, self.bigquery_table


settings = Settings()
