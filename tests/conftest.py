"""Pytest configuration for LOGHOOK test suite."""

import json
import os

# Ensure test environment variables are set before any imports
os.environ.setdefault("LOGHOOK_LOG_LEVEL", "warning")
os.environ.setdefault("BIGQUERY_PROJECT_ID", "test-project")
os.environ.setdefault("BIGQUERY_DATASET", "hiring_router_mcp")
os.environ.setdefault("BIGQUERY_TABLE", "logging_events")

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from loghook.models.credentials import ServiceCredential

TOKEN_URI = "https://oauth2.test/token"
BIGQUERY_BASE = "https://bigquery.test/bigquery/v2"
INSERT_PATH = (
    "/bigquery/v2/projects/test-project/datasets/hiring_router_mcp"
    "/tables/logging_events/insertAll"
)


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture
def credential(private_pem) -> ServiceCredential:
    return ServiceCredential(
        client_email="ingest@test-project.iam.gserviceaccount.com",
        private_key=private_pem,
    )


@pytest.fixture
def sample_event() -> dict:
    return {
        "schema_version": 1,
        "source": "hiring-router-mcp",
        "timestamp": "2025-08-14T09:30:00Z",
        "level": "INFO",
        "logger": "router.dispatch",
        "message": "Candidate routed",
        "exc_info": None,
        "extra": {"request_id": "abc-123", "candidate": 42},
    }


@pytest.fixture
def sample_body(sample_event) -> bytes:
    return json.dumps(sample_event).encode("utf-8")


class FakeGoogle:
    """MockTransport backend standing in for the token authority and BigQuery.

    Responses are configurable per test; every request is recorded.
    """

    def __init__(self):
        self.token_status = 200
        self.token_body: object = {
            "access_token": "ya29.test-token",
            "expires_in": 3599,
            "token_type": "Bearer",
        }
        self.insert_status = 200
        self.insert_body: object = {"kind": "bigquery#tableDataInsertAllResponse"}
        self.token_requests: list[httpx.Request] = []
        self.insert_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URI:
            self.token_requests.append(request)
            return self._respond(self.token_status, self.token_body)
        if request.url.path.endswith("/insertAll"):
            self.insert_requests.append(request)
            return self._respond(self.insert_status, self.insert_body)
        return httpx.Response(404, text="unexpected request")

    @staticmethod
    def _respond(status: int, body: object) -> httpx.Response:
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=str(body))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def google() -> FakeGoogle:
    return FakeGoogle()
