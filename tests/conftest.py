"""Test-specific fixtures."""

from dataclasses import replace

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from posterplay.config import AuthSettings
from posterplay.integrations.apple_music import AppleMusicClient
from posterplay.integrations.spotify import SpotifyOAuth
from posterplay.main import create_app

from tests.helpers import APP_URL, REDIRECT_URI, ProviderStub


@pytest.fixture(scope="session")
def ec_private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ec_private_pem(ec_private_key) -> str:
    return ec_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def settings(ec_private_pem) -> AuthSettings:
    return AuthSettings(
        spotify_client_id="test_client_id",
        spotify_client_secret="test_client_secret",
        spotify_redirect_uri=REDIRECT_URI,
        apple_music_team_id="TEAM123456",
        apple_music_key_id="KEY1234567",
        apple_music_private_key=ec_private_pem,
        app_url=APP_URL,
    )


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def provider_http(provider) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(provider))


@pytest.fixture
def make_client(settings, provider_http):
    """Build a TestClient for an app over ``settings`` with field overrides."""
    opened: list[TestClient] = []

    def _make(**overrides) -> TestClient:
        app_settings = replace(settings, **overrides)
        app = create_app(
            app_settings,
            spotify=SpotifyOAuth(app_settings, http_client=provider_http),
            apple_music=AppleMusicClient(http_client=provider_http),
        )
        client = TestClient(app)
        opened.append(client)
        return client

    yield _make
    for client in opened:
        client.close()


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
