import time
from dataclasses import replace
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from posterplay.auth.errors import ConfigurationError, TokenExchangeError
from posterplay.auth.models import Platform
from posterplay.csrf import generate_state, is_origin_allowed, normalize_origin
from posterplay.integrations.spotify import ProviderErrorKind, ProviderRequestError, SpotifyOAuth
from posterplay.integrations.spotify.config import API_BASE, TOKEN_URL

from tests.helpers import REDIRECT_URI, ProviderStub

ME_URL = f"{API_BASE}/me"


@pytest.fixture
def stub() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def oauth(settings, stub) -> SpotifyOAuth:
    return SpotifyOAuth(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(stub)))


class TestAuthorizeUrl:
    def test_carries_code_flow_parameters(self, oauth):
        url = urlparse(oauth.authorize_url("state123"))
        params = {k: v[0] for k, v in parse_qs(url.query).items()}

        assert f"{url.scheme}://{url.netloc}{url.path}" == "https://accounts.spotify.com/authorize"
        assert params == {
            "response_type": "code",
            "client_id": "test_client_id",
            "scope": (
                "playlist-modify-public playlist-modify-private ugc-image-upload "
                "user-read-email user-read-private"
            ),
            "redirect_uri": REDIRECT_URI,
            "state": "state123",
        }

    @pytest.mark.parametrize(
        "field", ["spotify_client_id", "spotify_client_secret", "spotify_redirect_uri"]
    )
    def test_unconfigured_raises(self, settings, field):
        oauth = SpotifyOAuth(replace(settings, **{field: ""}))
        with pytest.raises(ConfigurationError):
            oauth.authorize_url("s")


@pytest.mark.asyncio
class TestCodeExchange:
    async def test_success_builds_bundle_from_provider_ttl(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, {"access_token": "a", "refresh_token": "r", "expires_in": 3600})

        before = int(time.time())
        bundle = await oauth.exchange_code_for_tokens("VALIDCODE")
        after = int(time.time())

        assert bundle.access_token == "a"
        assert bundle.refresh_token == "r"
        assert bundle.expires_in == 3600
        assert before + 3600 <= bundle.expires_at <= after + 3600

        (call,) = stub.calls
        form = parse_qs(call.content.decode())
        assert call.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert form == {
            "grant_type": ["authorization_code"],
            "code": ["VALIDCODE"],
            "redirect_uri": [REDIRECT_URI],
            "client_id": ["test_client_id"],
            "client_secret": ["test_client_secret"],
        }

    async def test_non_2xx_raises_without_retry(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 400, {"error": "invalid_grant"})
        with pytest.raises(TokenExchangeError) as excinfo:
            await oauth.exchange_code_for_tokens("bad")
        assert excinfo.value.status == 400
        assert "invalid_grant" not in excinfo.value.message
        assert len(stub.calls) == 1

    async def test_network_failure_is_not_retried(self, oauth, stub):
        stub.on("POST", TOKEN_URL, exc=httpx.ConnectError("connection reset"))
        with pytest.raises(TokenExchangeError):
            await oauth.exchange_code_for_tokens("code")
        assert len(stub.calls) == 1

    async def test_non_json_body_raises(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, text="<html>oops</html>")
        with pytest.raises(TokenExchangeError):
            await oauth.exchange_code_for_tokens("code")

    async def test_missing_access_token_raises(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, {"token_type": "Bearer", "expires_in": 3600})
        with pytest.raises(TokenExchangeError):
            await oauth.exchange_code_for_tokens("code")

    @pytest.mark.parametrize("expires_in", ["soon", 0, -60, True, [3600]])
    async def test_unusable_ttl_raises(self, oauth, stub, expires_in):
        stub.on(
            "POST",
            TOKEN_URL,
            200,
            {"access_token": "a", "refresh_token": "r", "expires_in": expires_in},
        )
        with pytest.raises(TokenExchangeError) as excinfo:
            await oauth.exchange_code_for_tokens("VALIDCODE")
        assert excinfo.value.status == 200
        assert len(stub.calls) == 1

    async def test_numeric_string_ttl_is_accepted(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, {"access_token": "a", "expires_in": "1800"})
        bundle = await oauth.exchange_code_for_tokens("VALIDCODE")
        assert bundle.expires_in == 1800

    async def test_unconfigured_never_calls_provider(self, settings, stub):
        oauth = SpotifyOAuth(
            replace(settings, spotify_client_secret=""),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(stub)),
        )
        with pytest.raises(ConfigurationError):
            await oauth.exchange_code_for_tokens("code")
        assert stub.calls == []


@pytest.mark.asyncio
class TestRefresh:
    async def test_keeps_refresh_token_when_not_rotated(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, {"access_token": "new", "expires_in": 1800})
        bundle = await oauth.refresh_access_token("old-refresh")

        assert bundle.access_token == "new"
        assert bundle.refresh_token == "old-refresh"
        assert bundle.expires_in == 1800
        form = parse_qs(stub.calls[0].content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["old-refresh"]

    async def test_rotated_refresh_token_wins(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, {"access_token": "new", "refresh_token": "rotated"})
        bundle = await oauth.refresh_access_token("old-refresh")
        assert bundle.refresh_token == "rotated"
        assert bundle.expires_in == 3600

    async def test_unusable_ttl_raises(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 200, {"access_token": "new", "expires_in": "later"})
        with pytest.raises(TokenExchangeError):
            await oauth.refresh_access_token("old-refresh")

    async def test_rejected_refresh_raises(self, oauth, stub):
        stub.on("POST", TOKEN_URL, 400, {"error": "invalid_grant"})
        with pytest.raises(TokenExchangeError):
            await oauth.refresh_access_token("revoked")


@pytest.mark.asyncio
class TestCurrentUser:
    async def test_profile(self, oauth, stub):
        stub.on("GET", ME_URL, 200, {"id": "u1", "display_name": "Ada", "email": "ada@example.com"})
        user = await oauth.get_current_user("tok")

        assert (user.id, user.display_name, user.email) == ("u1", "Ada", "ada@example.com")
        assert user.platform is Platform.SPOTIFY
        assert stub.calls[0].headers["Authorization"] == "Bearer tok"

    async def test_display_name_falls_back_to_id(self, oauth, stub):
        stub.on("GET", ME_URL, 200, {"id": "u1", "display_name": None})
        user = await oauth.get_current_user("tok")
        assert user.display_name == "u1"

    @pytest.mark.parametrize(
        "status,kind",
        [(401, ProviderErrorKind.CLIENT_ERROR), (403, ProviderErrorKind.CLIENT_ERROR), (502, ProviderErrorKind.SERVER_ERROR)],
    )
    async def test_failures_are_typed(self, oauth, stub, status, kind):
        stub.on("GET", ME_URL, status, {"error": {"status": status}})
        with pytest.raises(ProviderRequestError) as excinfo:
            await oauth.get_current_user("tok")
        assert excinfo.value.kind is kind
        assert excinfo.value.status == status

    async def test_network_failure_is_typed(self, oauth, stub):
        stub.on("GET", ME_URL, exc=httpx.ReadTimeout("slow"))
        with pytest.raises(ProviderRequestError) as excinfo:
            await oauth.get_current_user("tok")
        assert excinfo.value.kind is ProviderErrorKind.NETWORK


class TestState:
    def test_default_length_and_alphabet(self):
        state = generate_state()
        assert len(state) == 16
        assert state.isalnum()

    def test_values_differ(self):
        assert len({generate_state() for _ in range(20)}) == 20

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            generate_state(0)


class TestOrigin:
    @pytest.mark.parametrize(
        "origin,allowed",
        [
            (None, True),
            ("", True),
            ("https://app.example", True),
            ("HTTPS://APP.EXAMPLE", True),
            ("https://app.example/", True),
            ("https://evil.example", False),
            ("http://app.example", False),
            ("https://app.example:8443", False),
            ("null", False),
        ],
    )
    def test_against_configured_app_url(self, origin, allowed):
        assert is_origin_allowed(origin, "https://app.example") is allowed

    def test_no_configured_url_allows_any(self):
        assert is_origin_allowed("https://evil.example", "")

    def test_normalize(self):
        assert normalize_origin("https://App.Example/path?q=1") == "https://app.example"
        assert normalize_origin("not a url") is None
