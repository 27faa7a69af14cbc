import pytest
from unittest.mock import patch, AsyncMock
import httpx
from metasearch.config import RelaySettings
from metasearch.errors import MisconfiguredCredential, NetworkError, UpstreamError
from metasearch.services.upstream import BraveSearchClient


def brave_response(status_code: int = 200, **kwargs) -> httpx.Response:
    request = httpx.Request("GET", "https://api.search.brave.com/res/v1/web/search")
    return httpx.Response(status_code, request=request, **kwargs)


class TestBraveSearchClient:
    """Test the relay's upstream client"""

    @pytest.fixture
    def client(self):
        return BraveSearchClient(RelaySettings(api_key="test-brave-key"))

    def test_initialization_without_key_warns(self):
        with patch("metasearch.services.upstream.logger.warning") as mock_warning:
            client = BraveSearchClient(RelaySettings())
            assert client.api_key is None
            mock_warning.assert_called()

    @pytest.mark.parametrize("region,expected", [
        (None, {"q": "python"}),
        ("", {"q": "python"}),
        ("   ", {"q": "python"}),
        ("de", {"q": "python", "region": "de"}),
    ])
    def test_build_params(self, client, region, expected):
        assert client.build_params("python", region) == expected

    @pytest.mark.asyncio
    async def test_search_without_key(self):
        client = BraveSearchClient(RelaySettings())
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            with pytest.raises(MisconfiguredCredential) as exc_info:
                await client.search("python")
            mock_get.assert_not_called()
        assert str(exc_info.value) == "BRAVE_API_KEY is not configured."

    @pytest.mark.asyncio
    async def test_search_success(self, client, brave_payload):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = brave_response(json=brave_payload)

            data = await client.search("python", "us")

            kwargs = mock_get.call_args.kwargs
            assert kwargs["headers"]["X-Subscription-Token"] == "test-brave-key"
            assert kwargs["headers"]["Accept"] == "application/json"
            assert kwargs["params"] == {"q": "python", "region": "us"}

        assert data["results"] == [
            {"title": "Python.org", "url": "https://www.python.org", "snippet": "The official Python site"},
            {"title": "Learn Python", "url": "https://learnpython.org", "snippet": ""},
        ]
        assert data["images"] == [
            {"title": "Python logo", "url": "https://imgs.example/logo.png", "sourceUrl": "https://www.python.org"},
            {"title": "Snake", "url": "https://imgs.example/snake.png"},
        ]

    @pytest.mark.asyncio
    async def test_search_failed_status(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = brave_response(429, text='{"type":"ErrorResponse"}')

            with patch("metasearch.services.upstream.logger.warning") as mock_warning:
                with pytest.raises(UpstreamError) as exc_info:
                    await client.search("python")
                mock_warning.assert_called()

        assert exc_info.value.status == 429
        assert exc_info.value.body == '{"type":"ErrorResponse"}'

    @pytest.mark.asyncio
    async def test_search_transport_error(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ConnectError("Name or service not known")

            with patch("metasearch.services.upstream.logger.error") as mock_error:
                with pytest.raises(NetworkError):
                    await client.search("python")
                mock_error.assert_called()

    @pytest.mark.parametrize("payload", [None, {}, {"web": None}, {"web": {"results": "x"}}, {"images": {"results": {}}}])
    def test_normalize_missing_sections(self, client, payload):
        assert client.normalize(payload) == {"results": [], "images": []}

    def test_clean_text_leaves_plain_text(self, client):
        assert client._clean_text("plain") == "plain"
        assert client._clean_text(None) is None
        assert client._clean_text("a <strong>b</strong> c") == "a b c"
