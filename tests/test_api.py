"""
Tests for the OpenAI-compatible client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from qai.api import MAX_TOKENS, TEMPERATURE, OpenAIClient, validate_api_key_from_config
from qai.config import QaiSettings
from qai.errors import (
    AccessDenied,
    ApiError,
    ApiKeyNotConfigured,
    InvalidApiKey,
    NetworkError,
    UnexpectedResponse,
)

API_BASE = "https://api.test/v1"


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler, api_key="sk-test"):
    return OpenAIClient(
        api_key=api_key,
        api_base=API_BASE,
        model="gpt-4o-mini",
        transport=httpx.MockTransport(handler),
    )


def test_query_sends_chat_completion_request():
    """The request carries model, messages and fixed parameters."""
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("ls -la"))

    with _client(handler) as client:
        result = client.query("system text", "list files")

    assert result == "ls -la"
    assert seen["url"] == f"{API_BASE}/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["model"] == "gpt-4o-mini"
    assert body["temperature"] == TEMPERATURE
    assert body["max_tokens"] == MAX_TOKENS
    assert body["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "list files"},
    ]


def test_query_strips_whitespace():
    """Content is returned trimmed."""
    client = _client(lambda request: httpx.Response(200, json=_completion("  pwd \n")))
    assert client.query("s", "where am i") == "pwd"


def test_query_without_key_sends_no_auth_header():
    """Keyless endpoints get no Authorization header."""
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=_completion("ls"))

    _client(handler, api_key=None).query("s", "q")
    assert seen["auth"] is None


def test_query_api_error_message():
    """The API's error message is surfaced."""
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

    with pytest.raises(ApiError, match="OpenAI API error: Incorrect API key provided"):
        _client(handler).query("s", "q")


def test_query_api_error_plain_body():
    """Non-JSON error bodies are reported with the status code."""
    def handler(request):
        return httpx.Response(500, text="Internal Server Error")

    with pytest.raises(ApiError, match=r"OpenAI API error \(500\): Internal Server Error"):
        _client(handler).query("s", "q")


def test_query_no_choices():
    """An empty choice list is an error."""
    client = _client(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(ApiError, match="No response from OpenAI"):
        client.query("s", "q")


def test_query_unparsable_response():
    """Malformed JSON is an error."""
    client = _client(lambda request: httpx.Response(200, text="not json"))
    with pytest.raises(ApiError, match="Failed to parse"):
        client.query("s", "q")


def test_query_transport_error():
    """Connection failures become ApiError."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError, match="Failed to send request"):
        _client(handler).query("s", "q")


def test_query_multi_returns_raw_text():
    """query_multi hands back the whole reply for parsing."""
    reply = "MODERN:\nfd -e py\n\nSTANDARD:\nfind . -name '*.py'"
    client = _client(lambda request: httpx.Response(200, json=_completion(reply)))
    assert client.query_multi("s", "python files", 5) == reply


@pytest.mark.parametrize("status, error", [
    (401, InvalidApiKey),
    (403, AccessDenied),
    (500, UnexpectedResponse),
])
def test_validate_api_key_errors(status, error):
    """Validation maps status codes to specific errors."""
    client = _client(lambda request: httpx.Response(status))
    with pytest.raises(error):
        client.validate_api_key()


def test_validate_api_key_success():
    """200 from /models means the key works."""
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"data": []})

    _client(handler).validate_api_key()
    assert seen == {"method": "GET", "url": f"{API_BASE}/models"}


def test_validate_api_key_network_error():
    """Transport failures are network errors."""
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(NetworkError, match="Network error"):
        _client(handler).validate_api_key()


def test_from_config_requires_key():
    """Without a key the client refuses to start unless opted out."""
    with pytest.raises(ApiKeyNotConfigured):
        OpenAIClient.from_config(QaiSettings())

    client = OpenAIClient.from_config(QaiSettings(allow_no_api_key=True))
    assert client.api_key is None
    client.close()


def test_from_config_strips_trailing_slash():
    """api_base may be written with a trailing slash."""
    settings = QaiSettings(api_key="sk", api_base="http://localhost:8080/v1/")
    with OpenAIClient.from_config(settings) as client:
        assert client.api_base == "http://localhost:8080/v1"


def test_validate_api_key_from_config():
    """The config helper checks for a key before calling out."""
    with pytest.raises(ApiKeyNotConfigured):
        validate_api_key_from_config(QaiSettings(allow_no_api_key=True))

    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": []}))
    validate_api_key_from_config(QaiSettings(api_key="sk", api_base=API_BASE), transport=transport)
