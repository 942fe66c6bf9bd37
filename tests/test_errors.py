import aiohttp
import pytest

from overseer import (
    OverseerAPI,
    APIError,
    AuthenticationError,
    RateLimitError,
    RequestError,
    ResponseFormatError,
)

from .conftest import TEST_API_KEY


@pytest.mark.asyncio
async def test_unauthorized_raises_authentication_error(client, stub):
    stub.reply("POST", "/api/v1/validate", status=401, text="Invalid API key", reason="Unauthorized")

    with pytest.raises(AuthenticationError) as excinfo:
        await client.validate("Test content")

    assert excinfo.value.status_code == 401
    assert excinfo.value.endpoint == "/api/v1/validate"
    assert "Invalid API key" in str(excinfo.value)
    assert not isinstance(excinfo.value, (RateLimitError, RequestError))


@pytest.mark.asyncio
async def test_rate_limit_raises_rate_limit_error(client, stub):
    stub.reply("GET", "/api/v1/policies", status=429, body={}, headers={"Retry-After": "12"})

    with pytest.raises(RateLimitError) as excinfo:
        await client.get_policies()

    assert str(excinfo.value) == "Rate limit exceeded"
    assert excinfo.value.retry_after == 12.0
    assert not isinstance(excinfo.value, (AuthenticationError, RequestError))


@pytest.mark.asyncio
async def test_server_error_message_from_json_body(client, stub):
    stub.reply("POST", "/api/v1/validate", status=422, body={"error": "policies must be a list"})

    with pytest.raises(RequestError) as excinfo:
        await client.validate("Test content")

    assert str(excinfo.value) == "API request failed: policies must be a list"
    assert excinfo.value.status_code == 422


@pytest.mark.asyncio
async def test_status_text_used_without_body(client, stub):
    stub.reply("GET", "/api/v1/policies", status=503, text="", reason="Service Unavailable")

    with pytest.raises(RequestError, match="API request failed: Service Unavailable"):
        await client.get_policies()


@pytest.mark.asyncio
async def test_invalid_json_on_success(client, stub):
    stub.reply("POST", "/api/v1/validate", text="<html>oops</html>")

    with pytest.raises(ResponseFormatError):
        await client.validate("Test content")


@pytest.mark.asyncio
async def test_network_error_propagates_unwrapped():
    api = OverseerAPI(api_key=TEST_API_KEY, base_url="http://127.0.0.1:1")

    with pytest.raises(aiohttp.ClientConnectionError) as excinfo:
        await api.validate("Test content")

    assert not isinstance(excinfo.value, APIError)


@pytest.mark.asyncio
async def test_client_usable_after_failure(client, stub):
    stub.reply("POST", "/api/v1/validate", status=500, body={"message": "boom"})
    with pytest.raises(RequestError):
        await client.validate("first")

    stub.reply("POST", "/api/v1/validate", body={"is_flagged": False})
    result = await client.validate("second")

    assert result.valid is True
