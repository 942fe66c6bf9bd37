import dataclasses

import pytest

from overseer import OverseerAPI, ClientConfig, InvalidInputError


def test_default_base_url():
    client = OverseerAPI(api_key="ovsk_test_key")
    assert client.base_url == "https://api.overseerai.app"
    assert client.organization_id is None


def test_trailing_slash_is_stripped():
    config = ClientConfig(api_key="k", base_url="http://localhost:8000/")
    assert config.base_url == "http://localhost:8000"


def test_config_is_immutable():
    config = ClientConfig(api_key="k")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.api_key = "other"


def test_client_accepts_config():
    config = ClientConfig(api_key="k", organization_id="org_1", timeout=5)
    client = OverseerAPI(config=config)

    assert client.config is config
    assert client._get_headers()["X-Organization-ID"] == "org_1"


def test_missing_api_key():
    with pytest.raises(InvalidInputError):
        OverseerAPI(api_key="")


def test_from_env(monkeypatch):
    monkeypatch.setenv("OVERSEER_API_KEY", "env_key")
    monkeypatch.setenv("OVERSEER_ORGANIZATION_ID", "org_env")
    monkeypatch.setenv("OVERSEER_BASE_URL", "http://localhost:9000/")
    monkeypatch.setenv("OVERSEER_TIMEOUT", "7.5")

    config = ClientConfig.from_env()

    assert config == ClientConfig(
        api_key="env_key",
        organization_id="org_env",
        base_url="http://localhost:9000",
        timeout=7.5,
    )


def test_from_env_defaults(monkeypatch):
    monkeypatch.setenv("OVERSEER_API_KEY", "env_key")
    monkeypatch.delenv("OVERSEER_ORGANIZATION_ID", raising=False)
    monkeypatch.delenv("OVERSEER_BASE_URL", raising=False)
    monkeypatch.delenv("OVERSEER_TIMEOUT", raising=False)

    config = ClientConfig.from_env()

    assert config.organization_id is None
    assert config.base_url == "https://api.overseerai.app"
    assert config.timeout == 30.0


def test_headers_without_organization():
    headers = OverseerAPI(api_key="k")._get_headers()
    assert headers["Authorization"] == "Bearer k"
    assert "X-Organization-ID" not in headers


def test_from_env_rejects_bad_timeout(monkeypatch):
    monkeypatch.setenv("OVERSEER_API_KEY", "env_key")
    monkeypatch.setenv("OVERSEER_TIMEOUT", "thirty")

    with pytest.raises(InvalidInputError, match="Invalid environment configuration"):
        ClientConfig.from_env()


def test_from_env_missing_api_key(monkeypatch):
    monkeypatch.delenv("OVERSEER_API_KEY", raising=False)

    with pytest.raises(InvalidInputError):
        ClientConfig.from_env()


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv("MODERATION_API_KEY", "other_key")
    monkeypatch.setenv("MODERATION_ORGANIZATION_ID", "org_2")

    config = ClientConfig.from_env(prefix="MODERATION_")

    assert config.api_key == "other_key"
    assert config.organization_id == "org_2"
