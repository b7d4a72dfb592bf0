"""
Tests for settings and the immutable configuration objects built from them.
"""

import dataclasses

import pytest

from app.config import Settings
from app.models.domain.shopify_domain import DEFAULT_API_VERSION, ApiConfig, RetryPolicy
from app.services.shopify.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    values = {
        "SHOPIFY_API_KEY": "key",
        "SHOPIFY_API_SECRET": "secret",
        "SHOPIFY_SCOPES": "read_customers, read_products",
        "SHOPIFY_APP_URL": "proxy.example.com",
        "SHOPIFY_SHOP": "test-shop.myshopify.com",
        "SHOPIFY_ACCESS_TOKEN": "token",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_api_config_built_from_settings():
    config = _settings().api_config()

    assert config.api_key == "key"
    assert config.scopes == ("read_customers", "read_products")
    assert config.host == "proxy.example.com"
    assert config.api_version == DEFAULT_API_VERSION
    assert config.shop == "test-shop.myshopify.com"


def test_api_config_uses_configured_version():
    config = _settings(SHOPIFY_API_VERSION="2025-01").api_config()

    assert config.api_version == "2025-01"


def test_missing_required_fields_raise_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        _settings(SHOPIFY_API_KEY="", SHOPIFY_API_SECRET="", SHOPIFY_SCOPES=" , ").api_config()

    assert exc.value.missing_fields == [
        "api_key (SHOPIFY_API_KEY)",
        "api_secret (SHOPIFY_API_SECRET)",
        "scopes (SHOPIFY_SCOPES)",
    ]


def test_api_config_is_immutable():
    config = ApiConfig(api_key="k", api_secret="s", scopes=["read_products"], host="h")

    assert config.scopes == ("read_products",)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.api_key = "other"


def test_missing_host_is_fatal():
    with pytest.raises(ConfigurationError, match="SHOPIFY_APP_URL"):
        ApiConfig(api_key="k", api_secret="s", scopes=("read_products",), host="")


def test_retry_policy_from_settings():
    policy = _settings(SHOPIFY_MAX_RETRIES=5, SHOPIFY_RETRY_BASE_DELAY_MS=200).retry_policy()

    assert policy == RetryPolicy(max_retries=5, base_delay_ms=200, max_delay_ms=10000)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_retries": -1},
        {"base_delay_ms": 20000, "max_delay_ms": 10000},
        {"base_delay_ms": -5},
    ],
)
def test_retry_policy_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        RetryPolicy(**kwargs)


def test_allowed_origins_from_bare_host():
    assert _settings().allowed_origins() == [
        "https://proxy.example.com",
        "http://proxy.example.com",
    ]
    assert _settings(SHOPIFY_APP_URL="https://proxy.example.com/").allowed_origins() == [
        "https://proxy.example.com"
    ]
