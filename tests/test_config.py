"""Tests for shared configuration helpers."""

from shared import config


def test_port_defaults_when_unset(monkeypatch) -> None:
    monkeypatch.delenv("PORT", raising=False)

    assert config.port() == 5000


def test_port_reads_env(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8080")

    assert config.port() == 8080


def test_port_falls_back_on_garbage(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "eighty")

    assert config.port() == 5000


def test_api_prefix_defaults_to_api(monkeypatch) -> None:
    monkeypatch.delenv("API_PREFIX", raising=False)

    assert config.api_prefix() == "/api"


def test_api_prefix_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("API_PREFIX", "v1/")

    assert config.api_prefix() == "/v1"


def test_api_prefix_can_be_disabled(monkeypatch) -> None:
    monkeypatch.setenv("API_PREFIX", "")

    assert config.api_prefix() == ""


def test_seed_source_url_default(monkeypatch) -> None:
    monkeypatch.delenv("SEED_SOURCE_URL", raising=False)

    assert config.seed_source_url() == "https://s3.amazonaws.com/roxiler.com/product_transaction.json"


def test_store_timeout_ignores_non_positive(monkeypatch) -> None:
    monkeypatch.setenv("STORE_TIMEOUT_SECONDS", "-1")

    assert config.store_timeout_seconds() == 10.0


def test_log_level_unknown_value_defaults_to_info(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert config.log_level() == "INFO"


def test_cors_allow_origins_defaults_in_dev(monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)

    assert config.cors_allow_origins() == ["http://localhost:3000", "http://127.0.0.1:3000"]


def test_cors_allow_origins_parses_comma_separated_list(monkeypatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.com, https://b.com")

    assert config.cors_allow_origins() == ["https://a.com", "https://b.com"]


def test_load_settings_selects_store_when_configured(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role")
    monkeypatch.setenv("TRANSACTIONS_TABLE", "sales")

    settings = config.load_settings()

    assert settings.store_configured is True
    assert settings.transactions_table == "sales"


def test_load_settings_without_store(monkeypatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)

    assert config.load_settings().store_configured is False
