from uptime_proxy.config import DEFAULT_API_URL, Settings, load_settings


def test_defaults_without_environment(monkeypatch):
    for name in (
        "UPTIMEROBOT_API_KEY",
        "UPTIMEROBOT_API_KEY_FILE",
        "UPTIMEROBOT_API_URL",
        "CACHE_PATH",
        "CACHE_TTL_SECONDS",
        "STALE_THRESHOLD_SECONDS",
        "CORS_ORIGINS",
        "UPSTREAM_VERIFY_SSL",
        "PROXY_CONNECT_TIMEOUT_SECONDS",
        "PROXY_TIMEOUT_SECONDS",
        "FETCH_CONNECT_TIMEOUT_SECONDS",
        "FETCH_TIMEOUT_SECONDS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings == Settings()
    assert settings.api_url == DEFAULT_API_URL
    assert settings.cache_ttl_seconds == 300.0
    assert settings.stale_threshold_seconds == 600.0
    assert (settings.proxy_connect_timeout_seconds, settings.proxy_timeout_seconds) == (3.0, 5.0)
    assert (settings.fetch_connect_timeout_seconds, settings.fetch_timeout_seconds) == (5.0, 10.0)
    assert settings.cors_origins == ["*"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("UPTIMEROBOT_API_KEY", " ur9-feedface0000 ")
    monkeypatch.setenv("CACHE_PATH", "/tmp/cache.json")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("STALE_THRESHOLD_SECONDS", "not-a-number")
    monkeypatch.setenv("UPSTREAM_VERIFY_SSL", "off")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.api_key == "ur9-feedface0000"
    assert settings.cache_path == "/tmp/cache.json"
    assert settings.cache_ttl_seconds == 60.0
    assert settings.stale_threshold_seconds == 600.0
    assert settings.upstream_verify_ssl is False
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.log_level == "DEBUG"


def test_api_key_can_come_from_secret_file(monkeypatch, tmp_path):
    secret = tmp_path / "uptimerobot_key"
    secret.write_text("u77-0123456789abcdef\n", encoding="utf-8")
    monkeypatch.delenv("UPTIMEROBOT_API_KEY", raising=False)
    monkeypatch.setenv("UPTIMEROBOT_API_KEY_FILE", str(secret))

    assert load_settings().api_key == "u77-0123456789abcdef"


def test_unreadable_secret_file_falls_back_to_empty(monkeypatch, tmp_path):
    monkeypatch.delenv("UPTIMEROBOT_API_KEY", raising=False)
    monkeypatch.setenv("UPTIMEROBOT_API_KEY_FILE", str(tmp_path / "missing"))

    assert load_settings().api_key == ""


def test_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")

    assert load_settings().log_level == "INFO"
