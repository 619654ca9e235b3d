from incidesk.config import Settings, _parse_bool, _parse_float


def test_parse_bool_true_values(monkeypatch) -> None:
    monkeypatch.setenv("FLAG", "yes")
    assert _parse_bool("FLAG", False) is True


def test_parse_bool_default(monkeypatch) -> None:
    monkeypatch.delenv("FLAG", raising=False)
    assert _parse_bool("FLAG", True) is True


def test_parse_float_invalid_uses_default(monkeypatch) -> None:
    monkeypatch.setenv("TIMEOUT", "soon")
    assert _parse_float("TIMEOUT", 40.0) == 40.0
    monkeypatch.setenv("TIMEOUT", "12.5")
    assert _parse_float("TIMEOUT", 40.0) == 12.5


def test_defaults(monkeypatch) -> None:
    for name in (
        "AI_PROVIDER", "INCIDESK_STORAGE_URL", "INCIDESK_ADMIN_PASSPHRASE",
        "GEMINI_MODEL", "AI_TIMEOUT_SECONDS", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.ai_provider == "auto"
    assert settings.storage_url == "sqlite:///./data/incidesk.db"
    assert settings.admin_passphrase == "admin"
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.ai_timeout_seconds == 40.0
    assert settings.log_level == "INFO"


def test_api_key_alias_for_gemini(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "legacy-key")

    assert Settings.from_env().gemini_api_key == "legacy-key"

    monkeypatch.setenv("GEMINI_API_KEY", "new-key")
    assert Settings.from_env().gemini_api_key == "new-key"


def test_json_logs_unset_means_auto(monkeypatch) -> None:
    monkeypatch.delenv("LOG_FORMAT_JSON", raising=False)
    assert Settings.from_env().json_logs is None

    monkeypatch.setenv("LOG_FORMAT_JSON", "false")
    assert Settings.from_env().json_logs is False
