import pytest

from plugin_copy_proxy.config import Settings
from plugin_copy_proxy.errors import ConfigurationError, UpstreamError


def test_key_accepted_from_legacy_env_name(monkeypatch) -> None:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("CLAUDE_API_KEY", "legacy-key")

    settings = Settings(_env_file=None)

    assert settings.require_api_key() == "legacy-key"


def test_missing_key_raises_configuration_error() -> None:
    settings = Settings(ANTHROPIC_API_KEY="   ", _env_file=None)

    with pytest.raises(ConfigurationError) as exc_info:
        settings.require_api_key()

    assert exc_info.value.status_code == 500
    assert exc_info.value.as_payload() == {
        "error": "Configuration error",
        "message": "API key not configured on server",
    }


def test_specialties_keep_declared_order() -> None:
    settings = Settings(BATCH_SPECIALTIES=" spine, ,cardiac,general ", _env_file=None)
    assert settings.specialties() == ["spine", "cardiac", "general"]


def test_default_specialty_order() -> None:
    settings = Settings(_env_file=None)
    assert settings.specialties()[:3] == ["general", "cardiac", "emergency"]
    assert len(settings.specialties()) == 10


@pytest.mark.parametrize(
    ("status", "fragment"),
    [
        (401, "Authentication failed"),
        (429, "Rate limit exceeded"),
        (503, "temporarily unavailable"),
        (400, "request failed"),
    ],
)
def test_upstream_error_messages(status: int, fragment: str) -> None:
    error = UpstreamError(status, details={"x": 1})
    assert fragment in error.message
    assert error.as_payload()["details"] == {"x": 1}
    assert error.as_payload()["status"] == status
