import pytest
from pydantic import ValidationError

from soly_client.config import ClientSettings


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    monkeypatch.delenv("SOLY_CLIENT_CONFIG_FILE", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


def test_defaults_match_reconnection_policy():
    settings = ClientSettings()

    assert settings.session_key == "actor"
    assert settings.max_reconnect_attempts == 5
    assert settings.reconnect_base_delay_ms == 1000
    assert settings.reconnect_max_delay_ms == 10000
    assert settings.error_debounce_ms == 2000
    assert settings.schedule_settle_ms == 500
    assert settings.notification_cooldown_ms == 5000
    assert "failed to fetch" in settings.transport_failure_signatures
    assert len(settings.transport_failure_signatures) == 6
    assert settings.reconnect_query_keys == ["currentUserProfile"]
    assert settings.config_path is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SOLY_CLIENT_MAX_RECONNECT_ATTEMPTS", "3")
    monkeypatch.setenv("SOLY_CLIENT_LOG_LEVEL", "debug")
    monkeypatch.setenv("SOLY_CLIENT_TRANSPORT_FAILURE_SIGNATURES", '["Gateway Down", " "]')

    settings = ClientSettings()

    assert settings.max_reconnect_attempts == 3
    assert settings.log_level == "DEBUG"
    assert settings.transport_failure_signatures == ["gateway down"]


def test_yaml_config_file(monkeypatch, tmp_path):
    config_file = tmp_path / "client.yaml"
    config_file.write_text("app_name: Habits\nerror_debounce_ms: 750\nlog_level: warning\n", encoding="utf-8")
    monkeypatch.setenv("SOLY_CLIENT_CONFIG_FILE", str(config_file))

    settings = ClientSettings()

    assert settings.app_name == "Habits"
    assert settings.error_debounce_ms == 750
    assert settings.log_level == "WARNING"
    assert settings.config_path == config_file


def test_config_file_must_be_a_mapping(monkeypatch, tmp_path):
    config_file = tmp_path / "client.yaml"
    config_file.write_text("- not\n- a mapping\n", encoding="utf-8")
    monkeypatch.setenv("SOLY_CLIENT_CONFIG_FILE", str(config_file))

    with pytest.raises(ValueError):
        ClientSettings()


def test_rejects_empty_signature_list():
    with pytest.raises(ValidationError):
        ClientSettings(transport_failure_signatures=[])


def test_missing_explicit_config_file_fails_fast(monkeypatch, tmp_path):
    monkeypatch.setenv("SOLY_CLIENT_CONFIG_FILE", str(tmp_path / "absent.yaml"))

    with pytest.raises(FileNotFoundError):
        ClientSettings()


def test_unsupported_config_format_is_rejected(monkeypatch, tmp_path):
    config_file = tmp_path / "client.toml"
    config_file.write_text("app_name = 'Soly'\n", encoding="utf-8")
    monkeypatch.setenv("SOLY_CLIENT_CONFIG_FILE", str(config_file))

    with pytest.raises(ValueError):
        ClientSettings()


def test_user_config_sections_are_flattened(monkeypatch, tmp_path):
    user_dir = tmp_path / "xdg" / "soly"
    user_dir.mkdir(parents=True)
    config_file = user_dir / "client.yaml"
    config_file.write_text(
        "app_name: Soly\n"
        "reconnect:\n"
        "  max_reconnect_attempts: 2\n"
        "  reconnect_query_keys: [currentUserProfile, habits]\n"
        "notifications:\n"
        "  notification_cooldown_ms: 1000\n",
        encoding="utf-8",
    )

    settings = ClientSettings()

    assert settings.max_reconnect_attempts == 2
    assert settings.reconnect_query_keys == ["currentUserProfile", "habits"]
    assert settings.notification_cooldown_ms == 1000
    assert settings.config_path == config_file


def test_json_config_file(monkeypatch, tmp_path):
    config_file = tmp_path / "client.json"
    config_file.write_text('{"session_key": "backend", "reconnect": {"error_debounce_ms": 10}}', encoding="utf-8")
    monkeypatch.setenv("SOLY_CLIENT_CONFIG_FILE", str(config_file))

    settings = ClientSettings()

    assert settings.session_key == "backend"
    assert settings.error_debounce_ms == 10
