"""Client configuration loading and validation."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, Literal

import yaml
from pydantic import Field, NonNegativeInt, PositiveInt
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE_ENV = "SOLY_CLIENT_CONFIG_FILE"
CONFIG_SUFFIXES = frozenset({".yaml", ".yml", ".json"})
# Grouping sections accepted in config files; their keys are flattened.
CONFIG_SECTIONS = frozenset({"reconnect", "notifications"})
LOCAL_CONFIG_LOCATIONS: tuple[Path, ...] = (
    Path("./config/client.yaml"),
    Path("./config/client.yml"),
)

DEFAULT_TRANSPORT_FAILURE_SIGNATURES: tuple[str, ...] = (
    "actor not available",
    "failed to fetch",
    "canister rejected",
    "network error",
    "connection refused",
    "timeout",
)


class ClientSettings(BaseSettings):
    """Validated settings for the client runtime."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="SOLY_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Identity
    app_name: str = Field(
        default="Soly",
        description="Backend name shown in user-facing status messages.",
    )
    session_key: str = Field(
        default="actor",
        description="Cache key of the backend session resource.",
    )

    # Reconnection policy
    max_reconnect_attempts: PositiveInt = Field(
        default=5,
        description="Attempts per failure episode before giving up.",
    )
    reconnect_base_delay_ms: PositiveInt = Field(
        default=1000,
        description="Base delay (milliseconds) for reconnection backoff.",
    )
    reconnect_max_delay_ms: PositiveInt = Field(
        default=10000,
        description="Upper bound (milliseconds) for reconnection backoff.",
    )
    reconnect_jitter_ms: NonNegativeInt = Field(
        default=1000,
        description="Uniform random jitter (milliseconds) added to each backoff delay.",
    )
    error_debounce_ms: NonNegativeInt = Field(
        default=2000,
        description="Failures arriving this soon after an attempt started are ignored.",
    )
    schedule_settle_ms: NonNegativeInt = Field(
        default=500,
        description="Delay before a scheduled attempt fires, coalescing bursts of failures.",
    )
    rebuild_settle_ms: NonNegativeInt = Field(
        default=500,
        description="Wait after a session rebuild before checking whether it is populated.",
    )
    transport_failure_signatures: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRANSPORT_FAILURE_SIGNATURES),
        description="Lowercase substrings marking an error as a transport/session failure.",
    )
    reconnect_query_keys: list[str] = Field(
        default_factory=lambda: ["currentUserProfile"],
        description="Cached reads whose failures are fed into the reconnection entry point.",
    )

    # Status messages
    notification_cooldown_ms: NonNegativeInt = Field(
        default=5000,
        description="Minimum spacing (milliseconds) between two status messages of the same kind.",
    )
    success_message_ms: PositiveInt = Field(
        default=3000,
        description="Display duration of the reconnection success message.",
    )
    failure_message_ms: PositiveInt = Field(
        default=10000,
        description="Display duration of the terminal reconnection failure message.",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level for the client process.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("transport_failure_signatures", mode="after")
    @classmethod
    def _normalize_signatures(cls, value: list[str]) -> list[str]:
        signatures = [item.strip().lower() for item in value if item and item.strip()]
        if not signatures:
            raise ValueError("transport_failure_signatures must contain at least one entry")
        return signatures

    config_path: Path | None = Field(
        default=None,
        description="Resolved path to the on-disk config that seeded the settings.",
        exclude=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[ClientSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            cls._yaml_settings_source,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @staticmethod
    def _yaml_settings_source(settings_cls: type[ClientSettings] | None = None) -> Dict[str, Any]:
        explicit = os.getenv(CONFIG_FILE_ENV)
        if explicit:
            path = Path(explicit).expanduser()
            if not path.is_file():
                raise FileNotFoundError(f"{CONFIG_FILE_ENV} points at {path}, which does not exist")
            return ClientSettings._read_config(path)
        for path in _user_config_locations():
            if path.is_file():
                return ClientSettings._read_config(path)
        return {}

    @staticmethod
    def _read_config(path: Path) -> Dict[str, Any]:
        if path.suffix.lower() not in CONFIG_SUFFIXES:
            raise ValueError(f"Unsupported client config format {path.suffix!r} ({path}); use YAML or JSON")
        try:
            # JSON documents are valid YAML, so one parser covers both formats.
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise RuntimeError(f"Cannot read Soly client config {path}") from exc
        except yaml.YAMLError as exc:
            raise ValueError(f"Soly client config {path} is not valid YAML/JSON") from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(f"Soly client config {path} must be a mapping of setting names to values")
        values: Dict[str, Any] = {}
        for key, value in raw.items():
            if key in CONFIG_SECTIONS:
                if not isinstance(value, dict):
                    raise ValueError(f"Section {key!r} in {path} must be a mapping")
                values.update(value)
            else:
                values[key] = value
        values.setdefault("config_path", path)
        return values


def _user_config_locations() -> Iterable[Path]:
    config_home = os.getenv("XDG_CONFIG_HOME")
    base = Path(config_home).expanduser() if config_home else Path.home() / ".config"
    for name in ("client.yaml", "client.yml"):
        yield base / "soly" / name
    yield from LOCAL_CONFIG_LOCATIONS


@lru_cache()
def get_settings() -> ClientSettings:
    """Return memoized client settings."""

    return ClientSettings()
