"""Client configuration."""

from soly_client.config.settings import ClientSettings, get_settings

__all__ = ["ClientSettings", "get_settings"]
