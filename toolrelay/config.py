"""
toolrelay - Configuration

Environment-driven settings for logging, observability and the
auto-install helper server.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .core.models import ToolUseMode


DEFAULT_AUTO_INSTALL_SERVER_NAME = "@cherry/mcp-auto-install"
DEFAULT_AUTO_INSTALL_PROVIDER = "CherryAI"


def _is_truthy(value: Optional[str], default: bool = False) -> bool:
    """Check if environment variable is truthy."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_tool_use_mode(value: Optional[str] = None) -> ToolUseMode:
    """
    Parse the tool use mode.

    TOOLRELAY_TOOL_USE_MODE must be one of: function, prompt. Read on each
    call and not cached in Settings.
    """
    raw = value if value is not None else os.getenv("TOOLRELAY_TOOL_USE_MODE", "function")
    mode = raw.lower().strip()
    if mode == "function":
        return ToolUseMode.FUNCTION
    if mode == "prompt":
        return ToolUseMode.PROMPT
    raise ValueError("Invalid TOOLRELAY_TOOL_USE_MODE. Use one of: function, prompt")


@dataclass
class Settings:
    """Runtime settings."""
    log_level: str = "INFO"
    log_format: str = "json"
    auto_install_server_name: str = DEFAULT_AUTO_INSTALL_SERVER_NAME
    auto_install_provider: str = DEFAULT_AUTO_INSTALL_PROVIDER
    metrics_enabled: bool = True
    tracing_enabled: bool = True

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        log_format = os.getenv("LOG_FORMAT", "json").lower().strip()
        if log_format not in {"json", "text"}:
            raise ValueError("Invalid LOG_FORMAT. Use one of: json, text")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper().strip(),
            log_format=log_format,
            auto_install_server_name=os.getenv(
                "TOOLRELAY_AUTO_INSTALL_SERVER", DEFAULT_AUTO_INSTALL_SERVER_NAME
            ),
            auto_install_provider=os.getenv(
                "TOOLRELAY_AUTO_INSTALL_PROVIDER", DEFAULT_AUTO_INSTALL_PROVIDER
            ),
            metrics_enabled=_is_truthy(os.getenv("TOOLRELAY_METRICS_ENABLED"), default=True),
            tracing_enabled=_is_truthy(os.getenv("TOOLRELAY_TRACING_ENABLED"), default=True),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings, reading the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (for testing)."""
    global _settings
    _settings = None
