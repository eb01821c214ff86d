"""CompeteHub Notifier — Configuration Loader.

Loads and validates application configuration from config/settings.yaml.
Resolves environment variables referenced via ${VAR_NAME} syntax, with
optional defaults via ${VAR_NAME:-default}. Uses frozen dataclasses for
type-safe configuration access.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Path Constants ────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

# ── Environment Variable Pattern ─────────────────────────
# ${NAME} is required; ${NAME:-fallback} falls back when unset or empty
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?}")

# ── Defaults ──────────────────────────────────────────────
DEFAULT_TARGET_URL = "https://www.competehub.dev/zh/competitions?page=1&sort=recently-launched"
DEFAULT_COMPETITION_PAGE_BASE = "https://www.competehub.dev/competitions/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


# ═══════════════════════════════════════════════════════════
# Configuration Dataclasses
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ScraperConfig:
    """Configuration for fetching the competitions listing page."""

    target_url: str = DEFAULT_TARGET_URL
    competition_page_base: str = DEFAULT_COMPETITION_PAGE_BASE
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 30.0
    scan_interval_seconds: int = 600
    debug_dump: bool = False


@dataclass(frozen=True)
class TelegramConfig:
    """Configuration for Telegram notifications."""

    bot_token: str = ""
    chat_id: str = ""
    max_message_length: int = 4096
    send_delay_seconds: float = 0.1

    @property
    def is_configured(self) -> bool:
        """Whether both the bot token and the chat id are set."""
        return bool(self.bot_token and self.chat_id)


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for the seen-marker key/value store."""

    enabled: bool = True
    path: str = "data/competehub.db"
    seen_ttl_days: int = 90


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the inbound HTTP surface."""

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration container."""

    scraper: ScraperConfig
    telegram: TelegramConfig
    store: StoreConfig
    server: ServerConfig
    log_level: str = "INFO"


# ═══════════════════════════════════════════════════════════
# YAML Loading & Environment Variable Resolution
# ═══════════════════════════════════════════════════════════


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${VAR_NAME} and ${VAR_NAME:-default} references.

    Args:
        value: A string, dict, list, or primitive from parsed YAML.

    Returns:
        The same structure with all placeholders replaced.

    Raises:
        ValueError: If a required environment variable is not set.
    """
    if isinstance(value, str):
        def _substitute(match: re.Match[str]) -> str:
            var_name, default = match.group(1), match.group(2)
            env_value = os.environ.get(var_name)
            if default is not None:
                return env_value if env_value else default
            if env_value is None:
                raise ValueError(
                    f"Environment variable '${{{var_name}}}' is required but not set. "
                    f"Add it to your .env file or export it in your shell."
                )
            return env_value

        return ENV_VAR_PATTERN.sub(_substitute, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If the YAML file does not exist.
        ValueError: If the file is empty.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    logger.debug("Loaded configuration from %s", path)
    return data


def _to_bool(value: Any) -> bool:
    """Interpret YAML/env booleans, including strings like "false" or "0"."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# ═══════════════════════════════════════════════════════════
# Dataclass Builders
# ═══════════════════════════════════════════════════════════


def _build_scraper_config(data: dict[str, Any]) -> ScraperConfig:
    """Build a ScraperConfig from the 'scraper' section of settings.yaml."""
    _validate_keys(data, ["target_url", "competition_page_base"], "scraper")

    return ScraperConfig(
        target_url=data["target_url"] or DEFAULT_TARGET_URL,
        competition_page_base=data["competition_page_base"] or DEFAULT_COMPETITION_PAGE_BASE,
        user_agent=data.get("user_agent") or DEFAULT_USER_AGENT,
        timeout_seconds=float(data.get("timeout_seconds", 30)),
        scan_interval_seconds=int(data.get("scan_interval_seconds", 600)),
        debug_dump=_to_bool(data.get("debug_dump", False)),
    )


def _build_telegram_config(data: dict[str, Any]) -> TelegramConfig:
    """Build a TelegramConfig from the 'telegram' section of settings.yaml.

    Missing credentials are allowed: notification is then skipped at
    send time rather than failing configuration.
    """
    _validate_keys(data, ["bot_token", "chat_id"], "telegram")

    max_len = int(data.get("max_message_length", 4096))
    if max_len <= 0:
        raise ValueError(f"telegram.max_message_length must be positive, got {max_len}")

    return TelegramConfig(
        bot_token=str(data["bot_token"] or ""),
        chat_id=str(data["chat_id"] or ""),
        max_message_length=max_len,
        send_delay_seconds=float(data.get("send_delay_seconds", 0.1)),
    )


def _build_store_config(data: dict[str, Any]) -> StoreConfig:
    """Build a StoreConfig from the 'store' section of settings.yaml."""
    _validate_keys(data, ["path"], "store")

    return StoreConfig(
        enabled=_to_bool(data.get("enabled", True)),
        path=data["path"],
        seen_ttl_days=int(data.get("seen_ttl_days", 90)),
    )


def _build_server_config(data: dict[str, Any]) -> ServerConfig:
    """Build a ServerConfig from the 'server' section of settings.yaml."""
    return ServerConfig(
        host=str(data.get("host", "0.0.0.0")),
        port=int(data.get("port", 8080)),
    )


def _validate_keys(data: dict[str, Any], required: list[str], section: str) -> None:
    """Validate that all required keys exist in a config section.

    Raises:
        ValueError: If any required key is missing.
    """
    missing = [key for key in required if key not in data]
    if missing:
        raise ValueError(
            f"Missing required configuration keys in '{section}': {', '.join(missing)}"
        )


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def load_config(
    settings_path: Path | None = None,
    env_path: Path | None = None,
) -> AppConfig:
    """Load the complete application configuration.

    Loads settings.yaml, resolves environment variables, validates all
    required fields, and returns a typed AppConfig instance.

    Args:
        settings_path: Override path to settings.yaml. Defaults to config/settings.yaml.
        env_path: Override path to .env file. Defaults to project root .env.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If required fields are missing or env vars are unset.
    """
    env_file = env_path or (PROJECT_ROOT / ".env")
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)

    raw_settings = _load_yaml(settings_path or SETTINGS_PATH)
    settings = _resolve_env_vars(raw_settings)

    _validate_keys(settings, ["scraper", "telegram", "store"], "settings")

    config = AppConfig(
        scraper=_build_scraper_config(settings["scraper"]),
        telegram=_build_telegram_config(settings["telegram"]),
        store=_build_store_config(settings["store"]),
        server=_build_server_config(settings.get("server") or {}),
        log_level=str((settings.get("logging") or {}).get("level", "INFO")),
    )

    logger.info("Configuration loaded successfully")
    logger.debug("Target URL: %s", config.scraper.target_url)
    logger.debug("Store: %s (enabled=%s)", config.store.path, config.store.enabled)
    if not config.telegram.is_configured:
        logger.warning("Telegram credentials missing; notifications will be skipped")

    return config
