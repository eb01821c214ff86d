"""Settings loading and environment resolution."""

import pytest

from src.config import DEFAULT_TARGET_URL, load_config

SETTINGS = """
scraper:
  target_url: ${TARGET_URL:-}
  competition_page_base: ${COMPETITION_PAGE_BASE:-https://competehub.test/competitions/}
  scan_interval_seconds: 300
  debug_dump: ${SCRAPER_DEBUG_DUMP:-false}
telegram:
  bot_token: ${TELEGRAM_BOT_TOKEN:-}
  chat_id: ${TELEGRAM_CHAT_ID:-}
store:
  enabled: ${SEEN_STORE_ENABLED:-true}
  path: data/test.db
server:
  port: 9000
logging:
  level: DEBUG
"""

ENV_VARS = (
    "TARGET_URL",
    "COMPETITION_PAGE_BASE",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "SEEN_STORE_ENABLED",
    "SCRAPER_DEBUG_DUMP",
    "REQUIRED_SECRET",
)


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    def write(text=SETTINGS):
        path = tmp_path / "settings.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    return write


def _load(path):
    return load_config(settings_path=path, env_path=path.parent / ".env")


def test_defaults_apply_when_env_is_empty(settings_file):
    config = _load(settings_file())

    assert config.scraper.target_url == DEFAULT_TARGET_URL
    assert config.scraper.competition_page_base == "https://competehub.test/competitions/"
    assert config.scraper.scan_interval_seconds == 300
    assert config.scraper.debug_dump is False
    assert config.telegram.is_configured is False
    assert config.telegram.max_message_length == 4096
    assert config.store.enabled is True
    assert config.store.seen_ttl_days == 90
    assert config.server.port == 9000
    assert config.log_level == "DEBUG"


def test_environment_overrides(settings_file, monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "-100200")
    monkeypatch.setenv("SEEN_STORE_ENABLED", "false")
    monkeypatch.setenv("SCRAPER_DEBUG_DUMP", "true")

    config = _load(settings_file())

    assert config.telegram.bot_token == "123:abc"
    assert config.telegram.chat_id == "-100200"
    assert config.telegram.is_configured is True
    assert config.store.enabled is False
    assert config.scraper.debug_dump is True


def test_required_variable_must_be_set(settings_file):
    path = settings_file(SETTINGS.replace("${TELEGRAM_BOT_TOKEN:-}", "${REQUIRED_SECRET}"))

    with pytest.raises(ValueError, match="REQUIRED_SECRET"):
        _load(path)


def test_missing_section_is_rejected(settings_file):
    path = settings_file("scraper:\n  target_url: x\n  competition_page_base: y\n")

    with pytest.raises(ValueError, match="telegram"):
        _load(path)


def test_non_positive_message_length_is_rejected(settings_file):
    path = settings_file(SETTINGS.replace(
        "chat_id: ${TELEGRAM_CHAT_ID:-}",
        "chat_id: ${TELEGRAM_CHAT_ID:-}\n  max_message_length: 0",
    ))

    with pytest.raises(ValueError, match="max_message_length"):
        _load(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        _load(tmp_path / "absent.yaml")
