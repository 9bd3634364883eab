"""YAML config loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from job_relay.notifications.telegram import TELEGRAM_MAX_LENGTH
from job_relay.notifications.templates import MIN_BUDGET


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5000


@dataclass
class TelegramConfig:
    bot_token: str = ""
    chat_id: str = ""
    parse_mode: str = "HTML"
    timeout_seconds: float = 10.0
    delay_between_messages: float = 1.0  # seconds between individual sends
    group_messages: bool = False
    silent: bool = False
    character_budget: int = 4000


@dataclass
class DatabaseConfig:
    url: str = ""  # empty = sqlite file under data_dir


@dataclass
class CollectorConfig:
    page_url: str = ""
    api_url: str = "http://localhost:5000/endpoint"
    content_selector: str = '[data-test="job-tile-list"]'
    refresh_interval_seconds: int = 300
    timeout_seconds: float = 10.0


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    data_dir: str = "data"
    log_dir: str = "logs"

    @property
    def database_url(self) -> str:
        return self.database.url or f"sqlite:///{Path(self.data_dir) / 'jobs.db'}"


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Copy config.example.yaml to config.yaml and fill in your settings."
        )

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig()

    # Server
    server_raw = raw.get("server", {})
    config.server = ServerConfig(
        host=server_raw.get("host", "0.0.0.0"),
        port=int(os.environ.get("APP_PORT", server_raw.get("port", 5000))),
    )

    # Telegram (env vars take precedence for secrets)
    tg_raw = raw.get("telegram", {})
    config.telegram = TelegramConfig(
        bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", tg_raw.get("bot_token", "")),
        chat_id=str(os.environ.get("TELEGRAM_CHAT_ID", tg_raw.get("chat_id", ""))),
        parse_mode=tg_raw.get("parse_mode", "HTML"),
        timeout_seconds=tg_raw.get("timeout_seconds", 10.0),
        delay_between_messages=tg_raw.get("delay_between_messages", 1.0),
        group_messages=tg_raw.get("group_messages", False),
        silent=tg_raw.get("silent", False),
        character_budget=tg_raw.get("character_budget", 4000),
    )

    # Database
    db_raw = raw.get("database", {})
    config.database = DatabaseConfig(
        url=os.environ.get("DATABASE_URL", db_raw.get("url", "")),
    )

    # Collector
    collector_raw = raw.get("collector", {})
    config.collector = CollectorConfig(
        page_url=collector_raw.get("page_url", ""),
        api_url=collector_raw.get("api_url", "http://localhost:5000/endpoint"),
        content_selector=collector_raw.get("content_selector", '[data-test="job-tile-list"]'),
        refresh_interval_seconds=collector_raw.get("refresh_interval_seconds", 300),
        timeout_seconds=collector_raw.get("timeout_seconds", 10.0),
    )

    config.data_dir = raw.get("data_dir", "data")
    config.log_dir = raw.get("log_dir", "logs")

    return config


def validate_config(config: AppConfig) -> list[str]:
    """Return list of validation warnings (empty = OK)."""
    warnings = []

    if not config.telegram.bot_token:
        warnings.append("No Telegram bot token configured - notifications will fail")

    if not config.telegram.chat_id:
        warnings.append("No Telegram chat id configured - notifications will fail")

    if config.telegram.character_budget > TELEGRAM_MAX_LENGTH:
        warnings.append(
            f"character_budget {config.telegram.character_budget} exceeds Telegram's "
            f"{TELEGRAM_MAX_LENGTH} limit - it will be capped"
        )
    elif config.telegram.character_budget < MIN_BUDGET:
        warnings.append(
            f"character_budget {config.telegram.character_budget} is below the minimum of "
            f"{MIN_BUDGET} - messages cannot be formatted"
        )

    if config.telegram.delay_between_messages < 0:
        warnings.append("delay_between_messages is negative - treating as 0")

    if not config.collector.page_url:
        warnings.append("No collector page_url configured - --collect will have nothing to poll")

    return warnings


def find_config(explicit: Optional[str] = None) -> str:
    """Resolve the config path: explicit argument, then JOB_RELAY_CONFIG, then config.yaml."""
    return explicit or os.environ.get("JOB_RELAY_CONFIG", "config.yaml")
