from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib

from fx_journal.metrics.calendar import WEEK_START_SUNDAY, WEEK_STARTS

CONFIG_ENV_VAR = "FX_JOURNAL_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/app.toml")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppSettings:
    db_path: Path
    host: str
    port: int
    reload: bool


@dataclass(frozen=True)
class CalendarSettings:
    week_start: str


@dataclass(frozen=True)
class LoggingSettings:
    level: str


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings
    calendar: CalendarSettings
    logging: LoggingSettings


def load_app_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env
    config_path = Path(path or env.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    raw: Mapping[str, Any] = {}
    if config_path.exists():
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))

    app_raw = _section(raw, "app")
    calendar_raw = _section(raw, "calendar")
    logging_raw = _section(raw, "logging")

    app = AppSettings(
        db_path=Path(app_raw.get("db_path", "data/fx_journal.sqlite")),
        host=str(app_raw.get("host", "127.0.0.1")),
        port=_int_or_default(app_raw.get("port"), 8000),
        reload=bool(app_raw.get("reload", False)),
    )

    week_start = str(calendar_raw.get("week_start", WEEK_START_SUNDAY)).strip().lower()
    if week_start not in WEEK_STARTS:
        week_start = WEEK_START_SUNDAY

    level = str(logging_raw.get("level", "INFO")).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"

    return AppConfig(
        app=app,
        calendar=CalendarSettings(week_start=week_start),
        logging=LoggingSettings(level=level),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _int_or_default(value: Any, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
