"""YAML settings for the sentence-quiz command line."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sentence_quiz.exceptions import ConfigError
from sentence_quiz.models import Account

CONFIG_ENV = "SENTENCE_QUIZ_CONFIG"
DATABASE_ENV = "SENTENCE_QUIZ_DB"

DEFAULT_DATABASE = Path.home() / ".sentence_quiz.db"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class Settings:
    """Resolved runtime settings."""
    database: Path = DEFAULT_DATABASE
    log_level: str = DEFAULT_LOG_LEVEL
    accounts: list[Account] = field(default_factory=list)
    source_file: Path | None = None


def load_settings(
    source: str | Path | dict[str, Any] | None = None,
) -> Settings:
    """Load settings from a YAML file, YAML string or dictionary.

    With no source, the file named by ``$SENTENCE_QUIZ_CONFIG`` is used
    if set, otherwise defaults apply. ``$SENTENCE_QUIZ_DB`` always wins
    over the ``database`` key.

    Raises:
        ConfigError: If the content is not valid YAML or has bad fields
        FileNotFoundError: If the file does not exist
    """
    source_path: Path | None = None

    if source is None:
        env_path = os.environ.get(CONFIG_ENV)
        source = Path(env_path) if env_path else {}

    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or _is_file_path(source):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        with open(source_path, "r", encoding="utf-8") as f:
            data = _safe_load(f)
    else:
        data = _safe_load(source)

    settings = _parse_settings(data)
    settings.source_file = source_path

    env_db = os.environ.get(DATABASE_ENV)
    if env_db:
        settings.database = Path(env_db)
    return settings


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path rather than YAML content."""
    if "\n" in s or ": " in s:
        return False
    return s.endswith((".yaml", ".yml")) or "/" in s or "\\" in s


def _safe_load(stream: Any) -> dict[str, Any]:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML{line}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Settings root must be a mapping (dictionary)")
    return data


def _parse_settings(data: dict[str, Any]) -> Settings:
    settings = Settings()

    database = data.get("database")
    if database is not None:
        if not isinstance(database, str) or not database.strip():
            raise ConfigError("Field 'database' must be a non-empty string")
        settings.database = Path(database).expanduser()

    log_level = data.get("log_level")
    if log_level is not None:
        if not isinstance(log_level, str):
            raise ConfigError("Field 'log_level' must be a string")
        level = log_level.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(
                f"Field 'log_level' must be a logging level name, got {log_level!r}"
            )
        settings.log_level = level

    accounts = data.get("accounts", [])
    if not isinstance(accounts, list):
        raise ConfigError("Field 'accounts' must be a list")
    for i, entry in enumerate(accounts):
        if not isinstance(entry, dict):
            raise ConfigError(f"Account #{i + 1} must be a mapping")
        user_id = str(entry.get("id") or "").strip()
        if not user_id:
            raise ConfigError(f"Account #{i + 1}: Missing required field 'id'")
        password = entry.get("password")
        if password is None:
            raise ConfigError(
                f"Account #{i + 1}: Missing required field 'password'"
            )
        name = str(entry.get("name") or user_id)
        settings.accounts.append(Account(user_id, str(password), name))

    return settings
