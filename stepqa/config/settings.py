"""Configuration settings and loading."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Annotated, Any

import yaml
from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict, SettingsError

from stepqa.core.models import FailFastScope
from stepqa.errors import ConfigValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("stepqa.yaml", "stepqa.yml")

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class QAConfig(BaseSettings):
    """Configuration for a stepqa run.

    ``env`` seeds the run's Environment State; put credentials there,
    typically as ``${VAR}`` references to process environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="STEPQA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    timeout: float = 30.0
    fail_fast: bool = False
    fail_fast_scope: FailFastScope = FailFastScope.SUITE
    fail_on_status_code: bool = True
    fixtures_dir: str = "fixtures"
    login_path: str = "/auth/login"
    report_dir: str = "reports"
    report_formats: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["console"])
    verbose: bool = False
    env: dict[str, Any] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("report_formats", mode="before")
    @classmethod
    def validate_report_formats(cls, v: list[str] | str) -> list[str]:
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",") if part.strip()]
        valid = {"console", "json"}
        invalid = set(v) - valid
        if invalid:
            raise ValueError(f"Invalid report formats: {invalid}. Valid: {valid}")
        return v


def resolve_env_vars(value: Any) -> Any:
    """Substitute ``${VAR}`` and ``${VAR:-default}`` from the process environment.

    Unset variables without a default resolve to None when they make up the
    whole string, so a missing credential stays detectably missing.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env_vars(v) for v in value]
    if not isinstance(value, str):
        return value

    whole = _ENV_VAR_PATTERN.fullmatch(value)
    if whole:
        name, default = whole.group(1), whole.group(2)
        return os.environ.get(name, default)

    def _replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        return os.environ.get(name, default or "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def find_config_file(start: str | Path | None = None) -> Path | None:
    directory = Path(start) if start else Path.cwd()
    for name in DEFAULT_CONFIG_FILES:
        candidate = directory / name
        if candidate.exists():
            return candidate
    return None


def load_config(
    config_path: str | Path | None = None,
    dotenv_path: str | Path | None = None,
    **overrides: Any,
) -> QAConfig:
    """Load configuration from file and environment.

    Priority: overrides > STEPQA_* env vars > config file > defaults.
    A ``.env`` file is loaded into the process environment first, so
    ``${VAR}`` references in the config file can point at it.

    Raises:
        ConfigValidationError: If the file cannot be parsed or a value is invalid.
    """
    load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env")

    config_data: dict[str, Any] = {}
    path = Path(config_path) if config_path is not None else find_config_file()

    if path is not None:
        if not path.exists():
            raise ConfigValidationError(f"Config file not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {path}: {e}", cause=e) from e
        if not isinstance(config_data, dict):
            raise ConfigValidationError(f"Config file {path} must contain a mapping")
        logger.debug(f"Loaded config file {path}")

    config_data = resolve_env_vars(config_data)
    for key in _env_overridden_fields():
        if config_data.pop(key, None) is not None:
            logger.debug(f"STEPQA_{key.upper()} overrides '{key}' from the config file")
    config_data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return QAConfig(**config_data)
    except (ValidationError, SettingsError) as e:
        raise ConfigValidationError(f"Invalid configuration: {e}", cause=e) from e


def _env_overridden_fields() -> list[str]:
    """Fields set through a ``STEPQA_*`` environment variable.

    Init kwargs rank above environment variables in pydantic-settings, so
    these keys are left out of the file data and the settings' own env
    source parses them.
    """
    prefix = QAConfig.model_config.get("env_prefix", "")
    environ = {key.upper() for key in os.environ}
    return [name for name in QAConfig.model_fields if f"{prefix}{name}".upper() in environ]
