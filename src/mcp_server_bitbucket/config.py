"""Process configuration for MCP Bitbucket Server.

Configuration is read once at startup from environment variables (optionally
seeded from a ``.env`` file) into an immutable ``ServerConfig`` that is passed
explicitly to every component that needs it.

Environment variables:
    BITBUCKET_WORKSPACE         Default workspace (required)
    BITBUCKET_USERNAME          Bitbucket username (required)
    BITBUCKET_APP_PASSWORD      App password (required)
    BITBUCKET_DEFAULT_REPO      Default repository slug
    BITBUCKET_BASE_URL          API base URL override
    BITBUCKET_TASKS_COLLECTION  Task collection segment under a pull request
    LOG_LEVEL                   debug | info | warn | error (default: info)
"""

import logging
import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from dotenv import dotenv_values, load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from .bitbucket.auth import Credentials
from .bitbucket.client import DEFAULT_BASE_URL, ClientConfig
from .bitbucket.errors import configuration_error
from .bitbucket.resources import DEFAULT_TASKS_COLLECTION

logger = logging.getLogger(__name__)

LogLevel = Literal["debug", "info", "warn", "error"]

_REQUIRED_VARIABLES = {
    "workspace": "BITBUCKET_WORKSPACE",
    "username": "BITBUCKET_USERNAME",
    "app_password": "BITBUCKET_APP_PASSWORD",
}

_LOG_LEVEL_NAMES = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
}


class ServerConfig(BaseModel):
    """Validated, immutable server configuration."""

    model_config = ConfigDict(frozen=True)

    workspace: str
    username: str
    app_password: str
    default_repo: Optional[str] = None
    log_level: LogLevel = "info"
    base_url: str = DEFAULT_BASE_URL
    tasks_collection: str = DEFAULT_TASKS_COLLECTION

    @field_validator("workspace", "username", "app_password")
    @classmethod
    def _not_blank(cls, value: str, info: ValidationInfo) -> str:
        if not value or not value.strip():
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} cannot be empty")
        return value.strip()

    @field_validator("default_repo")
    @classmethod
    def _blank_repo_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def logging_level(self) -> str:
        """The ``logging`` module level name for ``log_level``."""
        return _LOG_LEVEL_NAMES[self.log_level]

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            credentials=Credentials(username=self.username, app_password=self.app_password),
            base_url=self.base_url,
        )


def _fill_blank_variables(env_file: Path) -> None:
    """Replace empty or whitespace-only variables with values from ``env_file``."""
    for key, value in dotenv_values(env_file).items():
        current = os.environ.get(key)
        if current is not None and not current.strip() and value and value.strip():
            os.environ[key] = value
            logger.debug(f"Filled blank {key} from {env_file}")


def load_environment_variables(env_file: Path | None = None) -> list[Path]:
    """Load ``.env`` files without overriding variables already set.

    Order of precedence:
    1. Real environment variables (unless empty or whitespace-only)
    2. Explicit ``env_file`` (if provided)
    3. ``.env`` in the current working directory

    MCP clients commonly pass unset credentials through as empty strings, so
    blank variables are filled from the first file that defines them.

    Returns:
        The files that were loaded.
    """
    candidates = []
    if env_file is not None:
        candidates.append(env_file)
    candidates.append(Path.cwd() / ".env")

    loaded_files = []
    for candidate in candidates:
        if candidate.exists() and candidate not in loaded_files:
            _fill_blank_variables(candidate)
            load_dotenv(candidate, override=False)
            loaded_files.append(candidate)
            logger.debug(f"Loaded environment variables from {candidate}")

    if env_file is not None and env_file not in loaded_files:
        logger.warning(f"Environment file {env_file} not found")

    return loaded_files


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Build a ``ServerConfig`` from environment variables.

    Raises:
        BitbucketError: kind ``configuration`` if a required variable is
            missing or a value is invalid.
    """
    env = os.environ if environ is None else environ

    for field_name, variable in _REQUIRED_VARIABLES.items():
        if not env.get(variable, "").strip():
            raise configuration_error(f"{variable} environment variable is required")

    values = {field_name: env[variable] for field_name, variable in _REQUIRED_VARIABLES.items()}
    values["default_repo"] = env.get("BITBUCKET_DEFAULT_REPO")
    values["log_level"] = (env.get("LOG_LEVEL") or "info").strip().lower()
    if env.get("BITBUCKET_BASE_URL"):
        values["base_url"] = env["BITBUCKET_BASE_URL"]
    if env.get("BITBUCKET_TASKS_COLLECTION"):
        values["tasks_collection"] = env["BITBUCKET_TASKS_COLLECTION"]

    try:
        return ServerConfig(**values)
    except ValidationError as e:
        details = "; ".join(error["msg"] for error in e.errors())
        raise configuration_error(f"Invalid configuration: {details}") from e
