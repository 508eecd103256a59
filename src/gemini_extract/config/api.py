"""Public API for the configuration system.

Precedence: Programmatic > Environment (including a loaded .env file) >
Defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any

import dotenv
from pydantic import ValidationError

from gemini_extract.exceptions import ConfigurationError

from .schema import ExtractSettings
from .types import ConfigOrigin, FrozenConfig

log = logging.getLogger(__name__)


def _env_fields() -> dict[str, str]:
    prefix = ExtractSettings.model_config.get("env_prefix", "")
    return {f"{prefix}{name}".upper(): name for name in ExtractSettings.model_fields}


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    use_env_file: str | Path | None = None,
) -> FrozenConfig:
    """Resolve configuration from all sources and freeze it.

    Args:
        programmatic: Overrides with the highest precedence. Unknown keys are
            ignored.
        use_env_file: Optional path to a .env file loaded before reading the
            environment. Values already in the environment are not overridden.
            When omitted, a ``.env`` in the working directory is used if present.

    Returns:
        FrozenConfig with every field resolved and its origin recorded.

    Raises:
        ConfigurationError: If the env file is missing or any value is invalid.
    """
    if use_env_file is not None:
        env_path = Path(use_env_file)
        if not env_path.is_file():
            raise ConfigurationError(f"Environment file not found: {env_path}")
        dotenv.load_dotenv(env_path, override=False)
    else:
        dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True), override=False)

    overrides = {
        key: value
        for key, value in (programmatic or {}).items()
        if key in ExtractSettings.model_fields
    }

    try:
        settings = ExtractSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    env_set = {field for var, field in _env_fields().items() if var in os.environ}
    origin: dict[str, ConfigOrigin] = {}
    for field in ExtractSettings.model_fields:
        if field in overrides:
            origin[field] = "programmatic"
        elif field in env_set:
            origin[field] = "env"
        else:
            origin[field] = "default"

    config = FrozenConfig(**settings.to_dict(), origin=origin)
    log.debug("Resolved configuration: %s", config)
    return config


def check_environment() -> dict[str, str]:
    """Return the GEMINI_* variables currently set, with secrets redacted."""
    summary = {}
    for env_var in _env_fields():
        if env_var in os.environ:
            summary[env_var] = (
                "<redacted>" if "API_KEY" in env_var else os.environ[env_var]
            )
    return summary
