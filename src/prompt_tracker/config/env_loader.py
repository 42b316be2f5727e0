"""Environment variable handling for suite files.

Suite YAML may reference environment variables as ``${VAR_NAME}``. Values
are resolved from the process environment, optionally seeded from a
``.env`` file.
"""

import os
import re
from pathlib import Path

from dotenv import load_dotenv

from prompt_tracker.lib.errors import ConfigError
from prompt_tracker.lib.logging_config import get_logger

logger = get_logger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(text: str) -> str:
    """Replace ``${VAR_NAME}`` references with environment values.

    Args:
        text: Raw text, usually the contents of a YAML file

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is not set
    """

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = os.environ.get(name)
        if value is None:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return value

    return _ENV_VAR_PATTERN.sub(replace, text)


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable, or ``default`` when unset."""
    return os.environ.get(name, default)


def load_env_file(path: str | Path | None = None, override: bool = False) -> bool:
    """Load variables from a ``.env`` file into the environment.

    Args:
        path: File to load; defaults to ``.env`` in the working directory
        override: Replace variables that are already set

    Returns:
        True if a file was found and loaded
    """
    env_path = Path(path) if path is not None else Path.cwd() / ".env"
    if not env_path.is_file():
        logger.debug(f"No .env file at {env_path}")
        return False
    loaded = load_dotenv(env_path, override=override)
    logger.debug(f"Loaded environment from {env_path}")
    return loaded
