"""Configuration loading and validation for PromptTracker suites.

Main components:
- ConfigLoader: Load and validate suite YAML and recorded responses
- resolve_runtime_settings: Merge CLI flags with PROMPT_TRACKER_* variables
- Environment variable substitution (${VAR_NAME} pattern)
"""

from prompt_tracker.config.env_loader import (
    get_env_var,
    load_env_file,
    substitute_env_vars,
)
from prompt_tracker.config.loader import ConfigLoader, resolve_runtime_settings

__all__ = [
    "ConfigLoader",
    "resolve_runtime_settings",
    "substitute_env_vars",
    "get_env_var",
    "load_env_file",
]
