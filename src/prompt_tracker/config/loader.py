"""Configuration loader for PromptTracker suites.

This module provides the ConfigLoader class for loading suite YAML files and
recorded response files, and ``resolve_runtime_settings`` for merging CLI
flags with ``PROMPT_TRACKER_*`` environment variables.
"""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from prompt_tracker.config.defaults import DEFAULT_RUNTIME_SETTINGS
from prompt_tracker.config.env_loader import substitute_env_vars
from prompt_tracker.config.validator import flatten_pydantic_errors
from prompt_tracker.lib.errors import (
    ConfigError,
    EvaluatorConfigurationError,
    FileNotFoundError,
)
from prompt_tracker.lib.evaluators.registry import EvaluatorRegistry
from prompt_tracker.lib.logging_config import get_logger
from prompt_tracker.models.suite import RuntimeSettings, Suite

logger = get_logger(__name__)

# Environment variable to field name mapping
ENV_VAR_MAP = {
    "verbose": "PROMPT_TRACKER_VERBOSE",
    "quiet": "PROMPT_TRACKER_QUIET",
    "judge_model": "PROMPT_TRACKER_JUDGE_MODEL",
}


def _parse_env_value(field_name: str, value: str) -> Any:
    """Parse an environment variable value to the field's type.

    Args:
        field_name: Name of the field (used to determine type)
        value: String value from environment variable

    Returns:
        Parsed value (bool or str)
    """
    if field_name in ("verbose", "quiet"):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return value.strip() or None


def _get_env_value(field_name: str, env_vars: Mapping[str, str]) -> Any | None:
    """Get the parsed environment override for a field, or None if unset."""
    env_var_name = ENV_VAR_MAP.get(field_name)
    if not env_var_name or env_var_name not in env_vars:
        return None
    return _parse_env_value(field_name, env_vars[env_var_name])


def resolve_runtime_settings(
    verbose: bool | None = None,
    quiet: bool | None = None,
    judge_model: str | None = None,
    env_vars: Mapping[str, str] | None = None,
) -> RuntimeSettings:
    """Resolve runtime settings with priority hierarchy.

    Priority (highest to lowest):
    1. Explicit arguments (CLI flags); ``None`` or ``False`` means unset
    2. Environment variables (PROMPT_TRACKER_* vars)
    3. Built-in defaults

    Args:
        verbose: --verbose flag
        quiet: --quiet flag
        judge_model: Judge model chosen by the caller
        env_vars: Environment mapping (defaults to ``os.environ``)

    Returns:
        Resolved RuntimeSettings
    """
    env = os.environ if env_vars is None else env_vars
    explicit = {"verbose": verbose, "quiet": quiet, "judge_model": judge_model}

    resolved: dict[str, Any] = {}
    for field in RuntimeSettings.model_fields:
        if explicit.get(field):
            resolved[field] = explicit[field]
        elif (env_value := _get_env_value(field, env)) is not None:
            resolved[field] = env_value
        else:
            resolved[field] = DEFAULT_RUNTIME_SETTINGS[field]
    return RuntimeSettings(**resolved)


def _item_at(data: Any, loc: tuple[Any, ...]) -> Any:
    for part in loc:
        if isinstance(data, Mapping) and part in data:
            data = data[part]
        elif isinstance(data, list) and isinstance(part, int) and part < len(data):
            data = data[part]
        else:
            return None
    return data


def _evaluator_config_error(
    exc: PydanticValidationError, data: dict[str, Any], file_path: str
) -> EvaluatorConfigurationError | None:
    """Map the first error inside an evaluator config to a typed error."""
    for error in exc.errors():
        loc = tuple(error.get("loc", ()))
        if "evaluator_configs" not in loc:
            continue
        end = loc.index("evaluator_configs") + 2
        entry = _item_at(data, loc[:end])
        key = entry.get("evaluator_key") if isinstance(entry, Mapping) else None
        return EvaluatorConfigurationError(
            str(key or "unknown"),
            f"{error.get('msg', 'invalid configuration')} (in {file_path})",
        )
    return None


class ConfigLoader:
    """Loads and validates suite and response files.

    This class handles:
    - Parsing YAML suite files with ``${VAR}`` substitution
    - Validating suites against the Suite schema
    - Applying the resolved judge model to judge evaluators
    - Loading recorded raw responses from JSON
    """

    def parse_yaml(self, file_path: str) -> dict[str, Any]:
        """Read a YAML file with environment variable substitution.

        Args:
            file_path: Path to the YAML file

        Returns:
            Parsed mapping (empty for an empty file)

        Raises:
            FileNotFoundError: If the file cannot be read
            ConfigError: If YAML parsing fails or the top level is not a mapping
        """
        path = Path(file_path)
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FileNotFoundError(
                file_path,
                f"Suite file not found at {file_path}. "
                f"Please ensure the file exists at this path.",
            ) from e

        try:
            content = yaml.safe_load(substitute_env_vars(raw_text))
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {file_path}: {str(e)}",
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                "yaml_parse", f"Expected a mapping at the top of {file_path}"
            )
        return content

    def load_suite(self, file_path: str, judge_model: str | None = None) -> Suite:
        """Load and validate a suite from YAML.

        Args:
            file_path: Path to the suite file
            judge_model: Judge model for judge evaluators that set none

        Returns:
            Validated Suite

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigError: If parsing or validation fails
            EvaluatorConfigurationError: If an evaluator config is invalid
        """
        data = self.parse_yaml(file_path)
        try:
            suite = Suite.model_validate(data)
        except PydanticValidationError as e:
            evaluator_error = _evaluator_config_error(e, data, file_path)
            if evaluator_error is not None:
                raise evaluator_error from e
            error_text = "\n".join(flatten_pydantic_errors(e))
            raise ConfigError(
                "suite_validation",
                f"Invalid suite configuration in {file_path}:\n{error_text}",
            ) from e

        self._warn_unknown_evaluators(suite)
        if judge_model:
            self.apply_judge_model(suite, judge_model)
        logger.info(f"Loaded suite '{suite.name}' with {len(suite.tests)} tests")
        return suite

    def apply_judge_model(self, suite: Suite, judge_model: str) -> None:
        """Set ``judge_model`` on judge evaluator configs that do not set one."""
        for test in suite.tests:
            for evaluator_config in test.evaluator_configs:
                spec = EvaluatorRegistry.get(evaluator_config.evaluator_key)
                if spec is None or not spec.requires_judge:
                    continue
                evaluator_config.config.setdefault("judge_model", judge_model)

    def _warn_unknown_evaluators(self, suite: Suite) -> None:
        for test in suite.tests:
            for evaluator_config in test.evaluator_configs:
                if not EvaluatorRegistry.exists(evaluator_config.evaluator_key):
                    logger.warning(
                        f"Test '{test.name}' uses unknown evaluator "
                        f"'{evaluator_config.evaluator_key}'"
                    )

    def load_responses(self, file_path: str) -> dict[str, Any]:
        """Load recorded raw responses keyed by test name.

        A value may be a single raw response or a list of them (a batch).

        Raises:
            FileNotFoundError: If the file cannot be read
            ConfigError: If the file is not a JSON object
        """
        try:
            raw_text = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            raise FileNotFoundError(
                file_path, f"Responses file not found at {file_path}."
            ) from e

        try:
            content = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise ConfigError(
                "responses", f"Failed to parse JSON file {file_path}: {e}"
            ) from e

        if not isinstance(content, dict):
            raise ConfigError(
                "responses", f"Expected an object keyed by test name in {file_path}"
            )
        return content
