"""Validation utilities for PromptTracker configuration."""

from pydantic import ValidationError as PydanticValidationError


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into readable messages.

    Args:
        exc: Pydantic ValidationError raised while loading a suite

    Returns:
        One message per field error, e.g.
        ``Field 'tests.0.evaluator_configs.0': Value error, threshold is
        required for scored evaluator 'length'``

    Example:
        >>> try:
        ...     Suite.model_validate({"name": "s"})
        ... except PydanticValidationError as e:
        ...     flatten_pydantic_errors(e)
        ["Field 'testable': Field required"]
    """
    errors: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(item) for item in loc) if loc else "unknown"
        msg = error.get("msg", "Unknown error")

        if error.get("type") in ("enum", "literal_error", "int_parsing"):
            received = error.get("input")
            formatted = f"Field '{field_path}': {msg} (received: {received!r})"
        else:
            formatted = f"Field '{field_path}': {msg}"
        errors.append(formatted)

    return errors or ["Validation failed with unknown error"]
