"""Custom exception hierarchy for PromptTracker evaluation and configuration."""


class PromptTrackerError(Exception):
    """Base exception for all PromptTracker errors.

    All PromptTracker-specific exceptions inherit from this class, enabling
    centralized exception handling in the test runner and CLI.
    """

    pass


class ConfigError(PromptTrackerError):
    """Exception raised for configuration errors.

    Raised when a suite file or evaluator configuration cannot be loaded
    or parsed.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class ValidationError(PromptTrackerError):
    """Exception raised when a value fails validation.

    Attributes:
        field: The field that failed validation
        message: Description of the validation failure
        expected: Human description of expected value/type
        actual: The actual value that failed validation
    """

    def __init__(
        self,
        field: str,
        message: str,
        expected: str,
        actual: str,
    ) -> None:
        """Initialize ValidationError with detailed information.

        Args:
            field: Field that failed validation (dot notation for nested fields)
            message: Description of what went wrong
            expected: Human-readable description of expected value
            actual: The actual value that failed
        """
        self.field = field
        self.message = message
        self.expected = expected
        self.actual = actual
        full_message = (
            f"Validation error in '{field}': {message}\n"
            f"  Expected: {expected}\n"
            f"  Got: {actual}"
        )
        super().__init__(full_message)


class FileNotFoundError(PromptTrackerError):
    """Exception raised when a suite or response file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the missing file
            message: Descriptive error message
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class ExecutionError(PromptTrackerError):
    """Exception raised when a test run cannot be executed."""

    pass


class EvaluationError(PromptTrackerError):
    """Exception raised when an evaluator fails while scoring."""

    pass


class EvaluatorConfigurationError(EvaluationError):
    """Exception raised for an invalid evaluator configuration.

    Attributes:
        evaluator_key: Registry key of the misconfigured evaluator
        message: Human-readable error message
    """

    def __init__(self, evaluator_key: str, message: str) -> None:
        """Initialize EvaluatorConfigurationError.

        Args:
            evaluator_key: Registry key of the evaluator
            message: Descriptive error message
        """
        self.evaluator_key = evaluator_key
        self.message = message
        super().__init__(f"Evaluator '{evaluator_key}' misconfigured: {message}")


class EvaluatorPreconditionError(EvaluationError, ValueError):
    """Exception raised when evaluator input is missing required data.

    Example: a conversation judge receiving a conversation with no
    assistant messages.
    """

    pass


class UnknownEvaluatorError(EvaluationError, KeyError):
    """Exception raised when an evaluator key is not registered.

    Attributes:
        key: The unknown evaluator key
    """

    def __init__(self, key: str) -> None:
        """Initialize UnknownEvaluatorError.

        Args:
            key: The evaluator key that was looked up
        """
        self.key = key
        super().__init__(f"Unknown evaluator: {key}")

    def __str__(self) -> str:
        """Return the plain message instead of KeyError's quoted repr."""
        return f"Unknown evaluator: {self.key}"
