"""Default configuration values for PromptTracker."""

DEFAULT_JUDGE_MODEL = "gpt-4o"

# Runtime settings defaults, overridable via PROMPT_TRACKER_* variables
DEFAULT_RUNTIME_SETTINGS: dict[str, bool | str] = {
    "verbose": False,
    "quiet": False,
    "judge_model": DEFAULT_JUDGE_MODEL,
}
