"""PromptTracker CLI commands."""
