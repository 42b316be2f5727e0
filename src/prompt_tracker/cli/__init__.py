"""Command line interface for PromptTracker."""
