"""Data models for PromptTracker evaluation."""
