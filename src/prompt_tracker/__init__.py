"""PromptTracker - evaluate LLM responses against configurable evaluators.

Main features:
- Classify provider APIs and normalize their responses to one shape
- Score single responses and conversations with built-in evaluators
- Run tests and aggregate evaluations into pass/fail test runs
- YAML test suites with a command line runner
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
