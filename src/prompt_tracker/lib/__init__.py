"""Core library: classification, normalization, evaluation and execution."""
