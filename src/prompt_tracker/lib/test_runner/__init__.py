"""Test execution: running tests, storing runs and reporting on them."""
