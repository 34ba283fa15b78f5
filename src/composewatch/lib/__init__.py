"""Shared library code: errors and logging."""
