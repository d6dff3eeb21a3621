"""Shared helpers: paths, configuration, result type and logging setup."""
