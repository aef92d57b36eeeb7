"""Shared utilities: identifier generation and logging setup."""
