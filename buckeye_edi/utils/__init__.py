"""Shared utilities: logging and HTTP errors."""
