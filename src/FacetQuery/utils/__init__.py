"""Shared helpers: logging and timestamps."""
