"""Implementations of the individual CLI commands."""
