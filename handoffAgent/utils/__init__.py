"""Shared helpers: error taxonomy, logging and message utilities."""
