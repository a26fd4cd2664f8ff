"""Shared helpers: logging, exceptions, validation, datetime handling."""
