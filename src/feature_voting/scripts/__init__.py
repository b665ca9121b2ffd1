"""Command-line utilities for operating the service."""
