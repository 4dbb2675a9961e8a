"""CLI commands split out of cli.py by concern."""
