"""Allow ``python -m ticketflow``."""

from ticketflow.cli import cli

cli()
