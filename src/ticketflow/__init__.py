"""ticketflow -- ticket-workflow skill pack: supplement store, questionnaire and phase renderer."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ticketflow")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from ticketflow.phases import render, render_phases
from ticketflow.supplement import SupplementStore

__all__ = ["SupplementStore", "__version__", "render", "render_phases"]
