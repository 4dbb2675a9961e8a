"""Built-in questionnaire definitions for the ticket-workflow supplement.

Pure data; logic lives in questionnaire.py. Order matters: questions are
asked top to bottom, and ``ask_if`` may only refer to an earlier key.
"""

from __future__ import annotations

from typing import Any

QUESTIONS: list[dict[str, Any]] = [
    # -- Ticket System ------------------------------------------------------
    {
        "key": "TICKET_SYSTEM",
        "section": "Ticket System",
        "prompt": "Which ticket tracker does this project use?",
        "options": ["jira", "linear", "github", "gitlab", "other"],
    },
    {
        "key": "TICKET_ACCESS",
        "section": "Ticket System",
        "prompt": "How should tickets be fetched?",
        "options": ["mcp", "cli", "manual"],
        "help": "mcp = an MCP tool the agent can call, cli = a command line client, manual = you paste the ticket",
    },
    {
        "key": "TICKET_MCP_TOOL",
        "section": "Ticket System",
        "prompt": "Name of the MCP tool that fetches a ticket",
        "ask_if": {"key": "TICKET_ACCESS", "equals": "mcp"},
    },
    {
        "key": "TICKET_CLI",
        "section": "Ticket System",
        "prompt": "Command that prints a ticket (the ticket ID is appended)",
        "ask_if": {"key": "TICKET_ACCESS", "equals": "cli"},
    },
    # -- Version Control ----------------------------------------------------
    {
        "key": "VCS_HOST",
        "section": "Version Control",
        "prompt": "Where is the repository hosted?",
        "options": ["github", "gitlab", "bitbucket", "other"],
    },
    {
        "key": "VCS_CLI",
        "section": "Version Control",
        "prompt": "CLI used to open pull/merge requests (e.g. gh, glab)",
        "allow_none": True,
    },
    {
        "key": "MAIN_BRANCH",
        "section": "Version Control",
        "prompt": "Name of the main branch",
    },
    {
        "key": "BRANCH_PATTERN",
        "section": "Version Control",
        "prompt": "Branch naming pattern, in your own words (e.g. feature/PROJ-123-short-title)",
    },
    {
        "key": "COMMIT_CONVENTION",
        "section": "Version Control",
        "prompt": "Commit message convention",
        "options": ["conventional", "ticket-prefix", "free-form"],
    },
    # -- Quality ------------------------------------------------------------
    {
        "key": "TEST_COMMAND",
        "section": "Quality",
        "prompt": "Command that runs the test suite (e.g. vendor/bin/phpunit)",
    },
    {
        "key": "STATIC_ANALYSIS_COMMAND",
        "section": "Quality",
        "prompt": "Static analysis command (e.g. vendor/bin/phpstan analyse)",
        "allow_none": True,
    },
    # -- Architecture -------------------------------------------------------
    {
        "key": "ARCHITECTURE",
        "section": "Architecture",
        "prompt": "Architecture style of the codebase (comma-separated if several)",
        "options": ["layered", "mvc", "hexagonal", "ddd", "cqrs"],
        "allow_none": True,
    },
]
