"""Built-in ticket-workflow phase definitions.

Pure data; logic lives in phases.py. Text may reference supplement keys as
``$KEY`` and the render-time ``$TICKET_ID``. Phase 3 sections carrying
``architectures`` are only kept when the configured ARCHITECTURE names one
of them.
"""

from __future__ import annotations

from typing import Any

PHASES: list[dict[str, Any]] = [
    {
        "number": 0,
        "name": "supplement_setup",
        "title": "Supplement Setup",
        "summary": "Record the environment choices this workflow depends on.",
        "steps": [
            "Run `ticketflow configure` and answer every question.",
            "Answers are written to the supplement file; delete it to start over.",
        ],
    },
    {
        "number": 1,
        "name": "fetch_ticket",
        "title": "Fetch Ticket",
        "summary": "Load ticket $TICKET_ID from $TICKET_SYSTEM.",
        "steps": [
            "Access method: $TICKET_ACCESS.",
            "MCP tool (if any): $TICKET_MCP_TOOL. CLI (if any): $TICKET_CLI $TICKET_ID.",
            "With manual access, ask the operator to paste the ticket title, description and acceptance criteria.",
            "Do not continue until the ticket text is available.",
        ],
    },
    {
        "number": 2,
        "name": "analyze_requirements",
        "title": "Analyze Requirements",
        "summary": "Turn the ticket into a checklist of observable behaviour.",
        "steps": [
            "List every acceptance criterion as a testable statement.",
            "Note open questions and ask the operator before guessing.",
            "Identify what is explicitly out of scope for $TICKET_ID.",
        ],
    },
    {
        "number": 3,
        "name": "investigate_codebase",
        "title": "Investigate Codebase",
        "summary": "Find the code the ticket touches before planning changes. Architecture: $ARCHITECTURE.",
        "steps": [
            "Search for the entities, routes and messages named in the ticket.",
        ],
        "sections": [
            {
                "title": "Entry points",
                "steps": ["Locate the controllers, console commands or consumers that trigger the behaviour."],
            },
            {
                "title": "Controllers and services",
                "architectures": ["layered", "mvc"],
                "steps": ["Follow the call from controller into the service layer and note each service involved."],
            },
            {
                "title": "Domain model",
                "architectures": ["ddd", "hexagonal"],
                "steps": ["Identify the aggregates, value objects and domain events the change affects."],
            },
            {
                "title": "Ports and adapters",
                "architectures": ["hexagonal"],
                "steps": ["List the ports involved and which adapters implement them."],
            },
            {
                "title": "Command and query handlers",
                "architectures": ["cqrs"],
                "steps": ["Find the commands, queries and their handlers; note any projections to update."],
            },
            {
                "title": "Existing tests",
                "steps": ["Find the tests covering this area and run them with `$TEST_COMMAND`."],
            },
        ],
    },
    {
        "number": 4,
        "name": "plan_implementation",
        "title": "Plan Implementation",
        "summary": "Write the plan before touching code.",
        "steps": [
            "Order the changes as a sequence of small, testable steps.",
            "Name the test that will prove each step.",
            "Share the plan with the operator and wait for approval.",
        ],
    },
    {
        "number": 5,
        "name": "branch_setup",
        "title": "Branch Setup",
        "summary": "Start from an up-to-date $MAIN_BRANCH.",
        "steps": [
            "git checkout $MAIN_BRANCH && git pull",
            "Create the branch following: $BRANCH_PATTERN",
        ],
    },
    {
        "number": 6,
        "name": "tdd_implementation",
        "title": "TDD Implementation",
        "summary": "Red, green, refactor for every planned step.",
        "steps": [
            "Write a failing test for the next step and run `$TEST_COMMAND` to see it fail.",
            "Write the minimum code to pass; run `$TEST_COMMAND` again.",
            "Refactor with the suite green.",
            "Static analysis (if configured): $STATIC_ANALYSIS_COMMAND",
        ],
    },
    {
        "number": 7,
        "name": "commit",
        "title": "Commit",
        "summary": "Commit in small units using the $COMMIT_CONVENTION convention.",
        "steps": [
            "Stage only the files belonging to the step.",
            "Reference $TICKET_ID in the message.",
        ],
    },
    {
        "number": 8,
        "name": "pull_request",
        "title": "Pull Request",
        "summary": "Open a pull request on $VCS_HOST against $MAIN_BRANCH.",
        "steps": [
            "git push -u origin HEAD",
            "Open the request with: $VCS_CLI (when 'none', use the $VCS_HOST web UI).",
            "Link $TICKET_ID and summarize the acceptance criteria covered.",
        ],
    },
    {
        "number": 9,
        "name": "report",
        "title": "Report",
        "summary": "Tell the operator what was done.",
        "steps": [
            "Summarize the changes, tests added and the pull request link.",
            "List anything left open or deferred.",
        ],
    },
]
