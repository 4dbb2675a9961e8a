"""MCP server for the ticket-workflow skill.

Read-only interface for agents: exposes the supplement and the rendered
phase sequence as MCP tools, a resource and a prompt. The questionnaire needs
a human, so configuring is left to ``ticketflow configure``.

Usage:
    ticketflow-mcp                                # Default supplement location
    ticketflow-mcp --supplement /path/.supplement.md
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    GetPromptResult,
    Prompt,
    PromptArgument,
    PromptMessage,
    Resource,
    TextContent,
    Tool,
)

from ticketflow.core import resolve_supplement_path
from ticketflow.phases import (
    get_phase,
    plan_phases,
    referenced_variables,
    render,
    render_phase,
    render_phases,
    resolve_state,
    select_sections,
)
from ticketflow.supplement import SupplementAccessError, SupplementStore

server = Server("ticketflow")
store: SupplementStore | None = None
_logger: logging.Logger | None = None

SUPPLEMENT_URI = "ticketflow://supplement"
PROMPT_NAME = "ticket-workflow"


def _get_store() -> SupplementStore:
    if store is None:
        msg = "Supplement store not initialized"
        raise RuntimeError(msg)
    return store


def _text(content: Any) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _error(message: str, code: str, **extra: Any) -> list[TextContent]:
    return _text({"error": message, "code": code, **extra})


def _not_configured(active: SupplementStore) -> list[TextContent]:
    return _error(
        f"No supplement found at {active.path}",
        "not_configured",
        path=str(active.path),
        hint="Ask the operator to run 'ticketflow configure'",
    )


def _ticket_vars(arguments: dict[str, Any]) -> dict[str, str]:
    ticket = arguments.get("ticket_id")
    return {"TICKET_ID": str(ticket)} if ticket else {}


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@server.list_resources()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_resources() -> list[Resource]:
    return [
        Resource(
            uri=SUPPLEMENT_URI,  # type: ignore[arg-type]
            name="Ticket workflow supplement",
            description="Environment choices for the ticket workflow (KEY: value lines)",
            mimeType="text/markdown",
        ),
    ]


@server.read_resource()  # type: ignore[untyped-decorator,no-untyped-call]
async def read_supplement(uri: Any) -> str:
    if str(uri).rstrip("/") != SUPPLEMENT_URI:
        msg = f"Unknown resource: {uri}"
        raise ValueError(msg)
    active = _get_store()
    supplement = active.load()
    if supplement is None:
        return f"# No supplement configured\n\nExpected at {active.path}. Run `ticketflow configure`.\n"
    return "".join(f"{k}: {v}\n" for k, v in supplement.items())


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


@server.list_prompts()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_prompts() -> list[Prompt]:
    return [
        Prompt(
            name=PROMPT_NAME,
            description="Every applicable ticket-workflow phase, rendered with the supplement.",
            arguments=[
                PromptArgument(name="ticket_id", description="Ticket ID substituted for $TICKET_ID", required=False),
            ],
        ),
    ]


@server.get_prompt()  # type: ignore[untyped-decorator,no-untyped-call]
async def get_workflow_prompt(name: str, arguments: dict[str, str] | None = None) -> GetPromptResult:
    if name != PROMPT_NAME:
        msg = f"Unknown prompt: {name}"
        raise ValueError(msg)
    supplement = _get_store().load()
    phases = render_phases(supplement, extra=_ticket_vars(arguments or {}))
    text = "# Ticket workflow\n\n" + "\n".join(p.to_markdown() for p in phases)
    return GetPromptResult(
        description="Ticket workflow phases",
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


@server.list_tools()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="get_supplement",
            description="Return the supplement (KEY -> value) and its path, or a not_configured error.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="get_setting",
            description="Return one supplement value. Missing keys return the default (empty string).",
            inputSchema={
                "type": "object",
                "properties": {
                    "key": {"type": "string", "description": "Supplement key, e.g. MAIN_BRANCH"},
                    "default": {"type": "string", "description": "Value when the key is absent"},
                },
                "required": ["key"],
            },
        ),
        Tool(
            name="list_phases",
            description="List the applicable workflow phases (number, title, sections) and the workflow state.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="get_phase",
            description="Render one phase with supplement values substituted.",
            inputSchema={
                "type": "object",
                "properties": {
                    "number": {"type": "integer", "description": "Phase number 0-9"},
                    "ticket_id": {"type": "string", "description": "Ticket ID for $TICKET_ID"},
                },
                "required": ["number"],
            },
        ),
        Tool(
            name="render_template",
            description="Substitute $VARIABLES in arbitrary text from the supplement. Unknown variables render empty and are listed under 'unset'.",
            inputSchema={
                "type": "object",
                "properties": {
                    "template": {"type": "string", "description": "Text containing $VARIABLES"},
                    "ticket_id": {"type": "string", "description": "Ticket ID for $TICKET_ID"},
                },
                "required": ["template"],
            },
        ),
    ]


# ---------------------------------------------------------------------------
# Tool dispatch
# ---------------------------------------------------------------------------


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    active = _get_store()
    t0 = time.monotonic()
    try:
        result = _dispatch(name, arguments, active)
    except Exception:
        if _logger:
            _logger.error("tool_error", extra={"tool": name, "args_data": arguments}, exc_info=True)
        raise
    duration_ms = round((time.monotonic() - t0) * 1000, 1)
    if _logger:
        _logger.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
    return result


def _dispatch(name: str, arguments: dict[str, Any], active: SupplementStore) -> list[TextContent]:
    try:
        supplement = active.load()
    except SupplementAccessError as exc:
        return _error(exc.reason, "supplement_unreadable", path=str(exc.path))

    match name:
        case "get_supplement":
            if supplement is None:
                return _not_configured(active)
            return _text({"path": str(active.path), "supplement": supplement})

        case "get_setting":
            if supplement is None:
                return _not_configured(active)
            key = arguments.get("key", "")
            return _text({"key": key, "value": supplement.get(key, arguments.get("default", "")), "configured": key in supplement})

        case "list_phases":
            state = resolve_state(supplement)
            return _text(
                {
                    "state": state.value,
                    "phases": [
                        {"number": p.number, "title": p.title, "sections": [s.title for s in p.sections]}
                        for p in plan_phases(state, supplement)
                    ],
                }
            )

        case "get_phase":
            try:
                number = int(arguments["number"])
                definition = get_phase(number)
            except (KeyError, TypeError, ValueError):
                return _error(f"Unknown phase: {arguments.get('number')}", "not_found")
            if supplement is None and number != 0:
                return _not_configured(active)
            rendered = render_phase(select_sections(definition, supplement), supplement, extra=_ticket_vars(arguments))
            return _text(rendered.to_dict())

        case "render_template":
            template = arguments.get("template")
            if not isinstance(template, str):
                return _error("template must be a string", "invalid_argument")
            values = dict(supplement or {})
            values.update(_ticket_vars(arguments))
            return _text(
                {
                    "rendered": render(template, values),
                    "configured": supplement is not None,
                    "unset": [v for v in referenced_variables(template) if v not in values],
                }
            )

        case _:
            return _error(f"Unknown tool: {name}", "unknown_tool")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


async def _run(supplement_path: Path | None) -> None:
    global store, _logger

    store = SupplementStore(resolve_supplement_path(supplement_path))

    from ticketflow.logging import setup_logging

    _logger = setup_logging(store.path.parent)
    _logger.info("mcp_server_start", extra={"tool": "server", "args_data": {"supplement": str(store.path)}})

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    import asyncio

    parser = argparse.ArgumentParser(description="ticketflow MCP server")
    parser.add_argument("--supplement", type=Path, default=None, help="Supplement file (default: ~/.claude/skills/ticket-workflow/.supplement.md)")
    args = parser.parse_args()

    asyncio.run(_run(args.supplement))


if __name__ == "__main__":
    main()
