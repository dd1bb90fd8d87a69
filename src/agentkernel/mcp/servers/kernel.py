"""
Agent Kernel tool server.

Provides the Thinking Tuple protocol tools (tuple_init, tuple_get,
tuple_update, route_command, evaluate_gradient, format_prompt) and the
knowledge lookups (get_principle, list_principles, search_principles,
get_agent, get_command, list_commands, load_skill, get_dslp_pattern,
list_dslp_domains, get_claude_md).

Configured through the environment:
  - AGENT_KERNEL_PROJECT_DIR (or CLAUDE_PROJECT_DIR): project whose .claude/
    directory overrides bundled assets and holds tuple snapshots
  - AGENT_KERNEL_RESOURCES_DIR: bundled assets
  - AGENT_KERNEL_STATE_DIR: snapshot directory override
  - AGENT_KERNEL_LOG_LEVEL: stderr log level (default INFO)

Run as:
    python -m agentkernel.mcp.servers.kernel
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from agentkernel import __version__
from agentkernel.config import KernelConfig
from agentkernel.errors import InvalidArgumentError
from agentkernel.kernel import AgentKernel
from agentkernel.mcp.server import StdioToolServer, ToolHandler

logger = logging.getLogger(__name__)

SLOT_NAMES = ["constraints", "invariant", "principles", "strategy", "check"]
STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _flag(value: Any) -> bool:
    """Booleans arrive as JSON booleans, but some clients send strings."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no", ""):
            return False
        raise InvalidArgumentError(f"Expected a boolean, got {value!r}")
    return bool(value)


def _string_list(value: Any, field: str) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    raise InvalidArgumentError(f"'{field}' must be a string or a list of strings")


class KernelTool(ToolHandler):
    def __init__(self, kernel: AgentKernel):
        self.kernel = kernel


# ── Tuple lifecycle ──────────────────────────────────────────

class TupleInitTool(KernelTool):
    name = "tuple_init"
    description = (
        "Initialize a Thinking Tuple for a task. Returns the tuple id used by "
        "every other protocol tool."
    )
    parameters = {
        "task": {"type": "string", "description": "Description of the goal"},
        "constraints": {**STRING_LIST, "description": "Initial constraints (optional)"},
        "invariant": {**STRING_LIST, "description": "Initial invariant (optional)"},
    }
    required = ["task"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.tuple_init(
            params["task"],
            _string_list(params.get("constraints"), "constraints"),
            _string_list(params.get("invariant"), "invariant"),
        )


class TupleGetTool(KernelTool):
    name = "tuple_get"
    description = "Get the full state of a Thinking Tuple."
    parameters = {
        "id": {"type": "string", "description": "Tuple id returned by tuple_init"},
    }
    required = ["id"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.tuple_get(params["id"])


class TupleUpdateTool(KernelTool):
    name = "tuple_update"
    description = "Append to, replace, or clear one slot of a Thinking Tuple."
    parameters = {
        "id": {"type": "string", "description": "Tuple id"},
        "slot": {"type": "string", "enum": SLOT_NAMES, "description": "Slot to modify"},
        "action": {"type": "string", "enum": ["append", "replace", "clear"]},
        "content": {
            "oneOf": [{"type": "string"}, STRING_LIST],
            "description": "Entry or entries (ignored by clear)",
        },
    }
    required = ["id", "slot", "action"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.tuple_update(
            params["id"], params["slot"], params["action"], params.get("content"),
        )


# ── Orchestration ────────────────────────────────────────────

class RouteCommandTool(KernelTool):
    name = "route_command"
    description = (
        "Map an intent to the reasoning primitive to run next. Pass tuple_id "
        "for advice based on the tuple's current state."
    )
    parameters = {
        "intent": {"type": "string", "description": "What you want to do next"},
        "tuple_id": {"type": "string", "description": "Tuple id (optional)"},
    }
    required = ["intent"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.route_command(params["intent"], params.get("tuple_id"))


class EvaluateGradientTool(KernelTool):
    name = "evaluate_gradient"
    description = (
        "Record one iteration's progress signals and get a CONTINUE or "
        "TERMINATE recommendation."
    )
    parameters = {
        "tuple_id": {"type": "string", "description": "Tuple id"},
        "knowledge": {"type": "boolean", "description": "New knowledge gained"},
        "invariant": {"type": "boolean", "description": "Invariant moved closer to satisfied"},
        "evidence": {"type": "boolean", "description": "New evidence produced"},
        "confidence": {"type": "boolean", "description": "Confidence increased"},
        "action": {"type": "string", "description": "What was done (optional)"},
        "notes": {"type": "string", "description": "Observations (optional)"},
    }
    required = ["tuple_id", "knowledge", "invariant", "evidence", "confidence"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.evaluate_gradient(
            params["tuple_id"],
            knowledge=_flag(params["knowledge"]),
            invariant=_flag(params["invariant"]),
            evidence=_flag(params["evidence"]),
            confidence=_flag(params["confidence"]),
            action=params.get("action"),
            notes=params.get("notes"),
        )


class FormatPromptTool(KernelTool):
    name = "format_prompt"
    description = (
        "Compose a briefing for a delegate agent: role profile, principles, "
        "tuple context, output contract and the task."
    )
    parameters = {
        "agent_type": {"type": "string", "description": "Role (e.g. implementer, researcher)"},
        "task": {"type": "string", "description": "Task for the delegate"},
        "tuple_id": {"type": "string", "description": "Tuple id (optional)"},
        "additional_principles": {**STRING_LIST, "description": "Extra principle names"},
    }
    required = ["agent_type", "task"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.format_prompt(
            params["agent_type"],
            params["task"],
            params.get("tuple_id"),
            _string_list(params.get("additional_principles"), "additional_principles"),
        )


# ── Knowledge lookups ────────────────────────────────────────

class GetPrincipleTool(KernelTool):
    name = "get_principle"
    description = "Get principle content by name from the principles directory."
    parameters = {
        "name": {"type": "string", "description": "Principle name (e.g. 'defensive-programming')"},
    }
    required = ["name"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.get_principle(params["name"])


class ListPrinciplesTool(KernelTool):
    name = "list_principles"
    description = "List all available principles."
    parameters = {}

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.list_principles()


class SearchPrinciplesTool(KernelTool):
    name = "search_principles"
    description = "List principles whose content mentions a keyword."
    parameters = {
        "keyword": {"type": "string", "description": "Keyword to search for"},
    }
    required = ["keyword"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.search_principles(params["keyword"])


class GetAgentTool(KernelTool):
    name = "get_agent"
    description = "Get an agent definition from agents/core/."
    parameters = {
        "name": {"type": "string", "description": "Agent name (e.g. 'planner')"},
    }
    required = ["name"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.get_agent(params["name"])


class GetCommandTool(KernelTool):
    name = "get_command"
    description = "Get command instructions from commands/."
    parameters = {
        "name": {"type": "string", "description": "Command name (e.g. 'explore', 'run')"},
    }
    required = ["name"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.get_command(params["name"])


class ListCommandsTool(KernelTool):
    name = "list_commands"
    description = "List available commands, optionally filtered by category."
    parameters = {
        "category": {
            "type": "string",
            "enum": ["primitive", "process", "alias", "all"],
            "description": "Filter by command type (default all)",
        },
    }

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.list_commands(params.get("category"))


class LoadSkillTool(KernelTool):
    name = "load_skill"
    description = "Load a skill checklist from skills/."
    parameters = {
        "skill_name": {"type": "string", "description": "Skill name (e.g. 'code-review')"},
    }
    required = ["skill_name"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.load_skill(params["skill_name"])


class GetDslpPatternTool(KernelTool):
    name = "get_dslp_pattern"
    description = "Get a pattern definition from a domain pack."
    parameters = {
        "domain": {"type": "string", "description": "Domain name (e.g. 'web_motion')"},
        "pattern_name": {"type": "string", "description": "Pattern name (e.g. 'scroll_reveal')"},
    }
    required = ["domain", "pattern_name"]

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.get_dslp_pattern(params["domain"], params["pattern_name"])


class ListDslpDomainsTool(KernelTool):
    name = "list_dslp_domains"
    description = "List available domain packs."
    parameters = {}

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.list_dslp_domains()


class GetClaudeMdTool(KernelTool):
    name = "get_claude_md"
    description = "Get the complete CLAUDE.md protocol document."
    parameters = {}

    def handle(self, params: dict[str, Any]) -> dict:
        return self.kernel.get_claude_md()


TOOLS = [
    TupleInitTool,
    TupleGetTool,
    TupleUpdateTool,
    RouteCommandTool,
    EvaluateGradientTool,
    FormatPromptTool,
    GetPrincipleTool,
    ListPrinciplesTool,
    SearchPrinciplesTool,
    GetAgentTool,
    GetCommandTool,
    ListCommandsTool,
    LoadSkillTool,
    GetDslpPatternTool,
    ListDslpDomainsTool,
    GetClaudeMdTool,
]


def build_server(kernel: AgentKernel) -> StdioToolServer:
    server = StdioToolServer(name="agent-kernel", version=__version__)
    for tool_cls in TOOLS:
        server.register(tool_cls(kernel))
    return server


def main(config: KernelConfig | None = None):
    config = config or KernelConfig.from_env()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Project dir: {config.project_dir}, snapshots: {config.snapshot_dir}")
    build_server(AgentKernel(config)).run()


if __name__ == "__main__":
    main()
