"""
Agent Kernel — the protocol-orchestration engine behind the tool surface.

Wires the tuple store, router, gradient evaluator and prompt composer to a
shared configuration, and exposes each operation as a JSON-ready dict
(for the stdio server) or as a LangChain tool (for in-process agents).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from langchain_core.tools import BaseTool

from .composer import PromptComposer
from .config import KernelConfig
from .errors import KernelError
from .gradient import GradientEvaluator
from .knowledge import KnowledgeBase
from .resources import AssetResolver
from .router import CommandRouter
from .store import FileBackend, TupleStore, parse_action, parse_slot

logger = logging.getLogger(__name__)

INIT_MESSAGE = (
    "Thinking Tuple initialized. Use tuple_update to modify slots, "
    "route_command to decide next action, evaluate_gradient after each step."
)


class AgentKernel:
    """
    One kernel per server process; every operation is keyed by tuple id.

    Usage:
        kernel = AgentKernel(KernelConfig.from_env())
        run = kernel.tuple_init("add auth")
        step = kernel.route_command("explore login options", run["id"])
        kernel.evaluate_gradient(run["id"], knowledge=True)
    """

    def __init__(
        self,
        config: KernelConfig | None = None,
        resolver: AssetResolver | None = None,
        store: TupleStore | None = None,
    ):
        self.config = config or KernelConfig.from_env()
        self.resolver = resolver or AssetResolver.from_config(self.config)
        self.store = store or TupleStore(snapshots=FileBackend(self.config.snapshot_dir))
        self.router = CommandRouter(self.resolver, self.store)
        self.evaluator = GradientEvaluator(self.store)
        self.composer = PromptComposer(
            self.resolver,
            self.store,
            excerpt_chars=self.config.excerpt_chars,
            chars_per_token=self.config.chars_per_token,
        )
        self.knowledge = KnowledgeBase(self.resolver)

    # ── Tuple lifecycle ──────────────────────────────────────

    def tuple_init(
        self,
        task: str,
        constraints: list[str] | None = None,
        invariant: list[str] | None = None,
    ) -> dict:
        tup = self.store.create(task, constraints, invariant)
        return {
            "id": tup.id,
            "task": tup.task,
            "status": tup.status.value,
            "iteration": tup.iteration,
            "message": INIT_MESSAGE,
        }

    def tuple_get(self, id: str) -> dict:
        return self.store.get(id).to_dict()

    def tuple_update(
        self,
        id: str,
        slot: str,
        action: str,
        content: str | list[str] | None = None,
    ) -> dict:
        tup = self.store.update_slot(id, slot, action, content)
        slot = parse_slot(slot)
        return {
            "id": tup.id,
            "slot": slot.value,
            "action": parse_action(action).value,
            "current_value": list(tup.slot(slot)),
            "iteration": tup.iteration,
        }

    # ── Orchestration ────────────────────────────────────────

    def route_command(self, intent: str, tuple_id: str | None = None) -> dict:
        return self.router.route(intent, tuple_id).to_dict()

    def evaluate_gradient(
        self,
        tuple_id: str,
        knowledge: bool = False,
        invariant: bool = False,
        evidence: bool = False,
        confidence: bool = False,
        action: str | None = None,
        notes: str | None = None,
    ) -> dict:
        report = self.evaluator.evaluate(
            tuple_id, knowledge, invariant, evidence, confidence, action, notes,
        )
        return report.to_dict()

    def format_prompt(
        self,
        agent_type: str,
        task: str,
        tuple_id: str | None = None,
        additional_principles: list[str] | None = None,
    ) -> dict:
        return self.composer.compose(agent_type, task, tuple_id, additional_principles).to_dict()

    # ── Knowledge lookups ────────────────────────────────────

    def get_principle(self, name: str) -> dict:
        return self.knowledge.get_principle(name)

    def list_principles(self) -> dict:
        principles = self.knowledge.list_principles()
        return {"principles": principles, "count": len(principles)}

    def search_principles(self, keyword: str) -> dict:
        matches = self.knowledge.search_principles(keyword)
        return {"keyword": keyword, "matches": matches, "count": len(matches)}

    def get_agent(self, name: str) -> dict:
        return self.knowledge.get_agent(name)

    def get_command(self, name: str) -> dict:
        return self.knowledge.get_command(name)

    def list_commands(self, category: str | None = None) -> dict:
        commands = self.knowledge.list_commands(category)
        return {"category": category or "all", "commands": commands, "count": len(commands)}

    def load_skill(self, skill_name: str) -> dict:
        return self.knowledge.load_skill(skill_name)

    def get_dslp_pattern(self, domain: str, pattern_name: str) -> dict:
        return self.knowledge.get_dslp_pattern(domain, pattern_name)

    def list_dslp_domains(self) -> dict:
        domains = self.knowledge.list_dslp_domains()
        return {"domains": domains, "count": len(domains)}

    def get_claude_md(self) -> dict:
        return self.knowledge.get_claude_md()

    # ── Expose as LangChain tools for in-process agents ──────

    def as_tools(self) -> list[BaseTool]:
        """
        Expose the orchestration operations as LangChain tools.

        Failures come back as "[Kernel Error] ..." strings so the calling
        agent can read them and correct its arguments.
        """
        from langchain_core.tools import tool

        kernel = self

        def _run(operation, **kwargs: Any) -> str:
            try:
                return json.dumps(operation(**kwargs), indent=2)
            except KernelError as e:
                return f"[Kernel Error] {e}"

        @tool
        def tuple_init(
            task: str,
            constraints: list[str] | None = None,
            invariant: list[str] | None = None,
        ) -> str:
            """Start a Thinking Tuple for a task. Returns its id.

            Args:
                task: What the reasoning loop must accomplish
                constraints: Known facts or limits to seed the tuple with
                invariant: Conditions that must be true when the task is done
            """
            return _run(kernel.tuple_init, task=task, constraints=constraints, invariant=invariant)

        @tool
        def tuple_get(id: str) -> str:
            """Fetch the full state of a Thinking Tuple.

            Args:
                id: Tuple id returned by tuple_init
            """
            return _run(kernel.tuple_get, id=id)

        @tool
        def tuple_update(
            id: str,
            slot: str,
            action: str,
            content: list[str] | None = None,
        ) -> str:
            """Modify one slot of a Thinking Tuple.

            Args:
                id: Tuple id
                slot: constraints, invariant, principles, strategy or check
                action: append, replace or clear
                content: Entries to append or install (ignored by clear)
            """
            return _run(kernel.tuple_update, id=id, slot=slot, action=action, content=content)

        @tool
        def route_command(intent: str, tuple_id: str | None = None) -> str:
            """Decide which reasoning primitive to run next for an intent.

            Args:
                intent: What you want to do next, in plain words
                tuple_id: Optional tuple id for state-aware advice
            """
            return _run(kernel.route_command, intent=intent, tuple_id=tuple_id)

        @tool
        def evaluate_gradient(
            tuple_id: str,
            knowledge: bool,
            invariant: bool,
            evidence: bool,
            confidence: bool,
            action: str | None = None,
            notes: str | None = None,
        ) -> str:
            """Record progress for one iteration and get a continue/terminate call.

            Args:
                tuple_id: Tuple id
                knowledge: Did this step add knowledge?
                invariant: Did it move the invariant closer to satisfied?
                evidence: Did it produce new evidence?
                confidence: Did confidence in the answer rise?
                action: What was done this step
                notes: Free-form observations
            """
            return _run(
                kernel.evaluate_gradient,
                tuple_id=tuple_id, knowledge=knowledge, invariant=invariant,
                evidence=evidence, confidence=confidence, action=action, notes=notes,
            )

        @tool
        def format_prompt(
            agent_type: str,
            task: str,
            tuple_id: str | None = None,
            additional_principles: list[str] | None = None,
        ) -> str:
            """Build a briefing for a delegate agent (implementer, researcher, reviewer, tester, planner).

            Args:
                agent_type: Role the delegate plays
                task: What the delegate must do
                tuple_id: Optional tuple whose state is shared with the delegate
                additional_principles: Extra principle names to inline
            """
            return _run(
                kernel.format_prompt,
                agent_type=agent_type, task=task, tuple_id=tuple_id,
                additional_principles=additional_principles,
            )

        return [tuple_init, tuple_get, tuple_update, route_command, evaluate_gradient, format_prompt]
