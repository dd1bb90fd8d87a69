"""
Command Router — maps a free-text intent to one reasoning primitive.

Routing is first-match-wins over an ordered rule list: the first rule with
any pattern matching the intent (case-insensitive) decides. Rule order is
part of the contract; callers rely on the same intent always routing to
the same primitive.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import yaml

from .defaults import load_default_primitives
from .errors import KernelError
from .models import Primitive, RouteResult, Slot, ThinkingTuple
from .registry import PrimitiveRegistry
from .resources import AssetResolver
from .store import TupleStore

logger = logging.getLogger(__name__)

METADATA_ASSET = "commands/metadata.yaml"
FALLBACK_PRIMITIVE = "explore"
FALLBACK_RATIONALE = "No specific intent detected; defaulting to exploration"
PASS_MARKER = "PASS"


def has_pass_marker(entries: list[str]) -> bool:
    """True if any check entry records a pass (case-insensitive)."""
    return any(PASS_MARKER in entry.upper() for entry in entries)


@dataclass(frozen=True)
class RoutingRule:
    patterns: tuple[re.Pattern, ...]
    primitive: str
    rationale: str

    @classmethod
    def compile(cls, patterns: list[str], primitive: str, rationale: str) -> RoutingRule:
        return cls(
            patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
            primitive=primitive,
            rationale=rationale,
        )

    def matches(self, intent: str) -> bool:
        return any(p.search(intent) for p in self.patterns)


ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule.compile(
        ["explor", "search", "find", "discover", "option", "alternative"],
        "explore",
        "Task requires divergent exploration of solution space",
    ),
    RoutingRule.compile(
        ["understand", "explain", "how", "what is", "mental model", "learn"],
        "understand",
        "Task requires building understanding before acting",
    ),
    RoutingRule.compile(
        ["decompos", "break down", "split", "component", "subtask"],
        "decompose",
        "Task requires breaking into smaller parts",
    ),
    RoutingRule.compile(
        ["compar", "tradeoff", "vs", "versus", "which", "what.if", "evaluat"],
        "what-if",
        "Task requires comparing alternatives",
    ),
    RoutingRule.compile(
        ["validat", "verify", "check", "test", "correct", "prove"],
        "validate",
        "Task requires verification of claims",
    ),
    RoutingRule.compile(
        ["observ", "record", "capture", "log", "what happened"],
        "observe",
        "Task requires capturing observations without interpretation",
    ),
    RoutingRule.compile(
        ["trac", "why", "cause", "because", "root cause", "debug"],
        "trace",
        "Task requires following causal chains",
    ),
    RoutingRule.compile(
        ["hypothes", "theory", "might be", "could be", "suspect"],
        "hypothesis",
        "Task requires generating testable explanations",
    ),
    RoutingRule.compile(
        ["consolidat", "synthesiz", "summariz", "gather"],
        "consolidate",
        "Task requires synthesizing scattered knowledge",
    ),
    RoutingRule.compile(
        ["specif", "define", "contract", "requirement", "formal"],
        "specify",
        "Task requires creating formal specification",
    ),
    RoutingRule.compile(
        ["design", "architect", "plan", "structur"],
        "design",
        "Task requires designing a solution approach",
    ),
    RoutingRule.compile(
        ["invariant", "must be true", "constraint", "rule"],
        "invariant",
        "Task requires identifying behavioral invariants",
    ),
    RoutingRule.compile(
        ["reconcil", "fix", "converge", "align", "drift"],
        "reconcile",
        "Task requires converging violations back to compliance",
    ),
    RoutingRule.compile(
        ["reflect", "meta", "stuck", "pattern", "approach"],
        "reflect",
        "Task requires metacognitive analysis of progress",
    ),
    RoutingRule.compile(
        ["implement", "build", "create", "write", "code", "add"],
        "implement",
        "Task requires writing code or creating artifacts",
    ),
)


class CommandRouter:
    """
    Decides which primitive to run next.

    The primitive catalog is read from the project's command metadata on
    every call so edits are picked up; the embedded catalog stands in when
    no metadata is available.
    """

    def __init__(
        self,
        resolver: AssetResolver | None = None,
        store: TupleStore | None = None,
        rules: tuple[RoutingRule, ...] | list[RoutingRule] = ROUTING_RULES,
    ):
        self.resolver = resolver
        self.store = store
        self.rules = tuple(rules)

    def catalog(self) -> PrimitiveRegistry:
        if self.resolver is not None:
            try:
                registry = PrimitiveRegistry()
                if registry.load_from_yaml(self.resolver.resolve_path(METADATA_ASSET)):
                    return registry
                logger.debug(f"{METADATA_ASSET} has no primitives, using embedded catalog")
            except KernelError as e:
                logger.debug(f"Command metadata unavailable ({e}), using embedded catalog")
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Ignoring command metadata: {e}")
        return load_default_primitives()

    def match(self, intent: str) -> tuple[str, str]:
        """Return (primitive, rationale) for the first matching rule."""
        for rule in self.rules:
            if rule.matches(intent):
                return rule.primitive, rule.rationale
        return FALLBACK_PRIMITIVE, FALLBACK_RATIONALE

    def route(self, intent: str, tuple_id: str | None = None) -> RouteResult:
        primitive_name, rationale = self.match(intent or "")
        primitive = self.catalog().get(primitive_name) or Primitive(
            name=primitive_name, slot=Slot.CONSTRAINTS.value, mode="unknown",
        )

        if tuple_id and self.store is not None:
            tup = self.store.find(tuple_id)
            if tup is not None:
                note = self._context_note(tup, primitive_name)
                if note:
                    rationale = f"{rationale} Note: {note}"

        logger.debug(f"Routed {intent!r} -> {primitive_name}")
        return RouteResult(
            primitive=primitive_name,
            slot=primitive.slot,
            mode=primitive.mode,
            description=primitive.description,
            local_check=primitive.local_check,
            execution_hints=primitive.execution_hints,
            rationale=rationale,
        )

    @staticmethod
    def _context_note(tup: ThinkingTuple, primitive: str) -> str:
        # Later checks overwrite earlier notes; only one advisory is kept.
        note = ""
        if has_pass_marker(tup.check):
            note = "Tuple check has PASS entries - consider if invariant is satisfied."
        if not tup.constraints:
            note = "Tuple constraints empty - exploration recommended first."
        if not tup.invariant and primitive != "understand":
            note = "No invariant defined yet - consider using 'understand' or 'decompose' first."
        return note
