"""
Data models for Agent Kernel.

Enums, dataclasses, and type definitions used across the system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


# ── Enums ────────────────────────────────────────────────────

class TupleStatus(str, Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    STUCK = "stuck"
    SUCCESS = "success"
    LIMIT_REACHED = "limit_reached"


class Slot(str, Enum):
    """The five reasoning slots of a Thinking Tuple."""
    CONSTRAINTS = "constraints"
    INVARIANT = "invariant"
    PRINCIPLES = "principles"
    STRATEGY = "strategy"
    CHECK = "check"


class SlotAction(str, Enum):
    APPEND = "append"
    REPLACE = "replace"
    CLEAR = "clear"


class GradientVerdict(str, Enum):
    SIGNIFICANT = "significant"
    INSIGNIFICANT = "insignificant"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Thinking Tuple ───────────────────────────────────────────

@dataclass
class GradientEntry:
    """One progress observation recorded by the gradient evaluator."""
    iteration: int
    knowledge: bool
    invariant: bool
    evidence: bool
    confidence: bool
    overall: GradientVerdict
    action: str | None = None
    notes: str | None = None

    @property
    def significant(self) -> bool:
        return self.overall == GradientVerdict.SIGNIFICANT

    @property
    def fired_signals(self) -> list[str]:
        signals = ("knowledge", "invariant", "evidence", "confidence")
        return [name for name in signals if getattr(self, name)]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "iteration": self.iteration,
            "knowledge": self.knowledge,
            "invariant": self.invariant,
            "evidence": self.evidence,
            "confidence": self.confidence,
            "overall": self.overall.value,
        }
        if self.action is not None:
            data["action"] = self.action
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict) -> GradientEntry:
        return cls(
            iteration=int(data["iteration"]),
            knowledge=bool(data.get("knowledge", False)),
            invariant=bool(data.get("invariant", False)),
            evidence=bool(data.get("evidence", False)),
            confidence=bool(data.get("confidence", False)),
            overall=GradientVerdict(data.get("overall", "insignificant")),
            action=data.get("action"),
            notes=data.get("notes"),
        )


@dataclass
class ThinkingTuple:
    """
    A tracked reasoning session.

    Slots are ordered; the latest entries are the most relevant.
    `iteration` always equals `len(gradient_history)`.
    """
    id: str
    task: str

    constraints: list[str] = field(default_factory=list)
    invariant: list[str] = field(default_factory=list)
    principles: list[str] = field(default_factory=list)
    strategy: list[str] = field(default_factory=list)
    check: list[str] = field(default_factory=list)

    iteration: int = 0
    status: TupleStatus = TupleStatus.RUNNING
    gradient_history: list[GradientEntry] = field(default_factory=list)

    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def slot(self, slot: Slot) -> list[str]:
        return getattr(self, slot.value)

    def set_slot(self, slot: Slot, items: list[str]) -> None:
        setattr(self, slot.value, list(items))

    def touch(self) -> None:
        self.updated_at = utc_now()

    @property
    def significant_count(self) -> int:
        return sum(1 for g in self.gradient_history if g.significant)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task": self.task,
            "constraints": list(self.constraints),
            "invariant": list(self.invariant),
            "principles": list(self.principles),
            "strategy": list(self.strategy),
            "check": list(self.check),
            "iteration": self.iteration,
            "status": self.status.value,
            "gradient_history": [g.to_dict() for g in self.gradient_history],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ThinkingTuple:
        """Rebuild a tuple from its JSON snapshot."""
        if "id" not in data or "task" not in data:
            raise ValueError("Tuple snapshot requires 'id' and 'task' fields")

        history = [GradientEntry.from_dict(g) for g in data.get("gradient_history", [])]
        now = utc_now()
        return cls(
            id=data["id"],
            task=data["task"],
            constraints=list(data.get("constraints", [])),
            invariant=list(data.get("invariant", [])),
            principles=list(data.get("principles", [])),
            strategy=list(data.get("strategy", [])),
            check=list(data.get("check", [])),
            iteration=int(data.get("iteration", len(history))),
            status=TupleStatus(data.get("status", "running")),
            gradient_history=history,
            created_at=data.get("created_at", now),
            updated_at=data.get("updated_at", now),
        )


# ── Router catalog ───────────────────────────────────────────

@dataclass
class Primitive:
    """One named reasoning action in the router's catalog."""
    name: str
    slot: str
    mode: str
    description: str = ""
    local_check: str = ""
    execution_hints: dict = field(default_factory=dict)


@dataclass
class RouteResult:
    primitive: str
    slot: str
    mode: str
    description: str
    local_check: str
    execution_hints: dict
    rationale: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "primitive": self.primitive,
            "slot": self.slot,
            "mode": self.mode,
            "description": self.description,
            "local_check": self.local_check,
            "execution_hints": dict(self.execution_hints),
            "rationale": self.rationale,
        }


# ── Gradient evaluation ──────────────────────────────────────

@dataclass
class GradientReport:
    """What the evaluator returns after recording an observation."""
    iteration: int
    gradient: GradientEntry
    recommendation: str
    status: TupleStatus
    significant_count: int

    @property
    def should_continue(self) -> bool:
        return self.recommendation.startswith("CONTINUE")

    def to_dict(self) -> dict[str, Any]:
        return {
            "iteration": self.iteration,
            "gradient": self.gradient.to_dict(),
            "recommendation": self.recommendation,
            "status": self.status.value,
            "total_iterations": self.iteration,
            "significant_count": self.significant_count,
        }


# ── Roles and prompts ────────────────────────────────────────

@dataclass
class RoleProfile:
    """Cognitive profile of a delegate role."""
    name: str
    description: str
    principles: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    focus: list[str] = field(default_factory=list)
    source: str = "embedded"

    @classmethod
    def from_markdown(cls, path: str | Path, name: str | None = None) -> RoleProfile:
        """
        Create a RoleProfile from a standalone role-definition document.

        The description is the first top-level heading (`# ...`); when the
        document has none, the role name stands in.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Role definition not found: {path}")

        role = name or path.stem
        content = path.read_text(encoding="utf-8")
        heading = next(
            (line for line in content.splitlines() if line.startswith("# ")),
            None,
        )
        return cls(
            name=role,
            description=heading[2:].strip() if heading else role,
            source=str(path),
        )


@dataclass
class FormattedPrompt:
    prompt: str
    agent_type: str
    principles_loaded: list[str]
    tuple_id: str | None
    estimated_tokens: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "agent_type": self.agent_type,
            "principles_loaded": list(self.principles_loaded),
            "tuple_id": self.tuple_id,
            "estimated_tokens": self.estimated_tokens,
        }
