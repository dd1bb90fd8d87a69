"""
Agent Kernel — protocol orchestration for reasoning agents.

Usage:
    from agentkernel import AgentKernel, KernelConfig

    kernel = AgentKernel(KernelConfig.from_env())

    # Track a reasoning loop
    run = kernel.tuple_init("add auth")
    step = kernel.route_command("explore login options", run["id"])
    verdict = kernel.evaluate_gradient(run["id"], knowledge=True)

    # Brief a delegate
    briefing = kernel.format_prompt("researcher", "Survey OAuth providers", run["id"])

    # Or hand the operations to a LangChain agent
    tools = kernel.as_tools()
"""

__version__ = "0.1.0"

from .models import (
    FormattedPrompt,
    GradientEntry,
    GradientReport,
    GradientVerdict,
    Primitive,
    RoleProfile,
    RouteResult,
    Slot,
    SlotAction,
    ThinkingTuple,
    TupleStatus,
)
from .errors import (
    InvalidArgumentError,
    KernelError,
    NotFoundError,
    UpstreamUnavailableError,
)
from .config import KernelConfig
from .resources import AssetResolver
from .registry import PrimitiveRegistry, RoleRegistry
from .store import FileBackend, MemoryBackend, TupleStore
from .router import CommandRouter, RoutingRule, ROUTING_RULES
from .gradient import GradientEvaluator, MAX_ITERATIONS
from .composer import PromptComposer
from .knowledge import KnowledgeBase
from .kernel import AgentKernel

__all__ = [
    # Core
    "AgentKernel",
    "CommandRouter",
    "GradientEvaluator",
    "PromptComposer",
    "TupleStore",
    # Storage
    "FileBackend",
    "MemoryBackend",
    # Assets
    "AssetResolver",
    "KnowledgeBase",
    "PrimitiveRegistry",
    "RoleRegistry",
    # Config
    "KernelConfig",
    "MAX_ITERATIONS",
    "ROUTING_RULES",
    "RoutingRule",
    # Models
    "FormattedPrompt",
    "GradientEntry",
    "GradientReport",
    "Primitive",
    "RoleProfile",
    "RouteResult",
    "ThinkingTuple",
    # Enums
    "GradientVerdict",
    "Slot",
    "SlotAction",
    "TupleStatus",
    # Errors
    "InvalidArgumentError",
    "KernelError",
    "NotFoundError",
    "UpstreamUnavailableError",
]
