"""
Agent Kernel — Embedded defaults

Used whenever a project (and the bundled resources) carry no metadata of
their own, so the router and composer work with no external state:

  1. PRIMITIVES: the router's primitive catalog, in routing order
  2. ROLES: default delegate profiles
  3. GUIDANCE: one-paragraph principle summaries
"""

PRIMITIVES = {
    "explore": {
        "slot": "constraints",
        "mode": "divergent_exploration",
        "description": "Systematically explore solution space",
        "local_check": "New options or insights discovered",
        "execution_hints": {"parallelizable": True, "max_agents": 5, "model_preference": "haiku"},
    },
    "understand": {
        "slot": "invariant",
        "mode": "mental_model_building",
        "description": "Build understanding of concepts",
        "local_check": "Mental model articulated clearly",
        "execution_hints": {"parallelizable": False},
    },
    "decompose": {
        "slot": "invariant",
        "mode": "structural_breakdown",
        "description": "Break problem into sub-components",
        "local_check": "Components identified with dependencies",
        "execution_hints": {"parallelizable": False},
    },
    "what-if": {
        "slot": "strategy",
        "mode": "comparative_analysis",
        "description": "Compare alternatives and tradeoffs",
        "local_check": "Alternatives ranked with rationale",
        "execution_hints": {"parallelizable": True, "max_agents": 3},
    },
    "validate": {
        "slot": "check",
        "mode": "verification",
        "description": "Verify claims with evidence",
        "local_check": "Evidence level documented (Layer 1-4)",
        "execution_hints": {"parallelizable": True, "max_agents": 3},
    },
    "observe": {
        "slot": "constraints",
        "mode": "observation",
        "description": "Capture observations without interpretation",
        "local_check": "Observations recorded factually",
        "execution_hints": {"parallelizable": False},
    },
    "trace": {
        "slot": "constraints",
        "mode": "causal_analysis",
        "description": "Follow causal chains forward or backward",
        "local_check": "Causal chain documented",
        "execution_hints": {"parallelizable": False},
    },
    "hypothesis": {
        "slot": "constraints",
        "mode": "hypothesis_generation",
        "description": "Generate testable explanations",
        "local_check": "Hypotheses are testable and falsifiable",
        "execution_hints": {"parallelizable": True, "max_agents": 3},
    },
    "consolidate": {
        "slot": "constraints",
        "mode": "knowledge_synthesis",
        "description": "Synthesize scattered knowledge",
        "local_check": "Knowledge organized and accessible",
        "execution_hints": {"parallelizable": False},
    },
    "specify": {
        "slot": "invariant",
        "mode": "formal_specification",
        "description": "Create formal specification",
        "local_check": "Spec is precise and testable",
        "execution_hints": {"parallelizable": False},
    },
    "design": {
        "slot": "strategy",
        "mode": "solution_design",
        "description": "Design a solution approach",
        "local_check": "Design addresses constraints and invariant",
        "execution_hints": {"parallelizable": False},
    },
    "invariant": {
        "slot": "check",
        "mode": "invariant_identification",
        "description": "Identify behavioral invariants",
        "local_check": "Invariants are verifiable",
        "execution_hints": {"parallelizable": False},
    },
    "reconcile": {
        "slot": "check",
        "mode": "convergence",
        "description": "Converge violations back to compliance",
        "local_check": "Delta reduced toward zero",
        "execution_hints": {"parallelizable": False},
    },
    "reflect": {
        "slot": "check",
        "mode": "metacognitive_analysis",
        "description": "Analyze reasoning progress",
        "local_check": "Stuck patterns identified or progress confirmed",
        "execution_hints": {"parallelizable": False},
    },
    "implement": {
        "slot": "constraints",
        "mode": "artifact_creation",
        "description": "Write code or create artifacts",
        "local_check": "Artifacts created and functional",
        "execution_hints": {"parallelizable": False},
    },
}


ROLES = {
    "implementer": {
        "description": "Implementation specialist for writing clean, efficient code",
        "principles": ["defensive-programming", "error-handling-duality"],
        "skills": ["code-review"],
        "focus": ["code generation", "refactoring", "optimization"],
    },
    "researcher": {
        "description": "Deep research and information gathering specialist",
        "principles": ["progressive-evidence", "execution-boundary"],
        "skills": ["research"],
        "focus": ["code analysis", "pattern recognition", "documentation"],
    },
    "reviewer": {
        "description": "Code review and quality assurance specialist",
        "principles": ["defensive-programming", "testing-anti-patterns"],
        "skills": ["code-review"],
        "focus": ["code review", "quality assurance", "best practices"],
    },
    "tester": {
        "description": "Comprehensive testing and quality assurance specialist",
        "principles": ["testing-anti-patterns", "cross-boundary-testing"],
        "skills": ["testing-workflow"],
        "focus": ["test writing", "edge cases", "coverage analysis"],
    },
    "planner": {
        "description": "Strategic planning and task orchestration agent",
        "principles": ["thinking-tuple"],
        "skills": [],
        "focus": ["task decomposition", "strategy planning", "coordination"],
    },
}

# Older clients ask for "coder".
ROLE_ALIASES = {
    "coder": "implementer",
}


GUIDANCE = {
    "defensive-programming": (
        "Fail fast and visibly. Silent failures hide bugs. "
        "Validate at startup, not on first use."
    ),
    "error-handling-duality": (
        "Distinguish between operational errors (retry) and programmer errors (crash). "
        "Handle each appropriately."
    ),
    "progressive-evidence": (
        "Execution completion is not success. Verify through layers: "
        "status codes, then payloads, then logs, then ground truth."
    ),
    "execution-boundary": "Reading code is not verifying it works. Test at execution boundaries.",
    "testing-anti-patterns": (
        "Avoid: testing implementation details, over-mocking, testing trivial code, "
        "brittle assertions."
    ),
    "cross-boundary-testing": "Test across service boundaries with contract tests and integration tests.",
    "thinking-tuple": "Structure reasoning as (Constraints, Invariant, Principles, Strategy, Check).",
}
