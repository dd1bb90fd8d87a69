"""
Prompt Composer — assembles delegate briefings from role profiles + guidance.

Resolves the role, inlines excerpts of its guiding principles, optionally
injects live Thinking Tuple context, and appends the output contract and
the task.
"""

from __future__ import annotations

import logging
import math
import re

import yaml

from .defaults import GUIDANCE, load_default_roles
from .errors import KernelError, NotFoundError, UpstreamUnavailableError
from .models import FormattedPrompt, RoleProfile, ThinkingTuple
from .registry import RoleRegistry
from .resources import AssetResolver
from .store import TupleStore

logger = logging.getLogger(__name__)

ROLE_REGISTRY_ASSET = "agents/registry.yaml"
ROLE_DOCUMENT_ASSET = "agents/core/{name}.md"
GUIDANCE_DIR_ASSET = "principles"

EMPTY_SLOT = "(none yet)"
TRUNCATION_MARKER = "..."

OUTPUT_TEMPLATE = """## Output Format

Structure your response for Thinking Tuple integration:

```yaml
findings:
  summary: "Brief summary of what you accomplished"
  details: []

tuple_updates:
  constraints_discovered: []
  invariant_progress: ""
  evidence_layer: 1-4

handoff:
  next_agent: ""
  context: ""
```
"""


class PromptComposer:
    """
    Assembles a self-contained briefing for a delegate role.

    Composition:
    1. Role header (description + focus areas)
    2. Active principles, inlined as bounded excerpts
    3. Thinking Tuple context (constraints, invariant, check, progress)
    4. Output contract the delegate fills in
    5. The task, verbatim
    """

    def __init__(
        self,
        resolver: AssetResolver | None = None,
        store: TupleStore | None = None,
        excerpt_chars: int = 500,
        chars_per_token: int = 4,
    ):
        self.resolver = resolver
        self.store = store
        self.excerpt_chars = excerpt_chars
        self.chars_per_token = chars_per_token
        self.default_roles = load_default_roles()

    def compose(
        self,
        agent_type: str,
        task: str,
        tuple_id: str | None = None,
        additional_principles: list[str] | None = None,
    ) -> FormattedPrompt:
        role = self.resolve_role(agent_type)
        principle_names = list(role.principles) + list(additional_principles or [])

        sections = [f"## Cognitive Profile: {agent_type}", f"**Role**: {role.description}"]
        if role.focus:
            sections.append(f"**Focus**: {', '.join(role.focus)}")

        guidance = self._load_guidance(principle_names)
        if guidance:
            sections.append(
                "## Active Principles\n\nThese principles guide your reasoning:\n" + guidance
            )

        tup = self.store.find(tuple_id) if tuple_id and self.store is not None else None
        if tup is not None:
            sections.append(self._tuple_context(tup))

        sections.append(OUTPUT_TEMPLATE)

        # Sections are separated by exactly one blank line; bodies stay verbatim.
        header = "\n\n".join(s.strip("\n") for s in sections)
        prompt = f"{header}\n\n## Task\n\n{task}"

        return FormattedPrompt(
            prompt=prompt,
            agent_type=agent_type,
            principles_loaded=principle_names,
            tuple_id=tuple_id or None,
            estimated_tokens=math.ceil(len(prompt) / self.chars_per_token),
        )

    def resolve_role(self, agent_type: str) -> RoleProfile:
        """Registry file, then a standalone role document, then embedded defaults."""
        if self.resolver is not None:
            role = self._role_from_registry(agent_type) or self._role_from_document(agent_type)
            if role is not None:
                return role

        role = self.default_roles.get(agent_type)
        if role is None:
            available = ", ".join(self.default_roles.list_all())
            raise NotFoundError(
                f"Unknown agent type: '{agent_type}'. "
                f"Available in registry or defaults: {available}"
            )
        return role

    def _role_from_registry(self, agent_type: str) -> RoleProfile | None:
        try:
            path = self.resolver.resolve_path(ROLE_REGISTRY_ASSET)
        except KernelError:
            return None

        registry = RoleRegistry()
        try:
            registry.load_from_yaml(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring role registry {path}: {e}")
            return None
        return registry.get(agent_type)

    def _role_from_document(self, agent_type: str) -> RoleProfile | None:
        if not re.fullmatch(r"[\w.-]+", agent_type) or agent_type.startswith("."):
            return None
        try:
            path = self.resolver.resolve_path(ROLE_DOCUMENT_ASSET.format(name=agent_type))
            return RoleProfile.from_markdown(path, name=agent_type)
        except (KernelError, OSError):
            return None

    def _load_guidance(self, names: list[str]) -> str:
        if not names:
            return ""

        try:
            if self.resolver is None:
                raise UpstreamUnavailableError("No asset resolver configured")
            files = self.resolver.list_files(GUIDANCE_DIR_ASSET, ".md")
        except UpstreamUnavailableError:
            logger.debug("Guidance directory unavailable, using embedded summaries")
            return "".join(
                f"\n### {name}\n{GUIDANCE[name]}\n" for name in names if name in GUIDANCE
            )

        contents = []
        for path in files:
            try:
                contents.append(path.read_text(encoding="utf-8"))
            except OSError as e:
                logger.warning(f"Skipping unreadable guidance file {path}: {e}")

        block = ""
        for name in names:
            needle = name.lower()
            content = next((c for c in contents if needle in c.lower()), None)
            if content is not None:
                block += f"\n### {name}\n{self._excerpt(content)}\n"
        return block

    def _excerpt(self, content: str) -> str:
        if len(content) <= self.excerpt_chars:
            return content
        return content[: self.excerpt_chars] + TRUNCATION_MARKER

    @staticmethod
    def _tuple_context(tup: ThinkingTuple) -> str:
        def bullets(items: list[str]) -> str:
            return "\n".join(f"- {item}" for item in items) if items else EMPTY_SLOT

        return (
            "## Thinking Tuple Context\n\n"
            f"**Constraints** (what we know):\n{bullets(tup.constraints)}\n\n"
            f"**Invariant** (what must be true at end):\n{bullets(tup.invariant)}\n\n"
            f"**Check** (verification status):\n{bullets(tup.check)}\n\n"
            f"**Iteration**: {tup.iteration} | **Status**: {tup.status.value}"
        )
