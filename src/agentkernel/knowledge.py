"""
Knowledge lookups over the resolved asset directories.

  principles/                          markdown principle documents
  agents/core/<name>.md                agent definitions
  commands/<name>.md                   command instructions
  commands/metadata.yaml               command categories (`commands:` mapping)
  skills/<name>/                       skill checklists
  domain_packs/<domain>/patterns.yaml  domain pattern libraries
  CLAUDE.md                            the full protocol document

Unlike the router and composer, these lookups have no embedded fallback:
a missing directory surfaces as UpstreamUnavailableError, a missing
document as NotFoundError.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .errors import InvalidArgumentError, KernelError, NotFoundError, UpstreamUnavailableError
from .resources import AssetResolver

logger = logging.getLogger(__name__)

PRINCIPLES_DIR = "principles"
AGENTS_DIR = "agents/core"
COMMANDS_DIR = "commands"
COMMAND_METADATA = "commands/metadata.yaml"
SKILLS_DIR = "skills"
DOMAIN_PACKS_DIR = "domain_packs"
PROTOCOL_DOCUMENT = "CLAUDE.md"

COMMAND_CATEGORIES = ("primitive", "process", "alias", "all")
SKILL_FILES = ("SKILL.md", "README.md", "checklist.md")
SAFE_NAME = re.compile(r"[\w.-]+")


def _checked_name(value: str, kind: str) -> str:
    if not isinstance(value, str) or not SAFE_NAME.fullmatch(value) or value.startswith("."):
        raise InvalidArgumentError(f"Invalid {kind} name: {value!r}")
    return value


class KnowledgeBase:
    def __init__(self, resolver: AssetResolver):
        self.resolver = resolver

    # ── Principles ───────────────────────────────────────────

    def list_principles(self) -> list[str]:
        return [p.stem for p in self.resolver.list_files(PRINCIPLES_DIR, ".md")]

    def get_principle(self, name: str) -> dict:
        """Exact filename match first, then the first document mentioning the name."""
        if not name:
            raise InvalidArgumentError("No principle name provided")

        files = self.resolver.list_files(PRINCIPLES_DIR, ".md")
        exact = next((p for p in files if p.stem == name), None)
        if exact is not None:
            return self._document(name, exact)

        needle = name.lower()
        for path in files:
            content = self._read(path)
            if content is not None and needle in content.lower():
                return {"name": name, "filename": path.name, "content": content}

        raise NotFoundError(f"Principle '{name}' not found")

    def search_principles(self, keyword: str) -> list[str]:
        if not keyword:
            raise InvalidArgumentError("No keyword provided")

        needle = keyword.lower()
        matches = []
        for path in self.resolver.list_files(PRINCIPLES_DIR, ".md"):
            content = self._read(path)
            if content is not None and needle in content.lower():
                matches.append(path.stem)
        return matches

    # ── Agents and commands ──────────────────────────────────

    def get_agent(self, name: str) -> dict:
        _checked_name(name, "agent")
        path = self.resolver.resolve_path(f"{AGENTS_DIR}/{name}.md")
        return self._document(name, path)

    def get_command(self, name: str) -> dict:
        _checked_name(name, "command")
        try:
            path = self.resolver.resolve_path(f"{COMMANDS_DIR}/{name}.md")
        except NotFoundError:
            raise NotFoundError(f"Command '{name}' not found") from None
        return self._document(name, path)

    def list_commands(self, category: str | None = None) -> list[str]:
        """
        Command names, optionally filtered by their metadata `type`.

        Without a category (or with "all") every command document is listed.
        With one, names come from the `commands:` mapping of the metadata
        file; if that file is missing or unreadable, every command is listed.
        """
        if category is not None and category not in COMMAND_CATEGORIES:
            valid = ", ".join(COMMAND_CATEGORIES)
            raise InvalidArgumentError(f"Invalid category '{category}'. Must be one of: {valid}")

        commands = [
            p.stem for p in self.resolver.list_files(COMMANDS_DIR, ".md")
            if p.name != "README.md"
        ]
        if category is None or category == "all":
            return commands

        try:
            metadata = self.resolver.load_yaml(COMMAND_METADATA)
        except KernelError as e:
            logger.debug(f"Command metadata unavailable ({e}), listing all commands")
            return commands

        entries = metadata.get("commands") if isinstance(metadata, dict) else None
        if not isinstance(entries, dict):
            return []
        return [
            name for name, entry in entries.items()
            if isinstance(entry, dict) and entry.get("type") == category
        ]

    # ── Skills, domain packs, protocol ───────────────────────

    def load_skill(self, skill_name: str) -> dict:
        """First of SKILL.md, README.md, checklist.md, <name>.md in the skill directory."""
        _checked_name(skill_name, "skill")
        try:
            directory = self.resolver.resolve_dir(f"{SKILLS_DIR}/{skill_name}")
        except UpstreamUnavailableError:
            raise NotFoundError(f"Skill '{skill_name}' not found") from None

        for filename in (*SKILL_FILES, f"{skill_name}.md"):
            path = directory / filename
            if path.is_file():
                return self._document(skill_name, path)

        raise NotFoundError(f"Skill '{skill_name}' not found")

    def get_dslp_pattern(self, domain: str, pattern_name: str) -> dict:
        _checked_name(domain, "domain")
        if not pattern_name:
            raise InvalidArgumentError("No pattern name provided")

        asset = f"{DOMAIN_PACKS_DIR}/{domain}/patterns.yaml"
        try:
            patterns = self.resolver.load_yaml(asset)
        except NotFoundError:
            raise NotFoundError(f"Domain '{domain}' not found") from None

        if not isinstance(patterns, dict) or pattern_name not in patterns:
            raise NotFoundError(f"Pattern '{pattern_name}' not found in domain '{domain}'")
        return {"domain": domain, "pattern_name": pattern_name, "pattern": patterns[pattern_name]}

    def list_dslp_domains(self) -> list[str]:
        """Domain pack names; empty when no domain_packs directory exists."""
        try:
            return self.resolver.list_dirs(DOMAIN_PACKS_DIR)
        except UpstreamUnavailableError:
            return []

    def get_claude_md(self) -> dict:
        try:
            path = self.resolver.resolve_path(PROTOCOL_DOCUMENT)
        except NotFoundError:
            raise NotFoundError(f"{PROTOCOL_DOCUMENT} not found") from None
        return self._document(path.stem, path)

    def _document(self, name: str, path: Path) -> dict:
        content = self._read(path)
        if content is None:
            raise NotFoundError(f"Document '{path.name}' could not be read")
        return {"name": name, "filename": path.name, "content": content}

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None
