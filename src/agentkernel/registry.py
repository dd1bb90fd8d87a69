"""
Primitive Registry and Role Registry.

PrimitiveRegistry: Ordered catalog of reasoning primitives for the router.
RoleRegistry:      Library of delegate role profiles for the prompt composer.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .models import Primitive, RoleProfile, Slot

logger = logging.getLogger(__name__)


# ── Primitive Registry ───────────────────────────────────────

class PrimitiveRegistry:
    """
    Catalog of reasoning primitives.

    Insertion order is preserved; it is the order callers see in listings.
    """

    def __init__(self):
        self._primitives: dict[str, Primitive] = {}

    def register(self, primitive: Primitive) -> None:
        self._primitives[primitive.name] = primitive

    def load_from_dict(self, primitives: dict[str, dict], source: str = "dict") -> int:
        """
        Load primitives from a dict (overrides existing entries).

        Format:
            {
                "explore": {
                    "slot": "Constraints",
                    "mode": "divergent_exploration",
                    "description": "...",
                    "local_check": "...",
                    "execution_hints": {"parallelizable": True, "max_agents": 5},
                },
                ...
            }
        """
        count = 0
        for name, entry in primitives.items():
            if not isinstance(entry, dict):
                logger.warning(f"Primitive '{name}' is not a mapping, skipping")
                continue
            self.register(self._entry_to_primitive(name, entry))
            count += 1

        logger.debug(f"Loaded {count} primitives from {source}")
        return count

    def load_from_yaml(self, path: str | Path) -> int:
        """Load the `primitives:` mapping of a command metadata file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        primitives = data.get("primitives") if isinstance(data, dict) else None
        if not isinstance(primitives, dict):
            raise ValueError(f"{path} has no 'primitives' mapping")
        return self.load_from_dict(primitives, source=str(path))

    def get(self, name: str) -> Primitive | None:
        return self._primitives.get(name)

    def list_all(self) -> list[str]:
        return list(self._primitives.keys())

    @property
    def count(self) -> int:
        return len(self._primitives)

    @staticmethod
    def _entry_to_primitive(name: str, entry: dict) -> Primitive:
        slot = str(entry.get("slot", Slot.CONSTRAINTS.value)).strip().lower()
        return Primitive(
            name=name,
            slot=slot,
            mode=entry.get("mode", "unknown"),
            description=entry.get("description", ""),
            local_check=entry.get("local_check", ""),
            execution_hints=dict(entry.get("execution_hints") or {}),
        )


# ── Role Registry ────────────────────────────────────────────

class RoleRegistry:
    """
    Library of delegate role profiles, with name aliases.

    The composer looks up who the delegate is before briefing it.
    """

    def __init__(self):
        self._roles: dict[str, RoleProfile] = {}
        self._aliases: dict[str, str] = {}

    def register(self, role: RoleProfile) -> None:
        self._roles[role.name] = role

    def alias(self, alias: str, target: str) -> None:
        self._aliases[alias] = target

    def load_from_dict(self, roles: dict[str, dict], source: str = "curated") -> int:
        """Load roles from a dict keyed by role name (overrides existing entries)."""
        count = 0
        for name, entry in roles.items():
            if not isinstance(entry, dict):
                logger.warning(f"Role '{name}' is not a mapping, skipping")
                continue
            self.register(self._entry_to_role(name, entry, source))
            count += 1

        logger.debug(f"Loaded {count} roles from {source}")
        return count

    def load_from_yaml(self, path: str | Path) -> int:
        """Load the `agents:` mapping of an agent registry file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        agents = data.get("agents") if isinstance(data, dict) else None
        if not isinstance(agents, dict):
            raise ValueError(f"{path} has no 'agents' mapping")
        return self.load_from_dict(agents, source=str(path))

    def get(self, name: str) -> RoleProfile | None:
        role = self._roles.get(name)
        if role is None and name in self._aliases:
            role = self._roles.get(self._aliases[name])
        return role

    def list_all(self) -> list[str]:
        return list(self._roles.keys())

    @property
    def count(self) -> int:
        return len(self._roles)

    @staticmethod
    def _entry_to_role(name: str, entry: dict, source: str) -> RoleProfile:
        # Registry files written for other tools call focus "capabilities".
        focus = entry.get("focus") or entry.get("capabilities") or []
        return RoleProfile(
            name=name,
            description=entry.get("description", name),
            principles=list(entry.get("principles") or []),
            skills=list(entry.get("skills") or []),
            focus=list(focus),
            source=source,
        )
