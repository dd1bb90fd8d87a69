"""
Embedded default loading utilities.

Loads the built-in primitive catalog and role profiles into registries.
"""

from __future__ import annotations

from ..registry import PrimitiveRegistry, RoleRegistry
from .embedded import GUIDANCE, PRIMITIVES, ROLE_ALIASES, ROLES

__all__ = [
    "GUIDANCE",
    "load_default_primitives",
    "load_default_roles",
]


def load_default_primitives(registry: PrimitiveRegistry | None = None) -> PrimitiveRegistry:
    """Return a PrimitiveRegistry holding the embedded catalog."""
    if registry is None:
        registry = PrimitiveRegistry()
    registry.load_from_dict(PRIMITIVES, source="embedded")
    return registry


def load_default_roles(registry: RoleRegistry | None = None) -> RoleRegistry:
    """Return a RoleRegistry holding the embedded roles and their aliases."""
    if registry is None:
        registry = RoleRegistry()
    registry.load_from_dict(ROLES, source="embedded")
    for alias, target in ROLE_ALIASES.items():
        registry.alias(alias, target)
    return registry
