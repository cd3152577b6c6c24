"""
Entity roles and the sitemap priorities derived from them.

Hubs (airports, airlines) rank highest, editorial content (blogs) next, and
route leaves last, with a small boost for routes backed by more data.
"""

from enum import StrEnum
from types import MappingProxyType

import attrs

MAX_QUALITY_BOOST = 0.2


class EntityRole(StrEnum):
    HUB = "hub"
    LEAF = "leaf"
    EDITORIAL = "editorial"


@attrs.frozen
class EntityRoleInfo:
    role: EntityRole
    priority: int  # 0-100, higher is more important
    description: str


ENTITY_ROLES = MappingProxyType(
    {
        EntityRole.HUB: EntityRoleInfo(
            role=EntityRole.HUB,
            priority=100,
            description="Authority hubs (airports, airlines)",
        ),
        EntityRole.LEAF: EntityRoleInfo(
            role=EntityRole.LEAF,
            priority=50,
            description="Route pages",
        ),
        EntityRole.EDITORIAL: EntityRoleInfo(
            role=EntityRole.EDITORIAL,
            priority=75,
            description="Editorial content (blogs)",
        ),
    },
)

ENTITY_KIND_ROLES = MappingProxyType(
    {
        "airport": EntityRole.HUB,
        "airline": EntityRole.HUB,
        "route": EntityRole.LEAF,
        "blog": EntityRole.EDITORIAL,
    },
)


def get_entity_role(entity_kind: str) -> EntityRole:
    """Return the role of an entity kind; unknown kinds are leaves."""
    return ENTITY_KIND_ROLES.get(entity_kind, EntityRole.LEAF)


def get_sitemap_priority(role: EntityRole, quality_score: int = 0) -> float:
    """
    Get the sitemap priority (0.0 to 1.0) for a role.

    Leaves get a boost of a tenth of their quality score, at most 0.2.
    """
    base_priority = ENTITY_ROLES[role].priority / 100
    if role == EntityRole.LEAF:
        quality_boost = min(quality_score / 10, MAX_QUALITY_BOOST)
        return min(base_priority + quality_boost, 1.0)
    return base_priority
