"""
Realm hierarchy model.

Usage:
    from realm_sync.core.hierarchy import HierarchyNode, NodeVariant

    root = HierarchyNode.from_dict(payload["hierarchy"])
"""

from realm_sync.core.hierarchy.node import (
    HierarchyNode,
    NodeVariant,
    RemoteKind,
    TEAM_VARIANTS,
    ROOT_ID,
    ROOT_PARENT_ID,
    ORG_ID_PREFIX,
    TEAM_ID_PREFIX,
    REPO_ID_PREFIX,
    parse_variant,
    slugify,
)
from realm_sync.core.hierarchy.constraints import (
    ALLOWED_PARENTS,
    check_parent_variant,
    is_allowed_pairing,
)
from realm_sync.core.hierarchy.results import ExportResults, ResourceCounts, ResourceKind

__all__ = [
    "HierarchyNode",
    "NodeVariant",
    "RemoteKind",
    "TEAM_VARIANTS",
    "ROOT_ID",
    "ROOT_PARENT_ID",
    "ORG_ID_PREFIX",
    "TEAM_ID_PREFIX",
    "REPO_ID_PREFIX",
    "parse_variant",
    "slugify",
    "ALLOWED_PARENTS",
    "check_parent_variant",
    "is_allowed_pairing",
    "ExportResults",
    "ResourceCounts",
    "ResourceKind",
]
