"""
Variant constraint table.

Which parent variants each variant may hang under:

    SupremeEntity                      -> must be the root
    SovereignBranch                    -> SupremeEntity
    team-like (SD / IGO / EIC / CG)    -> SovereignBranch or another team-like node
    Entity                             -> team-like

Pairings are checked while traversing, never when a tree is built, so a declared
chart with a bad branch can still be exported around that branch.
"""

from typing import Dict, FrozenSet, Optional

from realm_sync.core.exceptions import ConstraintViolation
from realm_sync.core.hierarchy.node import (
    HierarchyNode,
    NodeVariant,
    RemoteKind,
    REMOTE_KINDS,
    TEAM_VARIANTS,
)


ALLOWED_PARENTS: Dict[NodeVariant, FrozenSet[NodeVariant]] = {
    NodeVariant.SUPREME_ENTITY: frozenset(),
    NodeVariant.SOVEREIGN_BRANCH: frozenset({NodeVariant.SUPREME_ENTITY}),
    NodeVariant.SUBORDINATE_DIVISION: frozenset({NodeVariant.SOVEREIGN_BRANCH}) | TEAM_VARIANTS,
    NodeVariant.INTER_GOV_ORG: frozenset({NodeVariant.SOVEREIGN_BRANCH}) | TEAM_VARIANTS,
    NodeVariant.ENTERPRISE_INTEGRATION_CLASS: frozenset({NodeVariant.SOVEREIGN_BRANCH}) | TEAM_VARIANTS,
    NodeVariant.COOPERATIVE_GROUP: frozenset({NodeVariant.SOVEREIGN_BRANCH}) | TEAM_VARIANTS,
    NodeVariant.ENTITY: TEAM_VARIANTS,
}

_KIND_LABELS: Dict[RemoteKind, str] = {
    RemoteKind.NONE: "root",
    RemoteKind.ORGANIZATION: "organization",
    RemoteKind.TEAM: "team",
    RemoteKind.REPOSITORY: "repository",
}


def is_allowed_pairing(variant: NodeVariant, parent_variant: Optional[NodeVariant]) -> bool:
    """
    Check a child/parent variant pairing.

    `parent_variant` is None for the root position, which only SupremeEntity may hold.
    """
    if parent_variant is None:
        return variant is NodeVariant.SUPREME_ENTITY
    return parent_variant in ALLOWED_PARENTS[variant]


def check_parent_variant(node: HierarchyNode) -> None:
    """
    Validate a node against its parent.

    Raises:
        ConstraintViolation: If the pairing is not in the constraint table
        ValueError: If the node's variant is unrecognized
    """
    if node.variant is None:
        raise ValueError(f"Cannot check constraints for unknown node type: {node.type_tag}")

    parent_variant = node.parent.variant if node.parent is not None else None
    if is_allowed_pairing(node.variant, parent_variant):
        return

    if node.variant is NodeVariant.SUPREME_ENTITY:
        message = f"Supreme Entity must be the root, found under {node.parent.type_tag}"
    else:
        label = _KIND_LABELS[REMOTE_KINDS[node.variant]]
        parent_label = node.parent.type_tag if node.parent is not None else None
        message = f"Invalid parent node type for {label}: {parent_label}"

    raise ConstraintViolation(
        message,
        node_id=node.node_id,
        parent_variant=node.parent.type_tag if node.parent is not None else None,
    )
