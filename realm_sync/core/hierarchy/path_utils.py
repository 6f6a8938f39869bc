"""
Ancestry utilities for realm hierarchy nodes.

Provides functions for:
- Walking parent back-references (O(depth), never a tree search)
- Resolving the organization that owns a node
- Building materialized paths for logging and error context
"""

from typing import Collection, Iterator, List, Optional

from realm_sync.core.hierarchy.node import HierarchyNode, NodeVariant


def iter_ancestors(node: HierarchyNode) -> Iterator[HierarchyNode]:
    """
    Yield the node's ancestors, nearest first.

    Examples:
        >>> [n.node_id for n in iter_ancestors(repo)]   # doctest: +SKIP
        ['team-7', 'org-42', '0']
    """
    current = node.parent
    seen = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.parent


def find_nearest_ancestor(
    node: HierarchyNode,
    variants: Collection[NodeVariant]
) -> Optional[HierarchyNode]:
    """
    Find the nearest ancestor whose variant is in `variants`.

    Args:
        node: Node to start from (not itself considered)
        variants: Acceptable ancestor variants

    Returns:
        The ancestor node, or None if the walk reaches the root without a match
    """
    for ancestor in iter_ancestors(node):
        if ancestor.variant in variants:
            return ancestor
    return None


def find_owning_organization(node: HierarchyNode) -> Optional[HierarchyNode]:
    """Nearest SovereignBranch ancestor, i.e. the GitHub organization owning the node."""
    return find_nearest_ancestor(node, (NodeVariant.SOVEREIGN_BRANCH,))


def build_path_ids(node: HierarchyNode) -> List[str]:
    """
    Build array of node IDs from root to node.

    Examples:
        >>> build_path_ids(repo)   # doctest: +SKIP
        ['0', 'org-42', 'team-7', 'sd-3']
    """
    path_ids = [ancestor.node_id for ancestor in iter_ancestors(node)]
    path_ids.reverse()
    path_ids.append(node.node_id)
    return path_ids


def build_path(node: HierarchyNode) -> str:
    """
    Build a materialized path for a node.

    Examples:
        >>> build_path(repo)   # doctest: +SKIP
        '/0/org-42/team-7/sd-3'
    """
    return "/" + "/".join(build_path_ids(node))


def calculate_depth(node: HierarchyNode) -> int:
    """Depth of the node (0 for the root)."""
    return sum(1 for _ in iter_ancestors(node))
