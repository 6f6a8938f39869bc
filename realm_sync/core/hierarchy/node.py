"""
Realm hierarchy node model.

A realm chart is a strict tree of typed nodes:

    SupremeEntity (synthetic root, ID "0", Parent "NA")
      -> SovereignBranch                 (GitHub organization)
         -> SubordinateDivision / InterGovOrg /
            EnterpriseIntegrationClass / CooperativeGroup   (GitHub team, nestable)
            -> Entity                    (GitHub repository, leaf)

Wire format (chart UI / API):
    {"ID": "team-7", "Parent": "org-42", "Type": "SubordinateDivision",
     "Name": "Ministry of Finance", "Children": [...]}
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union


ROOT_ID = "0"
ROOT_PARENT_ID = "NA"

# Deterministic ID prefixes for nodes correlated with a remote resource
ORG_ID_PREFIX = "org-"
TEAM_ID_PREFIX = "team-"
REPO_ID_PREFIX = "repo-"

_REMOTE_ID_PATTERN = re.compile(r"^(org|team|repo)-(\d+)$")
_WHITESPACE_PATTERN = re.compile(r"\s+")


class NodeVariant(str, Enum):
    """Position of a node in the realm hierarchy."""
    SUPREME_ENTITY = "SupremeEntity"
    SOVEREIGN_BRANCH = "SovereignBranch"
    SUBORDINATE_DIVISION = "SubordinateDivision"
    INTER_GOV_ORG = "InterGovOrg"
    ENTERPRISE_INTEGRATION_CLASS = "EnterpriseIntegrationClass"
    COOPERATIVE_GROUP = "CooperativeGroup"
    ENTITY = "Entity"


class RemoteKind(str, Enum):
    """GitHub resource kind a variant maps to."""
    NONE = "none"
    ORGANIZATION = "organization"
    TEAM = "team"
    REPOSITORY = "repository"


TEAM_VARIANTS = frozenset({
    NodeVariant.SUBORDINATE_DIVISION,
    NodeVariant.INTER_GOV_ORG,
    NodeVariant.ENTERPRISE_INTEGRATION_CLASS,
    NodeVariant.COOPERATIVE_GROUP,
})

REMOTE_KINDS: Dict[NodeVariant, RemoteKind] = {
    NodeVariant.SUPREME_ENTITY: RemoteKind.NONE,
    NodeVariant.SOVEREIGN_BRANCH: RemoteKind.ORGANIZATION,
    NodeVariant.SUBORDINATE_DIVISION: RemoteKind.TEAM,
    NodeVariant.INTER_GOV_ORG: RemoteKind.TEAM,
    NodeVariant.ENTERPRISE_INTEGRATION_CLASS: RemoteKind.TEAM,
    NodeVariant.COOPERATIVE_GROUP: RemoteKind.TEAM,
    NodeVariant.ENTITY: RemoteKind.REPOSITORY,
}

# Short codes used by the chart editor
VARIANT_ALIASES: Dict[str, NodeVariant] = {
    "SE": NodeVariant.SUPREME_ENTITY,
    "SB": NodeVariant.SOVEREIGN_BRANCH,
    "SD": NodeVariant.SUBORDINATE_DIVISION,
    "IGO": NodeVariant.INTER_GOV_ORG,
    "EIC": NodeVariant.ENTERPRISE_INTEGRATION_CLASS,
    "CG": NodeVariant.COOPERATIVE_GROUP,
    "ENTITY": NodeVariant.ENTITY,
}


def parse_variant(tag: Union[str, NodeVariant, None]) -> Optional[NodeVariant]:
    """
    Resolve a Type tag to a NodeVariant.

    Accepts full variant names and the chart editor's short codes.
    Returns None for anything unrecognized so callers can report it.
    """
    if isinstance(tag, NodeVariant):
        return tag
    if not tag:
        return None
    try:
        return NodeVariant(tag)
    except ValueError:
        return VARIANT_ALIASES.get(tag)


def slugify(name: str) -> str:
    """
    Derive a GitHub team slug from a display name.

    Examples:
        >>> slugify("DevOps Team")
        'devops-team'
        >>> slugify("Ministry  of   Finance")
        'ministry-of-finance'
    """
    return _WHITESPACE_PATTERN.sub("-", name.strip().lower())


def make_node_id(prefix: str, remote_id: Union[int, str]) -> str:
    """Build a correlated node ID such as 'org-42' or 'team-7'."""
    return f"{prefix}{remote_id}"


def parse_remote_id(node_id: str, prefix: str) -> Optional[int]:
    """
    Extract the remote numeric id from a correlated node ID.

    Examples:
        >>> parse_remote_id("team-7", TEAM_ID_PREFIX)
        7
        >>> parse_remote_id("sd-1", TEAM_ID_PREFIX) is None
        True
    """
    match = _REMOTE_ID_PATTERN.match(node_id or "")
    if not match or f"{match.group(1)}-" != prefix:
        return None
    return int(match.group(2))


@dataclass(eq=False)
class HierarchyNode:
    """
    One node of a realm chart.

    `type_tag` keeps the Type exactly as supplied; `variant` is its parsed form and
    is None for unrecognized tags. `parent` is a back-reference maintained whenever
    children are attached, so ancestor walks never search the tree.
    """

    node_id: str
    type_tag: str
    name: str
    parent_id: str = ROOT_PARENT_ID
    children: List["HierarchyNode"] = field(default_factory=list)
    parent: Optional["HierarchyNode"] = field(default=None, repr=False)
    variant: Optional[NodeVariant] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.variant = parse_variant(self.type_tag)
        if self.variant is not None:
            self.type_tag = self.variant.value
        for child in self.children:
            child.parent = self

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_child(self, child: "HierarchyNode") -> "HierarchyNode":
        """Attach a child, keeping Parent and the back-reference consistent."""
        child.parent = self
        child.parent_id = self.node_id
        self.children.append(child)
        return child

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_team_like(self) -> bool:
        return self.variant in TEAM_VARIANTS

    @property
    def remote_kind(self) -> Optional[RemoteKind]:
        if self.variant is None:
            return None
        return REMOTE_KINDS[self.variant]

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def team_id(self) -> Optional[int]:
        """Remote team id when this node is a materialized team ('team-<n>')."""
        return parse_remote_id(self.node_id, TEAM_ID_PREFIX)

    def iter_subtree(self) -> Iterator["HierarchyNode"]:
        """Depth-first, parent-before-children iteration over this subtree."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the chart's JSON shape."""
        return {
            "ID": self.node_id,
            "Parent": self.parent_id,
            "Type": self.type_tag,
            "Name": self.name,
            "Children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HierarchyNode":
        """
        Build a tree from the chart's JSON shape.

        Nesting is authoritative: each child's back-reference points at the node
        it is nested under, whatever its Parent field says.
        """
        return cls(
            node_id=str(data["ID"]),
            type_tag=str(data["Type"]),
            name=str(data["Name"]),
            parent_id=str(data.get("Parent") or ROOT_PARENT_ID),
            children=[cls.from_dict(child) for child in data.get("Children") or []],
        )
