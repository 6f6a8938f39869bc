"""
Hierarchy Importer.

Reads organizations and teams from GitHub and builds a realm chart snapshot:

    Structured Enterprise (SupremeEntity, ID "0")
      -> org-<id>   SovereignBranch per organization (name = login)
         -> team-<id>   team per top-level team, variant inferred from its name
            -> team-<id>   nested teams under their parent team
               -> repo-<id>   Entity per team repository (optional pass)

Only read calls are issued. Any remote failure propagates to the caller.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from realm_sync.app.config import Settings, get_settings
from realm_sync.core.hierarchy.node import (
    HierarchyNode,
    NodeVariant,
    ORG_ID_PREFIX,
    REPO_ID_PREFIX,
    ROOT_ID,
    ROOT_PARENT_ID,
    TEAM_ID_PREFIX,
    make_node_id,
)
from realm_sync.core.remote.client import RemoteResourceClient

logger = logging.getLogger(__name__)


# ==============================================================================
# Variant Inference
# ==============================================================================

# Ordered: the first keyword found in the team name wins
TEAM_NAME_KEYWORDS = (
    ("ministry", NodeVariant.SUBORDINATE_DIVISION),
    ("department", NodeVariant.SUBORDINATE_DIVISION),
    ("imperium", NodeVariant.INTER_GOV_ORG),
    ("alliance", NodeVariant.INTER_GOV_ORG),
    ("class", NodeVariant.ENTERPRISE_INTEGRATION_CLASS),
    ("cooperative", NodeVariant.COOPERATIVE_GROUP),
)


def infer_team_variant(
    name: str,
    fallback: NodeVariant = NodeVariant.ENTITY
) -> NodeVariant:
    """
    Infer a team's variant from its display name.

    Examples:
        >>> infer_team_variant("Ministry of Finance")
        <NodeVariant.SUBORDINATE_DIVISION: 'SubordinateDivision'>
        >>> infer_team_variant("Northern Alliance")
        <NodeVariant.INTER_GOV_ORG: 'InterGovOrg'>
        >>> infer_team_variant("Platform")
        <NodeVariant.ENTITY: 'Entity'>
    """
    lowered = (name or "").lower()
    for keyword, variant in TEAM_NAME_KEYWORDS:
        if keyword in lowered:
            return variant
    return fallback


# ==============================================================================
# Importer
# ==============================================================================

class HierarchyImporter:
    """Builds a realm chart snapshot from remote state."""

    def __init__(self, client: RemoteResourceClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or get_settings()

    async def import_hierarchy(self) -> HierarchyNode:
        """
        Import all visible organizations and their team trees.

        Returns:
            Root SupremeEntity node of a freshly built tree

        Raises:
            RemoteError: Any failed read against the remote platform
        """
        root = HierarchyNode(
            node_id=ROOT_ID,
            type_tag=NodeVariant.SUPREME_ENTITY.value,
            name=self.settings.import_root_name,
            parent_id=ROOT_PARENT_ID,
        )

        organizations = await self.client.list_organizations()
        logger.info(f"Importing {len(organizations)} organizations")

        for org in organizations:
            org_node = root.add_child(HierarchyNode(
                node_id=make_node_id(ORG_ID_PREFIX, org["id"]),
                type_tag=NodeVariant.SOVEREIGN_BRANCH.value,
                name=org["login"],
            ))
            await self._import_teams(org["login"], org_node)

        logger.info(
            f"Imported hierarchy with {sum(1 for _ in root.iter_subtree())} nodes",
            extra={"organizations": len(organizations)}
        )
        return root

    async def _import_teams(self, org_login: str, org_node: HierarchyNode) -> None:
        teams = await self.client.list_teams(org_login)
        known_ids = {team["id"] for team in teams}

        children_by_parent: Dict[Any, List[Dict[str, Any]]] = {}
        top_level: List[Dict[str, Any]] = []
        for team in teams:
            parent_id = _parent_team_id(team)
            if parent_id is None:
                top_level.append(team)
            elif parent_id not in known_ids:
                # Parent not visible in the listing: keep the team at org level
                logger.warning(
                    f"Team {team.get('slug') or team['name']} in {org_login} references "
                    f"unknown parent team {parent_id}; attaching to organization"
                )
                top_level.append(team)
            else:
                children_by_parent.setdefault(parent_id, []).append(team)

        visited: Set[Any] = set()
        slugs: Dict[str, str] = {}
        for team in top_level:
            self._attach_team(org_node, team, children_by_parent, visited, slugs)

        # Teams only reachable through a parent cycle are never visited above
        for team in teams:
            if team["id"] not in visited:
                logger.warning(
                    f"Team {team.get('slug') or team['name']} in {org_login} is part of a "
                    f"parent cycle; attaching to organization"
                )
                self._attach_team(org_node, team, children_by_parent, visited, slugs)

        logger.debug(f"Imported {len(visited)} teams for {org_login}")

        if self.settings.import_include_repositories:
            await self._import_repositories(org_login, org_node, slugs)

    def _attach_team(
        self,
        parent_node: HierarchyNode,
        team: Dict[str, Any],
        children_by_parent: Dict[Any, List[Dict[str, Any]]],
        visited: Set[Any],
        slugs: Dict[str, str]
    ) -> None:
        """Attach a team and, recursively, its nested teams. Each team is attached once."""
        if team["id"] in visited:
            return
        visited.add(team["id"])

        team_node = parent_node.add_child(HierarchyNode(
            node_id=make_node_id(TEAM_ID_PREFIX, team["id"]),
            type_tag=infer_team_variant(team["name"], self.settings.import_fallback_variant).value,
            name=team["name"],
        ))
        slugs[team_node.node_id] = team.get("slug") or team_node.slug

        for child in children_by_parent.get(team["id"], []):
            self._attach_team(team_node, child, children_by_parent, visited, slugs)

    async def _import_repositories(
        self,
        org_login: str,
        org_node: HierarchyNode,
        slugs: Dict[str, str]
    ) -> None:
        """
        Attach each team's repositories as Entity leaves.

        Only team-like nodes receive repositories, and a repository shared by
        several teams is attached under the first team reached depth-first so
        node IDs stay unique.
        """
        attached: Set[Any] = set()
        team_nodes = [node for node in org_node.iter_subtree() if node.is_team_like]
        for node in team_nodes:
            repos = await self.client.list_team_repositories(org_login, slugs.get(node.node_id, node.slug))
            for repo in repos:
                if repo["id"] in attached:
                    continue
                attached.add(repo["id"])
                node.add_child(HierarchyNode(
                    node_id=make_node_id(REPO_ID_PREFIX, repo["id"]),
                    type_tag=NodeVariant.ENTITY.value,
                    name=repo["name"],
                ))

        logger.debug(f"Imported {len(attached)} repositories for {org_login}")


def _parent_team_id(team: Dict[str, Any]) -> Optional[Any]:
    parent = team.get("parent")
    if not parent:
        return None
    return parent.get("id")
