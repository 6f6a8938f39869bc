"""
Hierarchy Exporter / Reconciler.

Walks a declared realm chart depth-first (parent before children, one remote
call at a time) and reconciles it against GitHub:

    SupremeEntity         -> no remote resource, recurse
    SovereignBranch       -> organization: update if it exists (never created), recurse
    SD / IGO / EIC / CG   -> team: update or create, nested under the parent team, recurse
    Entity                -> repository: update or create (+ team permission), leaf

Failure isolation:
- Only the top-level input check raises (ValidationError)
- Anchor and constraint failures skip the node's whole subtree with one error
- Remote failures while processing a node become one error string; traversal
  continues with the node's children wherever the node kind allows it
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from realm_sync.app.config import Settings, get_settings
from realm_sync.core.exceptions import (
    ConstraintViolation,
    RemoteConflictError,
    RemoteError,
    RemoteNotFoundError,
    UnknownVariant,
    UnresolvedAnchor,
    ValidationError,
)
from realm_sync.core.hierarchy.constraints import check_parent_variant
from realm_sync.core.hierarchy.node import HierarchyNode, RemoteKind
from realm_sync.core.hierarchy.path_utils import (
    build_path,
    calculate_depth,
    find_owning_organization,
)
from realm_sync.core.hierarchy.results import ExportResults, ResourceKind
from realm_sync.core.remote.client import RemoteResourceClient

logger = logging.getLogger(__name__)


# Label used in per-node error strings
_NODE_LABELS: Dict[RemoteKind, str] = {
    RemoteKind.NONE: "node",
    RemoteKind.ORGANIZATION: "organization",
    RemoteKind.TEAM: "team",
    RemoteKind.REPOSITORY: "repo",
}


@dataclass
class ExportContext:
    """
    Per-run state threaded through the traversal.

    Team identities resolved during the run are kept here, keyed by node ID,
    so the input tree is never mutated.
    """

    results: ExportResults = field(default_factory=ExportResults)
    team_ids: Dict[str, int] = field(default_factory=dict)
    team_slugs: Dict[str, str] = field(default_factory=dict)

    def remember_team(self, node: HierarchyNode, remote_team: Dict) -> None:
        if remote_team.get("id") is not None:
            self.team_ids[node.node_id] = remote_team["id"]
        self.team_slugs[node.node_id] = remote_team.get("slug") or node.slug

    def resolved_team_id(self, node: HierarchyNode) -> Optional[int]:
        """Remote id of a team node, from this run or from its 'team-<n>' ID."""
        if node.node_id in self.team_ids:
            return self.team_ids[node.node_id]
        return node.team_id

    def is_materialized_team(self, node: Optional[HierarchyNode]) -> bool:
        if node is None or not node.is_team_like:
            return False
        return node.node_id in self.team_slugs or node.team_id is not None

    def team_slug(self, node: HierarchyNode) -> str:
        return self.team_slugs.get(node.node_id, node.slug)


class HierarchyExporter:
    """Reconciles a declared realm chart against the remote platform."""

    def __init__(self, client: RemoteResourceClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or get_settings()

    async def export(self, tree: Optional[HierarchyNode]) -> ExportResults:
        """
        Export a realm chart.

        Args:
            tree: Root of the declared hierarchy

        Returns:
            Aggregated created/updated counts and per-node error strings

        Raises:
            ValidationError: If the hierarchy is missing or node IDs are not unique
        """
        self._validate_tree(tree)

        context = ExportContext()
        logger.info(f"Exporting hierarchy rooted at {tree.node_id} ({tree.name})")

        await self._process_node(tree, context)

        results = context.results
        logger.info(
            f"Export finished: created={results.created.to_dict()} "
            f"updated={results.updated.to_dict()} errors={len(results.errors)}"
        )
        return results

    @staticmethod
    def _validate_tree(tree: Optional[HierarchyNode]) -> None:
        if tree is None:
            raise ValidationError("Hierarchy data is required")

        seen = set()
        duplicates = []
        for node in tree.iter_subtree():
            if node.node_id in seen and node.node_id not in duplicates:
                duplicates.append(node.node_id)
            seen.add(node.node_id)

        if duplicates:
            raise ValidationError(
                f"Duplicate node IDs in hierarchy: {', '.join(duplicates)}",
                context={"duplicate_ids": duplicates}
            )

    # ============================================
    # Traversal
    # ============================================

    async def _process_node(self, node: HierarchyNode, context: ExportContext) -> None:
        results = context.results

        if node.variant is None:
            message = UnknownVariant(node.type_tag).message
            logger.warning(f"{message} at {build_path(node)}")
            results.add_error(message)
            return

        kind = node.remote_kind
        label = _NODE_LABELS[kind]

        parent_team_id = None
        try:
            org_node = self._resolve_anchor(node)
            check_parent_variant(node)
            if node.is_team_like:
                parent_team_id = self._parent_team_id(node, context)
        except (UnresolvedAnchor, ConstraintViolation) as e:
            logger.warning(f"Skipping {label} {node.name} at {build_path(node)}: {e.message}")
            results.add_error(f"Error processing {label} {node.name}: {e.message}")
            return

        try:
            if kind is RemoteKind.ORGANIZATION:
                await self._export_organization(node, context)
            elif kind is RemoteKind.TEAM:
                await self._export_team(node, org_node, parent_team_id, context)
            elif kind is RemoteKind.REPOSITORY:
                await self._export_repository(node, org_node, context)
        except Exception as e:
            logger.warning(
                f"Error processing {label} {node.name}: {e}",
                extra={"node_id": node.node_id, "path": build_path(node), "depth": calculate_depth(node)}
            )
            results.add_error(f"Error processing {label} {node.name}: {e}")

        # Repositories are leaves
        if kind is RemoteKind.REPOSITORY:
            return

        for child in node.children:
            await self._process_node(child, context)

    @staticmethod
    def _resolve_anchor(node: HierarchyNode) -> Optional[HierarchyNode]:
        """
        Resolve the organization owning a team or repository node.

        Raises:
            UnresolvedAnchor: If no SovereignBranch ancestor exists
        """
        if node.remote_kind not in (RemoteKind.TEAM, RemoteKind.REPOSITORY):
            return None

        org_node = find_owning_organization(node)
        if org_node is None:
            raise UnresolvedAnchor(
                f"Could not resolve owning organization for {node.type_tag} {node.name}",
                node_id=node.node_id
            )
        return org_node

    # ============================================
    # Organizations
    # ============================================

    async def _export_organization(self, node: HierarchyNode, context: ExportContext) -> None:
        try:
            await self.client.get_organization(node.name)
        except RemoteNotFoundError:
            logger.warning(f"Organization {node.name} not found; organizations are never created")
            context.results.add_error(
                f"Cannot create organization {node.name} - may require manual creation"
            )
            return

        await self.client.update_organization(node.name, {
            "name": node.name,
            "description": f"Sovereign Branch: {node.name}",
        })
        context.results.record_updated(ResourceKind.ORGS)
        logger.info(f"Updated organization {node.name}")

    # ============================================
    # Teams
    # ============================================

    async def _export_team(
        self,
        node: HierarchyNode,
        org_node: HierarchyNode,
        parent_team_id: Optional[int],
        context: ExportContext
    ) -> None:
        org = org_node.name
        fields = {"name": node.name, "description": f"Team type: {node.type_tag}"}

        if node.team_id is not None:
            try:
                team = await self.client.update_team(org, node.slug, fields, parent_team_id)
                context.results.record_updated(ResourceKind.TEAMS)
                logger.info(f"Updated team {org}/{node.slug}")
            except RemoteError as e:
                logger.info(f"Update of team {org}/{node.slug} failed ({e}); creating it")
                team = await self.client.create_team(
                    org, node.name, parent_team_id, {"description": fields["description"]}
                )
                context.results.record_created(ResourceKind.TEAMS)
                logger.info(f"Created team {org}/{node.name}")
        else:
            try:
                team = await self.client.create_team(
                    org, node.name, parent_team_id, {"description": fields["description"]}
                )
                context.results.record_created(ResourceKind.TEAMS)
                logger.info(f"Created team {org}/{node.name}")
            except RemoteConflictError:
                logger.info(f"Team {org}/{node.slug} already exists; updating it")
                team = await self.client.update_team(org, node.slug, fields, parent_team_id)
                context.results.record_updated(ResourceKind.TEAMS)

        context.remember_team(node, team or {})

    @staticmethod
    def _parent_team_id(node: HierarchyNode, context: ExportContext) -> Optional[int]:
        """
        Remote id of the parent team, or None when the parent is the organization.

        Raises:
            UnresolvedAnchor: If the parent team has no known remote identity
        """
        parent = node.parent
        if parent is None or not parent.is_team_like:
            return None

        parent_team_id = context.resolved_team_id(parent)
        if parent_team_id is None:
            raise UnresolvedAnchor(
                f"Parent team {parent.name} has no resolved remote identity",
                node_id=node.node_id
            )
        return parent_team_id

    # ============================================
    # Repositories
    # ============================================

    async def _export_repository(
        self,
        node: HierarchyNode,
        org_node: HierarchyNode,
        context: ExportContext
    ) -> None:
        org = org_node.name
        fields = {"description": self.settings.managed_repo_description}

        try:
            await self.client.get_repository(org, node.name)
        except RemoteNotFoundError:
            await self.client.create_repository(
                org, node.name, self.settings.new_repo_visibility, fields
            )
            context.results.record_created(ResourceKind.REPOS)
            logger.info(f"Created repository {org}/{node.name}")

            parent = node.parent
            if context.is_materialized_team(parent):
                await self.client.grant_team_repo_permission(
                    org,
                    context.team_slug(parent),
                    node.name,
                    self.settings.team_repo_permission
                )
                logger.info(
                    f"Granted {self.settings.team_repo_permission} on {org}/{node.name} "
                    f"to team {context.team_slug(parent)}"
                )
            return

        await self.client.update_repository(org, node.name, fields)
        context.results.record_updated(ResourceKind.REPOS)
        logger.info(f"Updated repository {org}/{node.name}")
