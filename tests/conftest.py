"""
Shared fixtures for realm-sync tests.

Sets environment variables before any module reads settings and provides an
in-memory GitHub stand-in that records every call, so reconciliation
properties can be asserted on call logs without network access.
"""

import os
from itertools import count
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Set test environment BEFORE any imports that read settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("GITHUB_TOKEN", "test-token")

from realm_sync.app.config import Settings
from realm_sync.core.exceptions import RemoteConflictError, RemoteNotFoundError
from realm_sync.core.hierarchy.node import slugify
from realm_sync.core.remote.client import RemoteResourceClient


READ_OPERATIONS = {
    "list_organizations",
    "get_organization",
    "list_teams",
    "list_team_repositories",
    "get_repository",
}


class FakeRemoteClient(RemoteResourceClient):
    """
    In-memory GitHub.

    Organizations, teams and repositories live in dicts keyed by org login,
    team slug and repository name. Failures for a specific operation and
    resource can be injected with fail().
    """

    def __init__(self):
        self._ids = count(100)
        self.orgs: Dict[str, Dict[str, Any]] = {}
        self.teams: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.repos: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.team_repos: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self.closed = False

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def add_org(self, login: str, org_id: Optional[int] = None) -> Dict[str, Any]:
        org = {"id": org_id or next(self._ids), "login": login, "description": None}
        self.orgs[login] = org
        self.teams.setdefault(login, {})
        self.repos.setdefault(login, {})
        return org

    def add_team(
        self,
        org: str,
        name: str,
        parent_slug: Optional[str] = None,
        team_id: Optional[int] = None
    ) -> Dict[str, Any]:
        parent = self.teams[org][parent_slug] if parent_slug else None
        team = {
            "id": team_id or next(self._ids),
            "name": name,
            "slug": slugify(name),
            "description": None,
            "parent": {"id": parent["id"], "slug": parent["slug"]} if parent else None,
        }
        self.teams[org][team["slug"]] = team
        return team

    def add_repo(self, org: str, name: str, team_slug: Optional[str] = None) -> Dict[str, Any]:
        repo = {"id": next(self._ids), "name": name, "description": None}
        self.repos[org][name] = repo
        if team_slug:
            self.team_repos.setdefault((org, team_slug), {})[name] = "push"
        return repo

    def fail(self, operation: str, key: str, error: Exception) -> None:
        """Make `operation` raise `error` whenever it targets `key`."""
        self.failures[(operation, key)] = error

    # ------------------------------------------------------------------
    # Call log helpers
    # ------------------------------------------------------------------

    def calls_to(self, operation: str) -> List[Tuple[Any, ...]]:
        return [args for name, args in self.calls if name == operation]

    @property
    def mutating_calls(self) -> List[Tuple[str, Tuple[Any, ...]]]:
        return [call for call in self.calls if call[0] not in READ_OPERATIONS]

    def _record(self, operation: str, key: str, *args: Any) -> None:
        self.calls.append((operation, args))
        error = self.failures.get((operation, key))
        if error is not None:
            raise error

    def _require_org(self, org: str, operation: str) -> None:
        if org not in self.orgs:
            raise RemoteNotFoundError(f"{operation} {org} failed (404): Not Found")

    def _team_by_id(self, org: str, team_id: Optional[int]) -> Optional[Dict[str, Any]]:
        for team in self.teams[org].values():
            if team["id"] == team_id:
                return team
        return None

    # ------------------------------------------------------------------
    # RemoteResourceClient
    # ------------------------------------------------------------------

    async def list_organizations(self):
        self._record("list_organizations", "")
        return [dict(org) for org in self.orgs.values()]

    async def get_organization(self, name):
        self._record("get_organization", name, name)
        if name not in self.orgs:
            raise RemoteNotFoundError(f"get_organization {name} failed (404): Not Found")
        return dict(self.orgs[name])

    async def update_organization(self, name, fields):
        self._record("update_organization", name, name, dict(fields))
        if name not in self.orgs:
            raise RemoteNotFoundError(f"update_organization {name} failed (404): Not Found")
        self.orgs[name]["description"] = fields.get("description")
        return dict(self.orgs[name])

    async def list_teams(self, org):
        self._record("list_teams", org, org)
        return [dict(team) for team in self.teams.get(org, {}).values()]

    async def create_team(self, org, name, parent_team_id=None, fields=None):
        self._record("create_team", name, org, name, parent_team_id)
        self._require_org(org, "create_team")
        slug = slugify(name)
        if slug in self.teams[org]:
            raise RemoteConflictError(f"create_team {org}/{name} failed (422): Name must be unique")
        parent = self._team_by_id(org, parent_team_id)
        team = {
            "id": next(self._ids),
            "name": name,
            "slug": slug,
            "description": (fields or {}).get("description"),
            "parent": {"id": parent["id"], "slug": parent["slug"]} if parent else None,
        }
        self.teams[org][slug] = team
        return dict(team)

    async def update_team(self, org, team_slug, fields, parent_team_id=None):
        self._record("update_team", team_slug, org, team_slug, parent_team_id)
        self._require_org(org, "update_team")
        team = self.teams[org].get(team_slug)
        if team is None:
            raise RemoteNotFoundError(f"update_team {org}/{team_slug} failed (404): Not Found")
        parent = self._team_by_id(org, parent_team_id)
        team["description"] = fields.get("description")
        team["parent"] = {"id": parent["id"], "slug": parent["slug"]} if parent else None
        return dict(team)

    async def list_team_repositories(self, org, team_slug):
        self._record("list_team_repositories", team_slug, org, team_slug)
        names = self.team_repos.get((org, team_slug), {})
        return [dict(self.repos[org][name]) for name in names]

    async def get_repository(self, org, name):
        self._record("get_repository", name, org, name)
        self._require_org(org, "get_repository")
        if name not in self.repos.get(org, {}):
            raise RemoteNotFoundError(f"get_repository {org}/{name} failed (404): Not Found")
        return dict(self.repos[org][name])

    async def create_repository(self, org, name, visibility="private", fields=None):
        self._record("create_repository", name, org, name, visibility)
        self._require_org(org, "create_repository")
        if name in self.repos[org]:
            raise RemoteConflictError(f"create_repository {org}/{name} failed (422): name already exists")
        repo = {"id": next(self._ids), "name": name, "description": (fields or {}).get("description")}
        self.repos[org][name] = repo
        return dict(repo)

    async def update_repository(self, org, name, fields):
        self._record("update_repository", name, org, name)
        self.repos[org][name]["description"] = fields.get("description")
        return dict(self.repos[org][name])

    async def grant_team_repo_permission(self, org, team_slug, repo, level="admin"):
        self._record("grant_team_repo_permission", repo, org, team_slug, repo, level)
        self.team_repos.setdefault((org, team_slug), {})[repo] = level

    async def aclose(self):
        self.closed = True


# ============================================
# Fixtures
# ============================================

@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Clear lru_cache on settings between tests."""
    from realm_sync.app.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def test_settings():
    """Return a test Settings instance."""
    return Settings(environment="test", github_token="test-token")


@pytest.fixture()
def fake_remote():
    """Fresh in-memory GitHub."""
    return FakeRemoteClient()


@pytest.fixture()
def node_dict():
    """Build a chart node dict in wire shape."""

    def _node(node_id, type_tag, name, parent="NA", children=None):
        return {
            "ID": node_id,
            "Parent": parent,
            "Type": type_tag,
            "Name": name,
            "Children": children or [],
        }

    return _node
