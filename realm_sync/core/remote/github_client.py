"""
GitHub REST implementation of the Remote Resource Client.

Wraps a single httpx.AsyncClient bound to the configured API base URL
(api.github.com or a GitHub Enterprise Server /api/v3 endpoint).

Features:
- Authorization header from a pluggable AuthStrategy (token or GitHub App)
- Link-header pagination for list endpoints
- Per-call timeout; timeouts and connection failures surface as RemoteTransientError
- Non-2xx responses mapped onto the remote error taxonomy

Usage:
    async with GitHubResourceClient.from_credentials(credentials, base_url=url) as client:
        orgs = await client.list_organizations()
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from realm_sync import __version__
from realm_sync.core.exceptions import RemoteTransientError
from realm_sync.core.remote.auth import AuthStrategy, build_auth_strategy
from realm_sync.core.remote.client import RemoteResourceClient, raise_for_remote_status
from realm_sync.core.security.credentials import RemoteCredentials

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_PAGE_SIZE = 100
GITHUB_API_VERSION = "2022-11-28"


def _seg(value: Any) -> str:
    """Quote one URL path segment."""
    return quote(str(value), safe="")


class GitHubResourceClient(RemoteResourceClient):
    """Organizations, teams and repositories over the GitHub REST API."""

    def __init__(
        self,
        auth: AuthStrategy,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        new_team_privacy: str = "closed",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            auth: Authentication strategy supplying the Authorization header
            base_url: API base URL (defaults to the public GitHub API)
            timeout: Per-call timeout in seconds
            page_size: per_page value for list endpoints
            new_team_privacy: Privacy applied to created teams
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self.auth = auth
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.page_size = page_size
        self.new_team_privacy = new_team_privacy
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
                "User-Agent": f"realm-sync/{__version__}",
            },
        )

    @classmethod
    def from_credentials(
        cls,
        credentials: RemoteCredentials,
        base_url: Optional[str] = None,
        **kwargs: Any
    ) -> "GitHubResourceClient":
        """
        Build a client, selecting the auth strategy from the credential shape.

        Raises:
            CredentialError: If the credentials satisfy neither strategy
        """
        return cls(build_auth_strategy(credentials), base_url=base_url, **kwargs)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ============================================
    # Transport
    # ============================================

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        headers = {"Authorization": await self.auth.authorization_header(self._http)}

        try:
            response = await self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise RemoteTransientError(
                f"{operation} timed out",
                context={"operation": operation},
                original_error=e
            )
        except httpx.RequestError as e:
            raise RemoteTransientError(
                f"{operation} failed: {e}",
                context={"operation": operation},
                original_error=e
            )

        logger.debug(f"GitHub {method} {path} -> {response.status_code}")
        raise_for_remote_status(response, operation)
        return response

    async def _json(self, method: str, path: str, operation: str, **kwargs: Any) -> Dict[str, Any]:
        response = await self._request(method, path, operation, **kwargs)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def _paginate(self, path: str, operation: str) -> List[Dict[str, Any]]:
        """Collect all pages of a list endpoint by following Link rel="next"."""
        items: List[Dict[str, Any]] = []
        url: Optional[str] = path
        params: Optional[Dict[str, Any]] = {"per_page": self.page_size}

        while url:
            response = await self._request("GET", url, operation, params=params)
            items.extend(response.json())
            next_link = response.links.get("next")
            url = next_link.get("url") if next_link else None
            # The next URL already carries the query string
            params = None

        return items

    # ============================================
    # Organizations
    # ============================================

    async def list_organizations(self) -> List[Dict[str, Any]]:
        return await self._paginate("/organizations", "list_organizations")

    async def get_organization(self, name: str) -> Dict[str, Any]:
        return await self._json("GET", f"/orgs/{_seg(name)}", f"get_organization {name}")

    async def update_organization(self, name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json(
            "PATCH", f"/orgs/{_seg(name)}", f"update_organization {name}", json=fields
        )

    # ============================================
    # Teams
    # ============================================

    async def list_teams(self, org: str) -> List[Dict[str, Any]]:
        return await self._paginate(f"/orgs/{_seg(org)}/teams", f"list_teams {org}")

    async def create_team(
        self,
        org: str,
        name: str,
        parent_team_id: Optional[int] = None,
        fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"name": name, "privacy": self.new_team_privacy}
        body.update(fields or {})
        if parent_team_id is not None:
            body["parent_team_id"] = parent_team_id
        return await self._json(
            "POST", f"/orgs/{_seg(org)}/teams", f"create_team {org}/{name}", json=body
        )

    async def update_team(
        self,
        org: str,
        team_slug: str,
        fields: Dict[str, Any],
        parent_team_id: Optional[int] = None
    ) -> Dict[str, Any]:
        # parent_team_id is always sent so a team moved to the org level is un-nested
        body = dict(fields)
        body["parent_team_id"] = parent_team_id
        return await self._json(
            "PATCH",
            f"/orgs/{_seg(org)}/teams/{_seg(team_slug)}",
            f"update_team {org}/{team_slug}",
            json=body
        )

    async def list_team_repositories(self, org: str, team_slug: str) -> List[Dict[str, Any]]:
        return await self._paginate(
            f"/orgs/{_seg(org)}/teams/{_seg(team_slug)}/repos",
            f"list_team_repositories {org}/{team_slug}"
        )

    # ============================================
    # Repositories
    # ============================================

    async def get_repository(self, org: str, name: str) -> Dict[str, Any]:
        return await self._json("GET", f"/repos/{_seg(org)}/{_seg(name)}", f"get_repository {org}/{name}")

    async def create_repository(
        self,
        org: str,
        name: str,
        visibility: str = "private",
        fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": name,
            "private": visibility != "public",
            "visibility": visibility,
            "auto_init": True,
        }
        body.update(fields or {})
        return await self._json(
            "POST", f"/orgs/{_seg(org)}/repos", f"create_repository {org}/{name}", json=body
        )

    async def update_repository(self, org: str, name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json(
            "PATCH", f"/repos/{_seg(org)}/{_seg(name)}", f"update_repository {org}/{name}", json=fields
        )

    async def grant_team_repo_permission(
        self,
        org: str,
        team_slug: str,
        repo: str,
        level: str = "admin"
    ) -> None:
        await self._request(
            "PUT",
            f"/orgs/{_seg(org)}/teams/{_seg(team_slug)}/repos/{_seg(org)}/{_seg(repo)}",
            f"grant_team_repo_permission {org}/{team_slug} -> {repo}",
            json={"permission": level}
        )
