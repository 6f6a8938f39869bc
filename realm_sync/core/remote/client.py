"""
Remote Resource Client contract.

Capability surface the importer and exporter consume. Every operation is an
independent awaited round trip. Failures are typed so callers can tell an
existence probe's negative answer (RemoteNotFoundError) from real failures.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from realm_sync.core.exceptions import (
    RemoteConflictError,
    RemoteError,
    RemoteNotFoundError,
    RemotePermissionDeniedError,
    RemoteTransientError,
)

logger = logging.getLogger(__name__)


class RemoteResourceClient(ABC):
    """Operations over organizations, teams and repositories."""

    # ============================================
    # Organizations
    # ============================================

    @abstractmethod
    async def list_organizations(self) -> List[Dict[str, Any]]:
        """List organizations visible to the credentials."""

    @abstractmethod
    async def get_organization(self, name: str) -> Dict[str, Any]:
        """Fetch an organization. Raises RemoteNotFoundError if absent."""

    @abstractmethod
    async def update_organization(self, name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Update organization profile fields."""

    # ============================================
    # Teams
    # ============================================

    @abstractmethod
    async def list_teams(self, org: str) -> List[Dict[str, Any]]:
        """List teams of an organization. Nested teams carry a `parent` reference."""

    @abstractmethod
    async def create_team(
        self,
        org: str,
        name: str,
        parent_team_id: Optional[int] = None,
        fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a team, optionally nested under `parent_team_id`."""

    @abstractmethod
    async def update_team(
        self,
        org: str,
        team_slug: str,
        fields: Dict[str, Any],
        parent_team_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """Update a team identified by slug. Raises RemoteNotFoundError if absent."""

    @abstractmethod
    async def list_team_repositories(self, org: str, team_slug: str) -> List[Dict[str, Any]]:
        """List repositories a team has access to."""

    # ============================================
    # Repositories
    # ============================================

    @abstractmethod
    async def get_repository(self, org: str, name: str) -> Dict[str, Any]:
        """Fetch a repository. Raises RemoteNotFoundError if absent."""

    @abstractmethod
    async def create_repository(
        self,
        org: str,
        name: str,
        visibility: str = "private",
        fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a repository in an organization."""

    @abstractmethod
    async def update_repository(self, org: str, name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Update repository fields."""

    @abstractmethod
    async def grant_team_repo_permission(
        self,
        org: str,
        team_slug: str,
        repo: str,
        level: str = "admin"
    ) -> None:
        """Grant a team a permission level on a repository."""

    # ============================================
    # Lifecycle
    # ============================================

    async def aclose(self) -> None:
        """Release transport resources."""

    async def __aenter__(self) -> "RemoteResourceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _extract_message(response: httpx.Response) -> str:
    """Pull GitHub's `message` field out of an error body, falling back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def raise_for_remote_status(response: httpx.Response, operation: str) -> None:
    """
    Translate a non-2xx response into the remote error taxonomy.

    Args:
        response: HTTP response from the remote platform
        operation: Description used in the error message (e.g. "get_organization acme")

    Raises:
        RemoteNotFoundError: 404
        RemotePermissionDeniedError: 401, 403
        RemoteConflictError: 409, 422
        RemoteTransientError: 429, 5xx
        RemoteError: Any other non-success status
    """
    if response.is_success:
        return

    status_code = response.status_code
    message = f"{operation} failed ({status_code}): {_extract_message(response)}"
    context = {"operation": operation, "status_code": status_code}

    logger.debug(message, extra=context)

    if status_code == 404:
        raise RemoteNotFoundError(message, context=context)
    if status_code in (401, 403):
        raise RemotePermissionDeniedError(message, status_code=status_code, context=context)
    if status_code in (409, 422):
        raise RemoteConflictError(message, status_code=status_code, context=context)
    if status_code == 429 or status_code >= 500:
        raise RemoteTransientError(message, status_code=status_code, context=context)
    raise RemoteError(message, status_code=status_code, context=context)
