"""
GitHub credential provider.

Supplies one of two credential shapes:
- Personal access token: {token}
- GitHub App installation: {app_id, private_key, installation_id}

Storage and rotation of the secrets themselves live outside this service; the
settings provider reads whatever the deployment injected into the environment.

Usage:
    from realm_sync.core.security.credentials import SettingsCredentialProvider

    credentials = SettingsCredentialProvider().get_credentials()
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from realm_sync.app.config import Settings, get_settings
from realm_sync.core.exceptions import CredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteCredentials:
    """GitHub credentials. Exactly one shape is expected to be populated."""

    token: Optional[str] = None
    app_id: Optional[str] = None
    private_key: Optional[str] = None
    installation_id: Optional[str] = None

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @property
    def has_app_credentials(self) -> bool:
        return bool(self.app_id and self.private_key and self.installation_id)

    def __repr__(self) -> str:
        # Never render secret material
        shape = "token" if self.has_token else "app" if self.has_app_credentials else "empty"
        return f"RemoteCredentials(shape={shape!r}, app_id={self.app_id!r})"


class CredentialProvider(ABC):
    """Source of GitHub credentials."""

    @abstractmethod
    def get_credentials(self) -> RemoteCredentials:
        """
        Return credentials for the GitHub client.

        Raises:
            CredentialError: If no credentials are available
        """


class StaticCredentialProvider(CredentialProvider):
    """Wraps credentials supplied directly (per-request token override, tests)."""

    def __init__(self, credentials: RemoteCredentials):
        self._credentials = credentials

    def get_credentials(self) -> RemoteCredentials:
        return self._credentials


class SettingsCredentialProvider(CredentialProvider):
    """
    Reads credentials from application settings.

    GitHub App credentials take precedence when GITHUB_APP_ID is set; otherwise
    GITHUB_TOKEN is used.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def get_credentials(self) -> RemoteCredentials:
        settings = self.settings

        if settings.github_app_id:
            logger.debug("Using GitHub App credentials", extra={"app_id": settings.github_app_id})
            return RemoteCredentials(
                app_id=settings.github_app_id,
                private_key=_normalize_private_key(settings.github_private_key),
                installation_id=settings.github_installation_id,
            )

        if settings.github_token:
            logger.debug("Using GitHub token credentials")
            return RemoteCredentials(token=settings.github_token)

        raise CredentialError(
            "No GitHub credentials configured. Set GITHUB_TOKEN or "
            "GITHUB_APP_ID, GITHUB_PRIVATE_KEY and GITHUB_INSTALLATION_ID."
        )


def _normalize_private_key(private_key: Optional[str]) -> Optional[str]:
    """PEM keys injected through env vars often carry literal '\\n' sequences."""
    if private_key and "\\n" in private_key:
        return private_key.replace("\\n", "\n")
    return private_key
