"""
Remote client dependency.

Routers receive a factory rather than a client so the base URL and token
overrides of each request can be applied. Tests replace the factory through
app.dependency_overrides[get_remote_client_factory].
"""

import logging
from typing import Callable, Optional

from fastapi import Depends

from realm_sync.app.config import Settings, get_settings
from realm_sync.core.remote.client import RemoteResourceClient
from realm_sync.core.remote.github_client import GitHubResourceClient
from realm_sync.core.security.credentials import (
    CredentialProvider,
    RemoteCredentials,
    SettingsCredentialProvider,
    StaticCredentialProvider,
)

logger = logging.getLogger(__name__)

RemoteClientFactory = Callable[..., RemoteResourceClient]


def get_remote_client_factory(settings: Settings = Depends(get_settings)) -> RemoteClientFactory:
    """
    Provide a factory building a GitHub client for one request.

    factory(base_url=None, token=None):
        base_url: request override, else GITHUB_API_URL
        token: request override, else configured credentials

    Raises (when called):
        CredentialError: If no usable credentials are available
    """

    def factory(base_url: Optional[str] = None, token: Optional[str] = None) -> RemoteResourceClient:
        provider: CredentialProvider
        if token:
            provider = StaticCredentialProvider(RemoteCredentials(token=token))
        else:
            provider = SettingsCredentialProvider(settings)

        resolved_url = base_url or settings.github_api_url
        logger.debug(f"Building GitHub client for {resolved_url}")

        return GitHubResourceClient.from_credentials(
            provider.get_credentials(),
            base_url=resolved_url,
            timeout=settings.github_request_timeout,
            page_size=settings.github_page_size,
            new_team_privacy=settings.new_team_privacy,
        )

    return factory
