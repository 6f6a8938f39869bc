"""
Remote platform access (GitHub).
"""

from realm_sync.core.remote.client import RemoteResourceClient, raise_for_remote_status
from realm_sync.core.remote.auth import (
    AuthStrategy,
    TokenAuthStrategy,
    AppInstallationAuthStrategy,
    build_auth_strategy,
)
from realm_sync.core.remote.github_client import GitHubResourceClient

__all__ = [
    "RemoteResourceClient",
    "raise_for_remote_status",
    "AuthStrategy",
    "TokenAuthStrategy",
    "AppInstallationAuthStrategy",
    "build_auth_strategy",
    "GitHubResourceClient",
]
