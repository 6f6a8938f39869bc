"""
GitHub authentication strategies.

One interface, two implementations, chosen once when the client is built:
- TokenAuthStrategy: personal access token sent as a bearer token
- AppInstallationAuthStrategy: GitHub App JWT exchanged for an installation token

Usage:
    from realm_sync.core.remote.auth import build_auth_strategy

    auth = build_auth_strategy(credentials)
    header = await auth.authorization_header(http_client)
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

import httpx
import jwt

from realm_sync.core.exceptions import CredentialError, RemoteTransientError
from realm_sync.core.remote.client import raise_for_remote_status
from realm_sync.core.security.credentials import RemoteCredentials

logger = logging.getLogger(__name__)


class AuthStrategy(ABC):
    """Produces the Authorization header for GitHub API calls."""

    @abstractmethod
    async def authorization_header(self, http: httpx.AsyncClient) -> str:
        """
        Return the Authorization header value.

        Args:
            http: Client bound to the GitHub API base URL, for strategies that
                  need to exchange credentials first
        """


class TokenAuthStrategy(AuthStrategy):
    """Personal access token authentication."""

    def __init__(self, token: str):
        if not token:
            raise CredentialError("GitHub token is empty")
        self._token = token

    async def authorization_header(self, http: httpx.AsyncClient) -> str:
        return f"Bearer {self._token}"


class AppInstallationAuthStrategy(AuthStrategy):
    """
    GitHub App installation authentication.

    Signs a short-lived RS256 JWT as the app, exchanges it for an installation
    access token, and caches that token until shortly before it expires.
    """

    JWT_ALGORITHM = "RS256"
    JWT_BACKDATE_SECONDS = 60  # tolerate clock drift against GitHub
    JWT_LIFETIME_SECONDS = 540  # GitHub caps app JWTs at 10 minutes
    TOKEN_REFRESH_MARGIN_SECONDS = 60

    def __init__(
        self,
        app_id: str,
        private_key: str,
        installation_id: str,
        clock: Callable[[], float] = time.time
    ):
        if not (app_id and private_key and installation_id):
            raise CredentialError(
                "GitHub App authentication requires app_id, private_key and installation_id"
            )
        self.app_id = str(app_id)
        self.installation_id = str(installation_id)
        self._private_key = private_key
        self._clock = clock

        self._installation_token: Optional[str] = None
        self._expires_at: float = 0.0

    def build_app_jwt(self) -> str:
        """Sign the JWT that identifies the app itself."""
        now = int(self._clock())
        payload = {
            "iat": now - self.JWT_BACKDATE_SECONDS,
            "exp": now + self.JWT_LIFETIME_SECONDS,
            "iss": self.app_id,
        }
        try:
            return jwt.encode(payload, self._private_key, algorithm=self.JWT_ALGORITHM)
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise CredentialError(f"GitHub App private key is invalid: {e}")

    def _token_is_fresh(self) -> bool:
        return bool(self._installation_token) and (
            self._clock() < self._expires_at - self.TOKEN_REFRESH_MARGIN_SECONDS
        )

    async def authorization_header(self, http: httpx.AsyncClient) -> str:
        if not self._token_is_fresh():
            await self._refresh_installation_token(http)
        return f"token {self._installation_token}"

    async def _refresh_installation_token(self, http: httpx.AsyncClient) -> None:
        operation = f"create installation token for installation {self.installation_id}"
        logger.info(
            "Requesting GitHub App installation token",
            extra={"app_id": self.app_id, "installation_id": self.installation_id}
        )

        try:
            response = await http.post(
                f"/app/installations/{self.installation_id}/access_tokens",
                headers={"Authorization": f"Bearer {self.build_app_jwt()}"},
            )
        except httpx.TimeoutException as e:
            raise RemoteTransientError(f"{operation} timed out", original_error=e)
        except httpx.HTTPError as e:
            raise RemoteTransientError(f"{operation} failed: {e}", original_error=e)

        raise_for_remote_status(response, operation)

        body = response.json()
        self._installation_token = body["token"]
        self._expires_at = _parse_expiry(body.get("expires_at"), default=self._clock() + 3600)


def _parse_expiry(value: Optional[str], default: float) -> float:
    """Parse GitHub's ISO-8601 `expires_at` (e.g. '2016-07-11T22:14:10Z') into epoch seconds."""
    if not value:
        return default
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        logger.warning(f"Unparseable installation token expiry: {value}")
        return default


def build_auth_strategy(credentials: RemoteCredentials) -> AuthStrategy:
    """
    Select the authentication strategy for a credential shape.

    Raises:
        CredentialError: If neither a token nor complete app credentials are present
    """
    if credentials.has_token:
        return TokenAuthStrategy(credentials.token)
    if credentials.has_app_credentials:
        return AppInstallationAuthStrategy(
            app_id=credentials.app_id,
            private_key=credentials.private_key,
            installation_id=credentials.installation_id,
        )
    raise CredentialError("Invalid GitHub credentials")
