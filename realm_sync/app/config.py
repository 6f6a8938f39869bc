"""
Realm Sync Configuration Management
Centralized settings using Pydantic Settings with environment variable support.

ENVIRONMENT VARIABLES REFERENCE
===============================

All settings can be configured via environment variables (uppercase, underscore-separated).
Example: `github_api_url` -> `GITHUB_API_URL`

APPLICATION SETTINGS:
--------------------
ENVIRONMENT             - Runtime environment: development|staging|production|test (default: "development")
DEBUG                   - Enable debug mode (default: false)
EXPOSE_ERROR_DETAILS    - Expose raw exception messages in responses (default: false)
LOG_LEVEL               - Logging level: DEBUG|INFO|WARNING|ERROR|CRITICAL (default: "INFO")

API CONFIGURATION:
-----------------
API_HOST                - API bind host (default: "0.0.0.0")
API_PORT                - API bind port (default: 8000)
CORS_ORIGINS            - Allowed CORS origins: plain URL, comma-separated URLs or JSON array

GITHUB CONFIGURATION:
--------------------
GITHUB_API_URL          - REST API base URL (default: "https://api.github.com").
                          Point at https://<host>/api/v3 for GitHub Enterprise Server.
GITHUB_REQUEST_TIMEOUT  - Per-call timeout in seconds (default: 10.0)
GITHUB_PAGE_SIZE        - Page size for list endpoints (default: 100)

CREDENTIALS (one of the two shapes is required):
-----------------------------------------------
GITHUB_TOKEN            - Personal access token
GITHUB_APP_ID           - GitHub App id
GITHUB_PRIVATE_KEY      - GitHub App private key (PEM)
GITHUB_INSTALLATION_ID  - GitHub App installation id

IMPORT / EXPORT BEHAVIOUR:
-------------------------
IMPORT_ROOT_NAME             - Name of the synthetic root node (default: "Structured Enterprise")
IMPORT_FALLBACK_VARIANT      - Variant for teams no keyword matches (default: "Entity")
IMPORT_INCLUDE_REPOSITORIES  - Also enumerate team repositories on import (default: false)
MANAGED_REPO_DESCRIPTION     - Description written on managed repositories
NEW_REPO_VISIBILITY          - Visibility of created repositories: private|internal|public (default: "private")
NEW_TEAM_PRIVACY             - Privacy of created teams: closed|secret (default: "closed")
TEAM_REPO_PERMISSION         - Permission granted to the owning team on new repositories (default: "admin")
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from realm_sync.core.hierarchy.node import NodeVariant, TEAM_VARIANTS


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables.
    Supports .env file loading in development.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ============================================
    # Application Settings
    # ============================================
    app_name: str = Field(default="realm-sync", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production|test)$",
        description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    expose_error_details: bool = Field(
        default=False,
        description="Expose raw exception messages in API responses. Should be False in production."
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )

    # ============================================
    # API Configuration
    # ============================================
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000, ge=1024, le=65535)
    api_reload: bool = Field(default=False)

    # Stored as string to avoid pydantic-settings JSON parsing issues
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Plain URL, comma-separated URLs, or JSON array string"
    )

    # ============================================
    # GitHub Configuration
    # ============================================
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (GitHub Enterprise: https://<host>/api/v3)"
    )
    github_request_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Per-call HTTP timeout in seconds"
    )
    github_page_size: int = Field(default=100, ge=1, le=100)

    github_token: Optional[str] = Field(default=None, description="Personal access token")
    github_app_id: Optional[str] = Field(default=None, description="GitHub App id")
    github_private_key: Optional[str] = Field(default=None, description="GitHub App private key (PEM)")
    github_installation_id: Optional[str] = Field(default=None, description="GitHub App installation id")

    # ============================================
    # Import / Export Behaviour
    # ============================================
    import_root_name: str = Field(default="Structured Enterprise")
    import_fallback_variant: NodeVariant = Field(
        default=NodeVariant.ENTITY,
        description="Variant assigned to teams whose names match no keyword"
    )
    import_include_repositories: bool = Field(
        default=False,
        description="Enumerate each team's repositories as Entity nodes during import"
    )
    managed_repo_description: str = Field(default="Repository managed by Realm Sync")
    new_repo_visibility: str = Field(default="private", pattern="^(private|internal|public)$")
    new_team_privacy: str = Field(default="closed", pattern="^(closed|secret)$")
    team_repo_permission: str = Field(
        default="admin",
        pattern="^(pull|triage|push|maintain|admin)$"
    )

    @field_validator("import_fallback_variant")
    @classmethod
    def validate_fallback_variant(cls, v: NodeVariant) -> NodeVariant:
        """Imported teams can only become team-like nodes or Entity leaves."""
        if v not in TEAM_VARIANTS and v is not NodeVariant.ENTITY:
            raise ValueError(
                f"import_fallback_variant must be a team-like variant or Entity, got {v.value}"
            )
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Use LRU cache to avoid reloading environment variables.
    """
    return Settings()
