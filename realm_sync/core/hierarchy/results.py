"""
Export result aggregation.

One ExportResults is created per export run, threaded explicitly through the
traversal, and returned to the caller. Counters only ever increase: once per
successful create or update call against GitHub.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ResourceKind(str, Enum):
    """Counted resource kinds (keys of the created/updated maps)."""
    ORGS = "orgs"
    TEAMS = "teams"
    REPOS = "repos"


@dataclass
class ResourceCounts:
    """Per-kind counters."""

    orgs: int = 0
    teams: int = 0
    repos: int = 0

    def increment(self, kind: ResourceKind) -> None:
        setattr(self, kind.value, getattr(self, kind.value) + 1)

    @property
    def total(self) -> int:
        return self.orgs + self.teams + self.repos

    def to_dict(self) -> Dict[str, int]:
        return {"orgs": self.orgs, "teams": self.teams, "repos": self.repos}


@dataclass
class ExportResults:
    """Result of an export run."""

    created: ResourceCounts = field(default_factory=ResourceCounts)
    updated: ResourceCounts = field(default_factory=ResourceCounts)
    errors: List[str] = field(default_factory=list)

    def record_created(self, kind: ResourceKind) -> None:
        self.created.increment(kind)

    def record_updated(self, kind: ResourceKind) -> None:
        self.updated.increment(kind)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def total_created(self) -> int:
        return self.created.total

    @property
    def total_updated(self) -> int:
        return self.updated.total

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "created": self.created.to_dict(),
            "updated": self.updated.to_dict(),
            "errors": list(self.errors),
        }
