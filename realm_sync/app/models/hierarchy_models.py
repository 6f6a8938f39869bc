"""
Pydantic models for realm chart import and export.

This module provides:
- The recursive chart node wire model (ID / Parent / Type / Name / Children)
- Request models for the Import and Export calls
- Response envelopes ({success, data, error})
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from realm_sync.core.hierarchy.node import HierarchyNode, ROOT_PARENT_ID
from realm_sync.core.hierarchy.results import ExportResults


# ============================================================================
# CHART NODE
# ============================================================================

class HierarchyNodeModel(BaseModel):
    """One realm chart node as exchanged with the chart UI."""

    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(..., alias="ID", min_length=1, description="Unique node ID, e.g. 'org-42'")
    parent_id: str = Field(default=ROOT_PARENT_ID, alias="Parent", description="Parent node ID or 'NA'")
    type_tag: str = Field(..., alias="Type", min_length=1, description="Variant, e.g. 'SovereignBranch'")
    name: str = Field(..., alias="Name", min_length=1, description="Remote resource name")
    children: List["HierarchyNodeModel"] = Field(default_factory=list, alias="Children")

    @field_validator("node_id", "parent_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """The chart UI sometimes sends numeric IDs."""
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("children", mode="before")
    @classmethod
    def default_children(cls, v):
        return v if v is not None else []

    def to_node(self) -> HierarchyNode:
        """Convert to the domain tree (back-references included)."""
        return HierarchyNode(
            node_id=self.node_id,
            type_tag=self.type_tag,
            name=self.name,
            parent_id=self.parent_id,
            children=[child.to_node() for child in self.children],
        )

    @classmethod
    def from_node(cls, node: HierarchyNode) -> "HierarchyNodeModel":
        return cls(
            node_id=node.node_id,
            parent_id=node.parent_id,
            type_tag=node.type_tag,
            name=node.name,
            children=[cls.from_node(child) for child in node.children],
        )


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ImportRequest(BaseModel):
    """Request body for an Import call. Every field is optional."""

    model_config = ConfigDict(populate_by_name=True)

    base_url: Optional[str] = Field(
        default=None,
        alias="baseUrl",
        description="GitHub API base URL override (GitHub Enterprise)"
    )
    token: Optional[str] = Field(
        default=None,
        description="Personal access token overriding the configured credentials"
    )


class ExportRequest(BaseModel):
    """Request body for an Export call."""

    model_config = ConfigDict(populate_by_name=True)

    hierarchy: Optional[HierarchyNodeModel] = Field(
        default=None,
        description="Root of the declared realm chart"
    )
    base_url: Optional[str] = Field(
        default=None,
        alias="baseUrl",
        description="GitHub API base URL override (GitHub Enterprise)"
    )


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class ResourceCountsModel(BaseModel):
    orgs: int = 0
    teams: int = 0
    repos: int = 0


class ExportResultsModel(BaseModel):
    """Aggregated export outcome."""

    created: ResourceCountsModel = Field(default_factory=ResourceCountsModel)
    updated: ResourceCountsModel = Field(default_factory=ResourceCountsModel)
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: ExportResults) -> "ExportResultsModel":
        return cls.model_validate(results.to_dict())


class ImportData(BaseModel):
    hierarchy: HierarchyNodeModel


class ExportData(BaseModel):
    results: ExportResultsModel


class ImportResponse(BaseModel):
    """Import envelope: data.hierarchy on success, error otherwise."""
    success: bool
    data: Optional[ImportData] = None
    error: Optional[str] = None


class ExportResponse(BaseModel):
    """
    Export envelope.

    success is false only when the call failed before traversal (invalid input or
    credentials). Per-node failures are reported in data.results.errors.
    """
    success: bool
    data: Optional[ExportData] = None
    error: Optional[str] = None
