"""
Hierarchy synchronization services.

Import reads GitHub organizations and teams into a realm chart; Export
reconciles a declared realm chart against GitHub.

Usage:
    from realm_sync.core.services.hierarchy_sync import HierarchyExporter

    results = await HierarchyExporter(client).export(tree)
"""

from realm_sync.core.services.hierarchy_sync.importer import (
    HierarchyImporter,
    infer_team_variant,
)
from realm_sync.core.services.hierarchy_sync.exporter import (
    ExportContext,
    HierarchyExporter,
)

__all__ = [
    "HierarchyImporter",
    "infer_team_variant",
    "ExportContext",
    "HierarchyExporter",
]
