"""
Realm Chart Sync API Routes

Endpoints for synchronizing the realm chart with GitHub.

URL Structure: /api/v1/hierarchy/...

Features:
- Import: read organizations and teams into a chart
- Export: reconcile a declared chart against GitHub
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from realm_sync.app.config import Settings, get_settings
from realm_sync.app.dependencies.remote import RemoteClientFactory, get_remote_client_factory
from realm_sync.app.models.hierarchy_models import (
    ExportData,
    ExportRequest,
    ExportResponse,
    ExportResultsModel,
    HierarchyNodeModel,
    ImportData,
    ImportRequest,
    ImportResponse,
)
from realm_sync.core.exceptions import RealmSyncException, ValidationError
from realm_sync.core.services.hierarchy_sync import HierarchyExporter, HierarchyImporter
from realm_sync.core.utils.error_handling import format_error_for_response

router = APIRouter()
logger = logging.getLogger(__name__)


def _failure(response_cls, error: Exception, operation: str, settings: Settings) -> JSONResponse:
    """Build a success:false envelope with the error's HTTP status."""
    status_code = error.http_status if isinstance(error, RealmSyncException) else 500
    message = format_error_for_response(
        error, operation, expose_details=settings.expose_error_details or settings.debug
    )
    body = response_cls(success=False, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


# ============================================================================
# Import
# ============================================================================

async def _run_import(
    base_url: Optional[str],
    token: Optional[str],
    factory: RemoteClientFactory,
    settings: Settings
):
    try:
        async with factory(base_url=base_url, token=token) as client:
            tree = await HierarchyImporter(client, settings).import_hierarchy()
    except Exception as e:
        return _failure(ImportResponse, e, "import hierarchy", settings)

    return ImportResponse(
        success=True,
        data=ImportData(hierarchy=HierarchyNodeModel.from_node(tree)),
    )


@router.post(
    "/import",
    response_model=ImportResponse,
    summary="Import hierarchy",
    description="Read GitHub organizations and teams into a realm chart"
)
async def import_hierarchy(
    request: Optional[ImportRequest] = None,
    factory: RemoteClientFactory = Depends(get_remote_client_factory),
    settings: Settings = Depends(get_settings)
):
    """Import the current GitHub state."""
    request = request or ImportRequest()
    return await _run_import(request.base_url, request.token, factory, settings)


@router.get(
    "/import",
    response_model=ImportResponse,
    summary="Import hierarchy",
    description="Read GitHub organizations and teams into a realm chart"
)
async def import_hierarchy_get(
    base_url: Optional[str] = Query(None, alias="baseUrl", description="GitHub API base URL override"),
    factory: RemoteClientFactory = Depends(get_remote_client_factory),
    settings: Settings = Depends(get_settings)
):
    """Import the current GitHub state using configured credentials."""
    return await _run_import(base_url, None, factory, settings)


# ============================================================================
# Export
# ============================================================================

@router.post(
    "/export",
    response_model=ExportResponse,
    summary="Export hierarchy",
    description="Reconcile a declared realm chart against GitHub"
)
async def export_hierarchy(
    request: ExportRequest,
    factory: RemoteClientFactory = Depends(get_remote_client_factory),
    settings: Settings = Depends(get_settings)
):
    """
    Export a realm chart.

    Returns success:true with per-node errors in data.results.errors unless the
    hierarchy is missing or invalid (400) or the client cannot be built (500).
    """
    try:
        if request.hierarchy is None:
            raise ValidationError("Hierarchy data is required")
        tree = request.hierarchy.to_node()

        async with factory(base_url=request.base_url) as client:
            results = await HierarchyExporter(client, settings).export(tree)
    except Exception as e:
        return _failure(ExportResponse, e, "export hierarchy", settings)

    if results.has_errors:
        logger.warning(f"Export completed with {len(results.errors)} errors")

    return ExportResponse(
        success=True,
        data=ExportData(results=ExportResultsModel.from_results(results)),
    )
