"""
deployment/api.py - REST API

Thin HTTP host around the cascade service. Accepts the host action
parameter names as aliases and returns the flat list of proposed
states.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone
import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from statecascade.bootstrap.config import StateCascadeConfig
from statecascade.cascade.request import build_request
from statecascade.cascade.service import CascadeService
from statecascade.errors.aggregator import CascadeFailure
from statecascade.errors.taxonomy import CascadeError, ErrorCategory

logger = logging.getLogger("deployment.api")

API_VERSION = "1.0.0"

CsvOrList = Optional[Union[str, List[str]]]


# =============================================================================
# Request/Response Models
# =============================================================================

class CascadeRequestModel(BaseModel):
    """Request model for computing a cascade."""

    model_config = ConfigDict(populate_by_name=True)

    root_ids: Union[str, List[str]] = Field(alias="recordsGUID")
    root_type: str = Field(alias="entityLogicalName")
    namespace_prefix: Optional[str] = Field(default=None, alias="publisherPrefix")
    status_label: Optional[str] = Field(default=None, alias="statusLabel")
    status_reason_label: Optional[str] = Field(default=None, alias="statusReasonLabel")
    update_parent: Optional[bool] = Field(default=None, alias="shouldUpdateParent")
    restore_previous: Optional[bool] = Field(default=None, alias="shouldRestorePreviousStatus")
    include_types: CsvOrList = Field(default=None, alias="entitiesLogicalNamesToInclude")
    exclude_types: CsvOrList = Field(default=None, alias="entitiesLogicalNamesToExclude")
    recalculate_types: CsvOrList = Field(default=None, alias="entitiesLogicalNamesToRecalculate")
    cascade_recalculation: Optional[bool] = Field(default=None, alias="shouldCascadeRecalculation")
    never_restore_reason_labels: CsvOrList = Field(default=None, alias="statusReasonNeverRestored")


class ProposedStateModel(BaseModel):
    """One proposed state."""

    recordId: str
    statusCode: Optional[int] = None
    statusReasonCode: Optional[int] = None
    recordType: str
    collectionName: Optional[str] = None


class CascadeResponseModel(BaseModel):
    """Response model of a computed cascade."""

    response: List[ProposedStateModel]
    count: int


def failure_status_code(failure: CascadeFailure) -> int:
    """HTTP status of an aborted cascade."""
    if failure.category in (None, ErrorCategory.CONFIGURATION):
        return 400
    return 502


def create_fastapi_app(service: Optional[CascadeService] = None,
                       config: Optional[StateCascadeConfig] = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        service: Cascade service; built from the configured fixture store
            when omitted
        config: Application configuration

    Returns:
        FastAPI application instance
    """
    config = config or StateCascadeConfig()

    if service is None and config.store.fixture_path:
        from statecascade.store.memory import InMemoryStore
        service = CascadeService.from_store(InMemoryStore.from_file(config.store.fixture_path))

    app = FastAPI(
        title="StateCascade API",
        description="Cascading status computation over related records",
        version=API_VERSION,
        docs_url=config.api.docs_url if config.api.enable_docs else None,
        redoc_url="/redoc" if config.api.enable_docs else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    defaults = config.cascade

    # =========================================================================
    # Health Endpoints
    # =========================================================================

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "store_configured": service is not None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # =========================================================================
    # Cascade Endpoints
    # =========================================================================

    @app.post("/api/v1/cascade", response_model=CascadeResponseModel)
    def compute_cascade(body: CascadeRequestModel) -> Dict[str, Any]:
        """Compute the proposed states of the root records and their descendants."""
        if service is None:
            raise HTTPException(status_code=503, detail="No data store configured")

        try:
            request = build_request(
                root_type=body.root_type,
                root_ids=body.root_ids,
                namespace_prefix=body.namespace_prefix or defaults.namespace_prefix,
                status_label=body.status_label if body.status_label is not None else defaults.status_label,
                status_reason_label=(
                    body.status_reason_label if body.status_reason_label is not None
                    else defaults.status_reason_label
                ),
                update_parent=_flag(body.update_parent, defaults.update_parent),
                restore_previous=_flag(body.restore_previous, defaults.restore_previous),
                include_types=body.include_types,
                exclude_types=body.exclude_types,
                recalculate_types=body.recalculate_types,
                cascade_recalculation=_flag(body.cascade_recalculation, defaults.cascade_recalculation),
                never_restore_reason_labels=(
                    body.never_restore_reason_labels if body.never_restore_reason_labels is not None
                    else defaults.never_restore_reason_labels
                ),
            )
        except CascadeError as e:
            raise HTTPException(status_code=400, detail={"message": str(e), "errors": [e.to_dict()]})

        try:
            rows = service.run_to_dicts(request)
        except CascadeFailure as failure:
            raise HTTPException(
                status_code=failure_status_code(failure),
                detail=failure.to_dict(),
            )

        return {"response": rows, "count": len(rows)}

    return app


def _flag(value: Optional[bool], default: bool) -> bool:
    return default if value is None else value


def create_app() -> FastAPI:
    """
    Application factory for multi-worker servers.

    Each worker process rebuilds the app from STATECASCADE_CONFIG, with
    STATECASCADE_API_STORE overriding the configured fixture store.
    """
    from statecascade.bootstrap.config import load_config

    config = load_config(os.getenv("STATECASCADE_CONFIG") or None)
    store_path = os.getenv("STATECASCADE_API_STORE")
    if store_path:
        config.store.fixture_path = store_path
    return create_fastapi_app(config=config)
