"""
AeroTrace: Integrity API Server
===============================

Thin HTTP proxy over AeroTraceBackend. Every handler calls exactly one
backend operation and returns its contract's to_dict().

Endpoints:
- GET   /health                               -> Backend status
- POST  /api/v1/exceptions/scan/{component_id} -> Scan one component
- POST  /api/v1/exceptions/scan-all           -> Fleet scan
- GET   /api/v1/exceptions                    -> Filtered exception list
- PATCH /api/v1/exceptions/{exception_id}     -> Review status change
- GET   /api/v1/trace/{component_id}          -> Trace report

Usage:
    uvicorn aerotrace.api.server:app --reload
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..contracts.base import ComponentNotFound, ExceptionNotFound, InvalidStatusTransition
from ..engine import AeroTraceBackend
from ..observability import get_component_logger

logger = get_component_logger("api")


class ExceptionStatusUpdate(BaseModel):
    """PATCH body for a review status change."""
    status: str
    resolved_by: Optional[str] = None
    resolution_notes: Optional[str] = None


def _backend(request: Request) -> AeroTraceBackend:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise HTTPException(status_code=503, detail="Backend not initialized")
    return backend


def create_app(backend: Optional[AeroTraceBackend] = None) -> FastAPI:
    """
    Build the API application.

    With no backend given, one is built from AEROTRACE_* environment
    variables at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.backend = backend or AeroTraceBackend.from_env()
        logger.info(
            "api_started",
            storage=app.state.backend.config.storage.backend_type,
            storage_dir=app.state.backend.config.storage.storage_dir,
        )
        yield
        logger.info("api_stopped")
        app.state.backend = None

    app = FastAPI(
        title="AeroTrace Integrity API",
        version="0.1.0",
        description="Exception detection and trace completeness for serialized components",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    def health_check(request: Request):
        """System status."""
        _backend(request)
        return {"status": "online"}

    @app.post("/api/v1/exceptions/scan/{component_id}")
    def scan_component(component_id: str, request: Request):
        try:
            result = _backend(request).scan_component(component_id)
        except ComponentNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        return result.to_dict()

    @app.post("/api/v1/exceptions/scan-all")
    def scan_all_components(request: Request):
        return _backend(request).scan_all_components().to_dict()

    @app.get("/api/v1/exceptions")
    def list_exceptions(
        request: Request,
        component_id: Optional[str] = None,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = Query(100, ge=1, le=1000),
    ):
        records = _backend(request).list_exceptions(component_id, severity, status, limit)
        return {"exceptions": [r.to_dict() for r in records], "count": len(records)}

    @app.patch("/api/v1/exceptions/{exception_id}")
    def update_exception(exception_id: str, body: ExceptionStatusUpdate, request: Request):
        try:
            record = _backend(request).update_exception_status(
                exception_id,
                body.status,
                resolved_by=body.resolved_by,
                resolution_notes=body.resolution_notes,
            )
        except InvalidStatusTransition as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ExceptionNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        return record.to_dict()

    @app.get("/api/v1/trace/{component_id}")
    def trace_report(component_id: str, request: Request):
        try:
            report = _backend(request).trace_report(component_id)
        except ComponentNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        return report.to_dict()

    return app


app = create_app()
