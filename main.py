"""
Main API module for LinkTrack.

Responsibilities:
    - Expose REST endpoints for creating tracking links and listing them
    - Record clicks (JSON tracking endpoint and a browser redirect endpoint)
    - Serve analytics snapshots, time-range summaries and CSV exports

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory storage by default; PostgreSQL via LINKTRACK_STORAGE_BACKEND.
    - TrackingManager owns every rule; routes only translate HTTP <-> domain.
    - Domain errors map to status codes in one exception handler.

Response envelope:
    {"success": true, "data": ...} or {"success": false, "error": "..."}

LLM Prompt Example:
    "Explain how to structure a FastAPI service with an application factory,
    injected dependencies, and a clean separation between API and business logic."
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from linktrack.analytics.export import export_filename
from linktrack.config import settings
from linktrack.errors import (
    CapacityError,
    InvalidRequestError,
    LinkInactiveError,
    LinkNotFoundError,
    LinkTrackError,
)
from linktrack.manager.tracking_manager import TrackingManager
from linktrack.storage.storage_factory import get_storage


class GenerateLinkRequest(BaseModel):
    """Request payload for creating a new tracking link."""
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    customCode: Optional[str] = None


class TrackRequest(BaseModel):
    """Click payload; enrichment happens upstream and arrives in additionalData."""
    linkId: Optional[str] = None
    additionalData: Optional[Dict[str, Any]] = None


class ActiveRequest(BaseModel):
    isActive: bool


class SummaryRequest(BaseModel):
    timeRange: str = "24h"


def _status_for(exc: LinkTrackError) -> int:
    if isinstance(exc, LinkNotFoundError):
        return 404
    if isinstance(exc, LinkInactiveError):
        return 403
    if isinstance(exc, CapacityError):
        return 503
    return 400


def _ok(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    """Query strings like `?linkId=` mean "not given"."""
    return value or None


def create_app(manager: Optional[TrackingManager] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        manager (TrackingManager, optional): Pre-wired manager. When omitted, storage
            is chosen from the environment and a fresh manager is built.

    Returns:
        FastAPI: A configured application with its own isolated state.
    """
    app = FastAPI(
        title="LinkTrack",
        description="Trackable short links with click analytics",
        docs_url="/docs",
    )
    log = logging.getLogger("linktrack")

    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    if manager is None:
        registry, event_log = get_storage()
        manager = TrackingManager(registry=registry, event_log=event_log)
    app.state.manager = manager
    log.info("LinkTrack storage backend: %s", type(manager.registry).__name__)

    @app.exception_handler(LinkTrackError)
    async def _linktrack_error(request: Request, exc: LinkTrackError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse({"success": False, "error": str(exc)}, status_code=status)

    # ----------------------------------------------------------------
    # Utilities
    # ----------------------------------------------------------------
    def _payload_from_headers(request: Request) -> Dict[str, Any]:
        """
        Build a click payload from an incoming browser request.

        Country and device type are expected from an upstream enricher
        (X-Country / X-Device-Type); they are not computed here.
        """
        headers = request.headers
        payload: Dict[str, Any] = {
            "referrer": headers.get("referer"),
            "userAgent": headers.get("user-agent"),
            "country": headers.get("x-country"),
            "deviceType": headers.get("x-device-type"),
        }
        return {k: v for k, v in payload.items() if v}

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/generate")
    def generate_link(req: GenerateLinkRequest) -> Dict[str, Any]:
        link = manager.create_link(
            req.url, title=req.title, description=req.description, custom_code=req.customCode
        )
        return _ok(link.to_dict())

    @app.get("/api/generate")
    def list_links() -> Dict[str, Any]:
        return _ok([link.to_dict() for link in manager.list_links()])

    @app.get("/api/links/{link_id}")
    def get_link(link_id: str) -> Dict[str, Any]:
        return _ok(manager.get_link(link_id).to_dict())

    @app.patch("/api/links/{link_id}")
    def set_link_active(link_id: str, req: ActiveRequest) -> Dict[str, Any]:
        return _ok(manager.set_active(link_id, req.isActive).to_dict())

    @app.post("/api/track")
    def track_click(req: TrackRequest) -> Dict[str, Any]:
        if not req.linkId:
            raise InvalidRequestError("Link ID is required")
        return _ok(manager.record_click(req.linkId, req.additionalData).to_dict())

    @app.get("/api/track")
    def list_events(
        linkId: Optional[str] = Query(None), timeRange: Optional[str] = Query(None)
    ) -> Dict[str, Any]:
        events = manager.list_events(_blank_to_none(linkId), _blank_to_none(timeRange))
        return _ok([event.to_dict() for event in events])

    @app.get("/api/analytics")
    def analytics(linkId: Optional[str] = Query(None)) -> Dict[str, Any]:
        return _ok(manager.get_analytics(_blank_to_none(linkId)).to_dict())

    @app.post("/api/analytics")
    def analytics_summary(req: Optional[SummaryRequest] = None) -> Dict[str, Any]:
        time_range = req.timeRange if req else "24h"
        return _ok(manager.get_summary(time_range).to_dict())

    @app.get("/api/export")
    def export_events(
        linkId: Optional[str] = Query(None), timeRange: Optional[str] = Query(None)
    ) -> Response:
        linkId = _blank_to_none(linkId)
        body = manager.export_events_csv(linkId, _blank_to_none(timeRange))
        return Response(
            content=body,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export_filename(linkId)}"'},
        )

    @app.get("/t/{short_code}", name="redirect_link")
    def redirect_link(short_code: str, request: Request) -> Response:
        """
        Public redirect path: record the click, then send the visitor on.

        Browsers get a 302; API clients asking for JSON get the click result.
        """
        result = manager.record_click_by_short_code(short_code, _payload_from_headers(request))
        accept = request.headers.get("accept", "").lower()
        if "application/json" in accept and "text/html" not in accept:
            return JSONResponse(_ok(result.to_dict()))
        return RedirectResponse(url=result.redirect_url, status_code=302)

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
