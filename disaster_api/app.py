#!/usr/bin/env python3
"""
Disaster Reporting API
======================

REST + WebSocket backend for the disaster-reporting frontend.

DISASTERS
  POST   /disasters                        → create a record (201)
  GET    /disasters?tag=<tag>              → all records, optionally by tag
  GET    /disasters/{id}                   → single record
  PUT    /disasters/{id}                   → full replacement update
  DELETE /disasters/{id}                   → delete
  GET    /disasters/{id}/audit-trail       → audit entries of one record
  GET    /disasters/{id}/social-media      → mock feed (also broadcast)
  POST   /disasters/{id}/verify-image      → Gemini vision assessment

ENRICHMENT
  POST   /geocode                          → description → {locationName, latitude, longitude}

SHARED
  GET    /health                           → health-check
  WS     /ws                               → disaster_updated / social_media_updated events

Run:
    uvicorn disaster_api.app:create_app --factory --reload --port 5001

Swagger: http://localhost:5001/docs
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .broadcast import SOCIAL_MEDIA_UPDATED
from .config import Settings, setup_logging
from .context import ServiceContext
from .errors import DisasterAPIError
from .models import DisasterInput, GeocodeRequest, VerifyImageRequest
from .social import mock_feed

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# APP FACTORY
# ═══════════════════════════════════════════════════════════════════════════

def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    if context is None:
        settings = Settings.from_env()
        setup_logging(settings.log_level)
        context = ServiceContext.from_settings(settings)
    ctx = context

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx.startup()
        yield
        await ctx.shutdown()

    app = FastAPI(
        title="Disaster Reporting API",
        version="1.0.0",
        description=(
            "REST + WebSocket API for disaster reports:\n"
            "1. **Disasters**: CRUD with an append-only audit trail\n"
            "2. **Enrichment**: Gemini location extraction + Nominatim geocoding\n"
            "3. **Verification**: Gemini vision image assessment"
        ),
        lifespan=lifespan,
    )

    app.state.ctx = ctx

    # ── Error handling ──

    @app.exception_handler(DisasterAPIError)
    async def api_error(request: Request, exc: DisasterAPIError):
        logger.warning(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
        return JSONResponse(jsonable_encoder(exc.to_dict()), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]
        return JSONResponse(
            {"error": "Invalid request", "details": jsonable_encoder(errors)},
            status_code=400,
        )

    @app.middleware("http")
    async def unexpected_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return JSONResponse({"error": "Internal server error"}, status_code=500)

    # Must stay outermost so unexpected_errors responses carry CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ctx.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─────────────────────────────────────────────────────────────────────
    #  SHARED ENDPOINTS
    # ─────────────────────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"])
    def health():
        return {
            "status": "ok",
            "store": ctx.store.backend,
            "ws_connections": len(ctx.ws_mgr.active),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ─────────────────────────────────────────────────────────────────────
    #  DISASTERS
    # ─────────────────────────────────────────────────────────────────────

    @app.post("/disasters", status_code=201, tags=["Disasters"], summary="Create a disaster record")
    async def create_disaster(body: DisasterInput):
        record = await ctx.disasters.create(body)
        return record.to_json()

    @app.get("/disasters", tags=["Disasters"], summary="List disaster records")
    async def list_disasters(
        tag: Optional[str] = Query(None, description="Only records whose tags contain this exact value"),
    ):
        records = await ctx.disasters.list(tag or None)
        return [r.to_json() for r in records]

    @app.get("/disasters/{disaster_id}", tags=["Disasters"], summary="Single record")
    async def get_disaster(disaster_id: str):
        return (await ctx.disasters.get(disaster_id)).to_json()

    @app.put("/disasters/{disaster_id}", tags=["Disasters"], summary="Replace a record's fields")
    async def update_disaster(disaster_id: str, body: DisasterInput):
        """
        Full replacement: every editable field is taken from the body, so
        omitted optional fields are cleared.  Appends one ``update`` audit entry.
        """
        record = await ctx.disasters.update(disaster_id, body)
        return record.to_json()

    @app.delete("/disasters/{disaster_id}", tags=["Disasters"], summary="Delete a record")
    async def delete_disaster(disaster_id: str):
        await ctx.disasters.delete(disaster_id)
        return {"message": "Deleted"}

    @app.get("/disasters/{disaster_id}/audit-trail", tags=["Disasters"], summary="Audit entries")
    async def disaster_audit_trail(disaster_id: str):
        return [e.to_json() for e in await ctx.disasters.audit_trail(disaster_id)]

    @app.get("/disasters/{disaster_id}/social-media", tags=["Feed"], summary="Mock social media feed")
    async def disaster_social_media(disaster_id: str):
        posts = [p.to_json() for p in mock_feed(disaster_id)]
        ctx.ws_mgr.publish(SOCIAL_MEDIA_UPDATED, posts)
        return posts

    # ─────────────────────────────────────────────────────────────────────
    #  ENRICHMENT / VERIFICATION (blocking upstream calls → threadpool)
    # ─────────────────────────────────────────────────────────────────────

    @app.post("/geocode", tags=["Enrichment"], summary="Extract and geocode a location")
    def geocode(body: GeocodeRequest):
        return ctx.enricher.extract_and_geocode(body.description).to_json()

    @app.post("/disasters/{disaster_id}/verify-image", tags=["Verification"], summary="Assess an image")
    def verify_image(disaster_id: str, body: VerifyImageRequest):
        """Returns the model's free-text assessment as ``verificationResult``."""
        return ctx.verifier.verify(body.image_reference).to_json()

    # ─────────────────────────────────────────────────────────────────────
    #  WEBSOCKET (live updates)
    # ─────────────────────────────────────────────────────────────────────

    @app.websocket("/ws", name="ws_updates")
    async def ws_updates(ws: WebSocket):
        """
        After connection, the server pushes:
          { "type": "disaster_updated", "data": { ...record } | { "deleted": id } }
          { "type": "social_media_updated", "data": [ ...posts ] }

        Client can send:
          "ping"  → receives { "type": "pong" }
        Any other frame, text or binary, is ignored.
        """
        await ctx.ws_mgr.connect(ws)
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    break
                if message.get("text") == "ping":
                    await ws.send_json({"type": "pong"})
        except WebSocketDisconnect:
            pass
        finally:
            ctx.ws_mgr.disconnect(ws)

    return app


# ═══════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════

def main():
    import uvicorn

    app = create_app()
    settings = app.state.ctx.settings
    print("\n" + "=" * 64)
    print("  DISASTER REPORTING API")
    print("  " + "─" * 60)
    print(f"  Swagger UI     : http://localhost:{settings.port}/docs")
    print(f"  Health         : http://localhost:{settings.port}/health")
    print(f"  Disasters      : http://localhost:{settings.port}/disasters")
    print(f"  WebSocket      : ws://localhost:{settings.port}/ws")
    print("=" * 64 + "\n")

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
