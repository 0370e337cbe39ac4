"""
Disaster Reporting API
======================
FastAPI backend for disaster reports: CRUD with an append-only audit trail,
live WebSocket updates, Gemini + Nominatim location enrichment and Gemini
image verification.

Modules
-------
- app            : FastAPI app factory, routes and WebSocket endpoint
- context        : ServiceContext wiring (startup / shutdown)
- service        : DisasterService (audit trail + post-commit events)
- store          : memory and Firestore record stores
- broadcast      : WSManager live-update broadcaster
- enrichment     : location extraction + geocoding
- verification   : image verification
- config         : Settings loaded from the environment
"""

from .config import Settings
from .context import ServiceContext

__all__ = ["Settings", "ServiceContext"]
