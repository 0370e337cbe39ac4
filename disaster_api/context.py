"""
Service context
===============
Everything a request handler needs, built once at startup and handed to
``create_app``.

Lifecycle
---------
1. ``ServiceContext.from_settings(settings)``: construct store, broadcaster,
   Gemini client, geocoder and verifier (no network I/O yet)
2. ``startup()``: called from the app lifespan; logs the configuration
3. ``await shutdown()``: drains pending broadcasts, closes sockets, the
   shared HTTP session and the store client
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from fastapi.concurrency import run_in_threadpool

from .broadcast import WSManager
from .config import Settings
from .enrichment import LocationEnricher, NominatimGeocoder
from .gemini import GeminiClient
from .service import DisasterService
from .store import DisasterStore, make_store
from .verification import ImageVerifier

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    store: DisasterStore
    ws_mgr: WSManager
    disasters: DisasterService
    enricher: LocationEnricher
    verifier: ImageVerifier
    session: requests.Session

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: Optional[DisasterStore] = None,
        gemini: Optional[GeminiClient] = None,
        session: Optional[requests.Session] = None,
    ) -> "ServiceContext":
        session = session or requests.Session()
        store = store or make_store(settings)
        gemini = gemini or GeminiClient.from_settings(settings)
        ws_mgr = WSManager()
        return cls(
            settings=settings,
            store=store,
            ws_mgr=ws_mgr,
            disasters=DisasterService(store, ws_mgr),
            enricher=LocationEnricher(gemini, NominatimGeocoder.from_settings(settings, session)),
            verifier=ImageVerifier(gemini, session, settings.verify_fetch_images, settings.http_timeout),
            session=session,
        )

    def startup(self):
        logger.info(f"Store backend : {self.store.backend}")
        logger.info(f"Gemini key    : {'set' if self.settings.gemini_api_key else 'MISSING'}")
        logger.info(f"Geocoder      : {self.settings.nominatim_url}")

    async def shutdown(self):
        await self.ws_mgr.close()
        self.session.close()
        await run_in_threadpool(self.store.close)
        logger.info("Service context closed")
