"""
Location enrichment
===================
Free-text description  →  Gemini (location phrase)  →  Nominatim (lat, lon)

The phrase is validated before any geocoding request is made.  Nothing is
retried or cached; a transport failure at either step is terminal for the
request and surfaces as that step's error with a 500 status.
"""

import logging
from typing import Dict, Optional

import requests

from .config import Settings
from .errors import ExtractionError, GeocodeError, TransportError
from .gemini import GeminiClient
from .models import GeocodeResult

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract the location from this text. Reply with only the place name, "
    "or with nothing if no location is mentioned.\n\n"
    "TEXT: {description}"
)


class NominatimGeocoder:
    """OpenStreetMap Nominatim search, best match only."""

    def __init__(self, session: requests.Session, url: str, user_agent: str, timeout: float = 15.0):
        self.session = session
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session) -> "NominatimGeocoder":
        return cls(session, settings.nominatim_url, settings.geocoder_user_agent, settings.http_timeout)

    def search(self, query: str) -> Optional[Dict]:
        """Return the single best match (``{"lat": "...", "lon": "...", ...}``) or None."""
        try:
            response = self.session.get(
                self.url,
                params={"q": query, "format": "json", "limit": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            matches = response.json()
        except requests.RequestException as e:
            logger.error(f"Nominatim request failed for {query!r}: {e}")
            raise TransportError("Geocoding request failed", details=str(e)) from e

        if not isinstance(matches, list):
            raise TransportError("Unexpected geocoder response", details=str(matches)[:200])
        return matches[0] if matches else None


class LocationEnricher:

    def __init__(self, gemini: GeminiClient, geocoder: NominatimGeocoder):
        self.gemini = gemini
        self.geocoder = geocoder

    def extract_location(self, description: str) -> str:
        if not description or not description.strip():
            raise ExtractionError("Description is empty")
        try:
            text = self.gemini.generate("text", EXTRACTION_PROMPT.format(description=description))
        except TransportError as e:
            raise ExtractionError("Location extraction failed", details=e.details, status_code=500) from e

        phrase = (text or "").strip()
        if not phrase:
            raise ExtractionError("Location name could not be extracted")
        return phrase

    def geocode(self, phrase: str) -> GeocodeResult:
        try:
            match = self.geocoder.search(phrase)
        except TransportError as e:
            raise GeocodeError("Geocoding failed", details=e.details, status_code=500) from e
        if match is None:
            raise GeocodeError("Location not found in OpenStreetMap", details=phrase)

        try:
            latitude, longitude = float(match["lat"]), float(match["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodeError("Geocoder match has no usable coordinates", details=phrase, status_code=500) from e
        return GeocodeResult(location_name=phrase, latitude=latitude, longitude=longitude)

    def extract_and_geocode(self, description: str) -> GeocodeResult:
        phrase = self.extract_location(description)
        result = self.geocode(phrase)
        logger.info(f"Geocoded {phrase!r} → ({result.latitude}, {result.longitude})")
        return result
