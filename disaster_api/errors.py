"""Error taxonomy.  Each error knows the HTTP status the route layer answers with."""

from typing import Any, Dict, Optional


class DisasterAPIError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(DisasterAPIError):
    """Missing or malformed input."""
    status_code = 400


class NotFoundError(DisasterAPIError):
    status_code = 404


class ExtractionError(DisasterAPIError):
    """No usable location phrase could be extracted from a description."""
    status_code = 400


class GeocodeError(DisasterAPIError):
    """The geocoder returned no match for an extracted phrase."""
    status_code = 404


class VerificationError(DisasterAPIError):
    status_code = 500


class TransportError(DisasterAPIError):
    """Upstream HTTP failure (Gemini, Nominatim, image host)."""
    status_code = 500


class ConfigError(DisasterAPIError):
    status_code = 500
