"""
Gemini client
=============
Thin wrapper over ``google.generativeai`` shared by location extraction
(text model) and image verification (vision model).  Models are created on
first use so building the client never touches the network.
"""

import logging
from typing import Any, Dict, Optional

import google.generativeai as genai

from .config import Settings
from .errors import TransportError

logger = logging.getLogger(__name__)


def first_candidate_text(response) -> Optional[str]:
    """Text of the first part of the first candidate, or None if absent/empty."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None
    return getattr(parts[0], "text", None) or None


class GeminiClient:

    def __init__(
        self,
        api_key: str = "",
        text_model: str = "gemini-1.5-flash",
        vision_model: str = "gemini-1.5-flash",
        timeout: float = 15.0,
        models: Optional[Dict[str, Any]] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._model_names = {"text": text_model, "vision": vision_model}
        self._models: Dict[str, Any] = dict(models or {})
        self._configured = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            api_key=settings.gemini_api_key,
            text_model=settings.gemini_text_model,
            vision_model=settings.gemini_vision_model,
            timeout=settings.http_timeout,
        )

    def _model(self, kind: str):
        if kind not in self._models:
            if not self._configured:
                genai.configure(api_key=self.api_key)
                self._configured = True
            self._models[kind] = genai.GenerativeModel(self._model_names[kind])
            logger.info(f"✓ Gemini {kind} model ready ({self._model_names[kind]})")
        return self._models[kind]

    def generate(self, kind: str, contents) -> Optional[str]:
        """Run one generate_content call; returns the first candidate's text or None."""
        try:
            response = self._model(kind).generate_content(
                contents, request_options={"timeout": self.timeout},
            )
        except Exception as e:
            logger.error(f"Gemini {kind} request failed: {e}")
            raise TransportError("Gemini request failed", details=str(e)) from e

        text = first_candidate_text(response)
        logger.debug(f"Raw Gemini {kind} response: {(text or '')[:200]}")
        return text
