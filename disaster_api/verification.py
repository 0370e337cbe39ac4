"""
Image verification
==================
Asks the Gemini vision model whether an image shows a genuine disaster or
signs of manipulation.  The answer is returned as unstructured free text;
no confidence or authenticity score is parsed out of it.
"""

import io
import logging

import requests
from PIL import Image, UnidentifiedImageError

from .errors import TransportError, ValidationError, VerificationError
from .gemini import GeminiClient
from .models import VerificationResult

logger = logging.getLogger(__name__)

NO_RESULT = "No result"

VERIFICATION_PROMPT = (
    "You are an expert disaster image analyst. Analyze this image for signs of a "
    "real disaster or of manipulation (editing, compositing, AI generation, reused "
    "old footage). Explain what you see and how authentic it looks.\n\n"
    "IMAGE: {reference}"
)


class ImageVerifier:

    def __init__(
        self,
        gemini: GeminiClient,
        session: requests.Session,
        fetch_images: bool = True,
        timeout: float = 15.0,
    ):
        self.gemini = gemini
        self.session = session
        self.fetch_images = fetch_images
        self.timeout = timeout

    def fetch_image(self, url: str) -> Image.Image:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Image download failed for {url}: {e}")
            raise VerificationError("Could not download image", details=str(e)) from e

        try:
            image = Image.open(io.BytesIO(response.content))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise VerificationError("Reference is not a readable image", details=url, status_code=400) from e
        return image

    def verify(self, image_reference: str) -> VerificationResult:
        if not image_reference or not image_reference.strip():
            raise ValidationError("imageReference is required")

        contents = [VERIFICATION_PROMPT.format(reference=image_reference)]
        if self.fetch_images and image_reference.lower().startswith(("http://", "https://")):
            contents.append(self.fetch_image(image_reference))

        try:
            text = self.gemini.generate("vision", contents)
        except TransportError as e:
            raise VerificationError("Image verification failed", details=e.details) from e

        logger.info(f"Verified image {image_reference[:80]} ({'text' if text else 'no result'})")
        return VerificationResult(verification_result=text or NO_RESULT)
