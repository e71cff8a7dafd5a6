"""Runtime helpers for the bill OCR pipeline (non-HTTP)."""

import mimetypes
import os
import time
from dataclasses import dataclass
from pathlib import Path

import httpx

from billcheck.runtime.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OCR_URL = "http://localhost:8001"
OCR_TIMEOUT_SECONDS = 60.0


class OCRServiceUnavailable(RuntimeError):
    """Raised when the OCR service cannot be reached or returns an error."""


@dataclass(frozen=True)
class OcrText:
    """Text recognised by the OCR service and its overall confidence (0-100)."""

    text: str
    confidence: float = 0.0


def default_ocr_url() -> str:
    return os.environ.get("OCR_SERVICE_URL", DEFAULT_OCR_URL)


def _parse_ocr_payload(payload: object) -> OcrText:
    if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
        raise OCRServiceUnavailable("OCR service returned a malformed response (missing 'text')")

    confidence = payload.get("confidence", 0.0)
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = 0.0
    return OcrText(text=payload["text"], confidence=float(confidence))


def call_ocr_service(image_path: Path, ocr_url: str | None = None, client: httpx.Client | None = None) -> OcrText:
    """
    Send a bill image to the OCR service and return the recognised text.

    The service is expected to answer ``POST {ocr_url}/ocr`` with a JSON body
    of the form ``{"text": "...", "confidence": 87.5}``.

    Args:
        image_path: Image file to upload
        ocr_url: Base URL of the OCR service; defaults to $OCR_SERVICE_URL
        client: Optional httpx client (tests pass one with a mock transport)
    """
    ocr_url = (ocr_url or default_ocr_url()).rstrip("/")
    logger.info("Sending bill to OCR service at %s...", ocr_url)

    image_bytes = image_path.read_bytes()
    content_type = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
    post = client.post if client is not None else httpx.post

    try:
        start_time = time.time()
        response = post(
            f"{ocr_url}/ocr",
            files={"file": (image_path.name, image_bytes, content_type)},
            timeout=OCR_TIMEOUT_SECONDS,
        )
        elapsed_time = time.time() - start_time
        logger.info("OCR service returned in %.2f seconds", elapsed_time)
    except httpx.RequestError as e:
        logger.error("Failed to connect to OCR service: %s", e)
        raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e

    if response.status_code != 200:
        # Body may echo recognised bill text; log the status only.
        logger.error("OCR service error: %s", response.status_code)
        raise OCRServiceUnavailable(f"OCR service error: {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        raise OCRServiceUnavailable("OCR service returned invalid JSON") from e

    return _parse_ocr_payload(payload)
