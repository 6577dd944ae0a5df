"""OCR pipeline: validate upload → call OCR engine → timed outcome.

Without Azure credentials the pipeline answers with a synthetic, clearly
labelled demo result so local runs and integration tests work offline.
Set OCR_REQUIRE_CREDENTIALS=true to fail instead.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Union

from ocr_api.core.config import RemoteConfig
from ocr_api.ocr.base_ocr import OCREngine
from ocr_api.ocr.errors import ErrorKind, InvalidInputError, OcrError

logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/bmp", "image/gif", "image/webp"})


@dataclass(frozen=True)
class ImagePayload:
    content: bytes
    content_type: str | None
    filename: str | None


@dataclass(frozen=True)
class OcrSuccess:
    text: str
    elapsed_ms: int
    demo: bool = False


@dataclass(frozen=True)
class OcrFailure:
    kind: ErrorKind
    message: str


OcrOutcome = Union[OcrSuccess, OcrFailure]


def validate_image(payload: ImagePayload) -> None:
    """Raise ``InvalidInputError`` unless *payload* is a non-empty supported image."""
    if not payload.content:
        raise InvalidInputError("File is empty. Please upload a valid image.")
    if payload.content_type not in SUPPORTED_CONTENT_TYPES:
        raise InvalidInputError("Invalid file type. Supported types: JPEG, PNG, BMP, GIF, WEBP")


def demo_text(payload: ImagePayload) -> str:
    return (
        "This is a demo OCR response.\n"
        f"File: {payload.filename}\n"
        f"Size: {len(payload.content)} bytes\n"
        f"Type: {payload.content_type}\n"
        "\n"
        "To enable real OCR processing:\n"
        "1. Create an Azure Computer Vision resource\n"
        "2. Set the credentials in the environment (or .env):\n"
        "   - AZURE_VISION_ENDPOINT=https://your-resource.cognitiveservices.azure.com/\n"
        "   - AZURE_VISION_KEY=your-api-key\n"
        "3. Restart the application"
    )


class OcrPipeline:
    def __init__(
        self,
        config: RemoteConfig,
        engine: OCREngine | None = None,
        *,
        require_credentials: bool = False,
        demo_delay_ms: int = 500,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if config.is_configured and engine is None:
            raise ValueError("An OCR engine is required when Azure credentials are configured")
        self._config = config
        self._engine = engine
        self._require_credentials = require_credentials
        self._demo_delay_ms = max(0, demo_delay_ms)
        self._sleep = sleep
        self._clock = clock

    @property
    def demo_mode(self) -> bool:
        return not self._config.is_configured and not self._require_credentials

    async def process(self, payload: ImagePayload) -> OcrOutcome:
        logger.info(
            "ocr_started",
            extra={"upload_filename": payload.filename, "content_type": payload.content_type},
        )

        try:
            validate_image(payload)
        except InvalidInputError as exc:
            logger.error("ocr_invalid_input", extra={"upload_filename": payload.filename, "reason": str(exc)})
            return OcrFailure(kind=exc.kind, message=str(exc))

        engine = self._engine
        if not self._config.is_configured or engine is None:
            if self._require_credentials:
                logger.error("ocr_credentials_missing", extra={"upload_filename": payload.filename})
                return OcrFailure(
                    kind=ErrorKind.CONFIGURATION_ERROR,
                    message="Azure credentials are not configured",
                )
            return await self._demo_outcome(payload)

        t0 = self._clock()
        try:
            text = await engine.submit(payload.content, payload.content_type)
        except OcrError as exc:
            elapsed_ms = int((self._clock() - t0) * 1000)
            logger.error(
                "ocr_failed",
                extra={
                    "upload_filename": payload.filename,
                    "kind": exc.kind.value,
                    "error": str(exc),
                    "elapsed_ms": elapsed_ms,
                },
            )
            return OcrFailure(kind=exc.kind, message=str(exc))

        elapsed_ms = int((self._clock() - t0) * 1000)
        logger.info(
            "ocr_complete",
            extra={"upload_filename": payload.filename, "text_length": len(text), "elapsed_ms": elapsed_ms},
        )
        return OcrSuccess(text=text, elapsed_ms=elapsed_ms)

    async def _demo_outcome(self, payload: ImagePayload) -> OcrSuccess:
        logger.warning("ocr_demo_mode", extra={"upload_filename": payload.filename})
        await self._sleep(self._demo_delay_ms / 1000)
        return OcrSuccess(text=demo_text(payload), elapsed_ms=self._demo_delay_ms, demo=True)
