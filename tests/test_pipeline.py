"""OCR pipeline tests: OCR engine replaced by AsyncMock, no network."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ocr_api.core.config import RemoteConfig
from ocr_api.ocr.base_ocr import OCREngine
from ocr_api.ocr.errors import ErrorKind, InvalidInputError, PollTimeoutError, RetriesExhaustedError
from ocr_api.pipeline.pipeline import (
    SUPPORTED_CONTENT_TYPES,
    ImagePayload,
    OcrFailure,
    OcrPipeline,
    OcrSuccess,
    validate_image,
)

CONFIGURED = RemoteConfig(endpoint="https://example.cognitiveservices.azure.com/", api_key="key-abcd")
UNCONFIGURED = RemoteConfig()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _payload(content: bytes = b"0123456789", content_type: str | None = "image/jpeg") -> ImagePayload:
    return ImagePayload(content=content, content_type=content_type, filename="receipt.jpg")


def _engine(text: str = "Hello World") -> AsyncMock:
    engine = AsyncMock(spec=OCREngine)
    engine.submit.return_value = text
    return engine


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("content_type", sorted(SUPPORTED_CONTENT_TYPES))
def test_supported_types_pass_validation(content_type: str) -> None:
    validate_image(_payload(content_type=content_type))


@pytest.mark.parametrize(
    "content_type",
    [None, "", "image/tiff", "IMAGE/JPEG", "image/jpg", "application/pdf", "image/png; charset=x"],
)
def test_unsupported_types_fail_validation(content_type) -> None:
    with pytest.raises(InvalidInputError, match="Invalid file type"):
        validate_image(_payload(content_type=content_type))


@pytest.mark.asyncio
async def test_empty_file_is_rejected(fake_sleep) -> None:
    engine = _engine()
    pipeline = OcrPipeline(CONFIGURED, engine, sleep=fake_sleep)

    outcome = await pipeline.process(_payload(content=b""))

    assert isinstance(outcome, OcrFailure)
    assert outcome.kind is ErrorKind.INVALID_INPUT
    assert outcome.message.startswith("File is empty")
    engine.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_type_is_rejected_before_demo_mode(fake_sleep) -> None:
    pipeline = OcrPipeline(UNCONFIGURED, sleep=fake_sleep)
    outcome = await pipeline.process(_payload(content_type="text/plain"))
    assert outcome == OcrFailure(
        kind=ErrorKind.INVALID_INPUT,
        message="Invalid file type. Supported types: JPEG, PNG, BMP, GIF, WEBP",
    )
    assert fake_sleep.calls == []


# ---------------------------------------------------------------------------
# Demo mode
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_demo_outcome_without_credentials(fake_sleep) -> None:
    engine = _engine()
    pipeline = OcrPipeline(UNCONFIGURED, engine, sleep=fake_sleep)

    outcome = await pipeline.process(_payload())

    assert isinstance(outcome, OcrSuccess)
    assert outcome.demo is True
    assert "receipt.jpg" in outcome.text
    assert "Size: 10 bytes" in outcome.text
    assert "Type: image/jpeg" in outcome.text
    assert outcome.elapsed_ms == 500
    assert fake_sleep.calls == [0.5]
    engine.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_demo_outcome_is_deterministic(fake_sleep) -> None:
    pipeline = OcrPipeline(UNCONFIGURED, demo_delay_ms=0, sleep=fake_sleep)
    first = await pipeline.process(_payload())
    second = await pipeline.process(_payload())
    assert first == second
    assert pipeline.demo_mode is True


@pytest.mark.asyncio
async def test_require_credentials_fails_fast(fake_sleep) -> None:
    pipeline = OcrPipeline(UNCONFIGURED, require_credentials=True, sleep=fake_sleep)

    outcome = await pipeline.process(_payload())

    assert isinstance(outcome, OcrFailure)
    assert outcome.kind is ErrorKind.CONFIGURATION_ERROR
    assert pipeline.demo_mode is False
    assert fake_sleep.calls == []


# ---------------------------------------------------------------------------
# Remote OCR
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_success_measures_elapsed_time() -> None:
    engine = _engine("Hello World")
    clock = iter([100.0, 101.25]).__next__
    pipeline = OcrPipeline(CONFIGURED, engine, clock=clock)

    outcome = await pipeline.process(_payload())

    assert outcome == OcrSuccess(text="Hello World", elapsed_ms=1250)
    engine.submit.assert_awaited_once_with(b"0123456789", "image/jpeg")


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (RetriesExhaustedError(3, "status 429: busy"), ErrorKind.RETRIES_EXHAUSTED),
        (PollTimeoutError("Timed out waiting for Read operation result"), ErrorKind.POLL_TIMEOUT),
    ],
)
@pytest.mark.asyncio
async def test_engine_errors_become_failures(error, kind) -> None:
    engine = AsyncMock(spec=OCREngine)
    engine.submit.side_effect = error
    pipeline = OcrPipeline(CONFIGURED, engine)

    outcome = await pipeline.process(_payload())

    assert outcome == OcrFailure(kind=kind, message=str(error))


@pytest.mark.asyncio
async def test_unexpected_errors_propagate() -> None:
    engine = AsyncMock(spec=OCREngine)
    engine.submit.side_effect = RuntimeError("boom")
    pipeline = OcrPipeline(CONFIGURED, engine)

    with pytest.raises(RuntimeError, match="boom"):
        await pipeline.process(_payload())


def test_configured_pipeline_requires_engine() -> None:
    with pytest.raises(ValueError, match="OCR engine is required"):
        OcrPipeline(CONFIGURED)


@pytest.mark.asyncio
async def test_configured_pipeline_uses_injected_engine(fake_sleep) -> None:
    engine = _engine("from engine")
    pipeline = OcrPipeline(CONFIGURED, engine, sleep=fake_sleep)

    outcome = await pipeline.process(_payload())

    assert isinstance(outcome, OcrSuccess)
    assert outcome.text == "from engine"
    assert outcome.demo is False
    assert pipeline.demo_mode is False
    assert fake_sleep.calls == []
    engine.submit.assert_awaited_once()
