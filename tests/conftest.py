"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import os

import pytest

# Pin env vars before any ocr_api module is imported: no real Azure calls,
# no demo delay.
os.environ["AZURE_VISION_ENDPOINT"] = ""
os.environ["AZURE_VISION_KEY"] = ""
os.environ.setdefault("OCR_DEMO_DELAY_MILLIS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture
def fake_sleep():
    """Async stand-in for ``asyncio.sleep``; requested delays land in ``fake_sleep.calls``."""
    calls: list[float] = []

    async def sleep(seconds: float) -> None:
        calls.append(seconds)

    sleep.calls = calls  # type: ignore[attr-defined]
    return sleep
