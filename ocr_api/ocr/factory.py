from __future__ import annotations

import logging

import httpx

from ocr_api.core.config import RemoteConfig
from ocr_api.core.logging import mask_secret
from ocr_api.ocr.azure_client import AzureOcrClient

logger = logging.getLogger(__name__)


def build_http_client(
    config: RemoteConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the connection pool shared by every OCR request.

    The caller owns the client and must ``aclose()`` it on shutdown.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.request_timeout_secs, connect=config.connect_timeout_secs),
        transport=transport,
    )


def get_ocr_engine(config: RemoteConfig, http_client: httpx.AsyncClient) -> AzureOcrClient | None:
    """Return the Azure OCR client, or ``None`` when credentials are missing (demo mode)."""
    logger.info(
        "azure_ocr_config",
        extra={
            "endpoint": config.endpoint or "(none)",
            "api_key": mask_secret(config.api_key),
            "api_version": config.api_version,
            "configured": config.is_configured,
        },
    )
    if not config.is_configured:
        logger.warning(
            "azure_credentials_missing_demo_mode",
            extra={"hint": "set AZURE_VISION_ENDPOINT and AZURE_VISION_KEY to enable real OCR"},
        )
        return None
    return AzureOcrClient(http_client, config)
