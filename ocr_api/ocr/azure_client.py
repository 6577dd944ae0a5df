"""Azure Computer Vision OCR client.

Talks to the REST endpoint directly with a shared ``httpx.AsyncClient``:

    POST {endpoint}/vision/{api_version}/ocr?language=unk&detectOrientation=true

The service either answers 200 with the OCR JSON inline, or 202 with an
``Operation-Location`` header that is polled until the job reports
``succeeded`` or ``failed``. 429 and 5xx answers (and transport errors) are
retried with exponential backoff; any other status fails immediately.

Config (via .env):
    AZURE_VISION_ENDPOINT=https://<resource>.cognitiveservices.azure.com/
    AZURE_VISION_KEY=...
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from ocr_api.core.config import RemoteConfig
from ocr_api.core.logging import mask_secret
from ocr_api.ocr.backoff import compute_delay_ms
from ocr_api.ocr.base_ocr import OCREngine
from ocr_api.ocr.errors import (
    ConfigurationError,
    PollTimeoutError,
    ProtocolError,
    RemoteError,
    RemoteOperationFailedError,
    RetriesExhaustedError,
)
from ocr_api.ocr.results import extract_text, read_results_document

logger = logging.getLogger(__name__)

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
OPERATION_LOCATION_HEADER = "Operation-Location"
MIN_POLL_INTERVAL_MS = 200
MAX_LOGGED_BODY = 500


# ---------------------------------------------------------------------------
# Single-send outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Completed:
    payload: Any


@dataclass(frozen=True)
class Pending:
    status_url: str


@dataclass(frozen=True)
class Transient:
    status_code: int
    detail: str


@dataclass(frozen=True)
class Rejected:
    status_code: int
    body: str


SendOutcome = Union[Completed, Pending, Transient, Rejected]


def truncate(text: str, limit: int = MAX_LOGGED_BODY) -> str:
    return text if len(text) <= limit else text[:limit] + "…"


def is_transient_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


def _parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ProtocolError(
            f"Azure OCR returned malformed JSON (status {response.status_code}): {truncate(response.text)}"
        ) from exc


def _is_absolute_http_url(value: str) -> bool:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return url.scheme in {"http", "https"} and bool(url.host)


def classify_response(response: httpx.Response) -> SendOutcome:
    """Map one OCR submission response onto a ``SendOutcome``.

    A 202 without an absolute http(s) ``Operation-Location`` raises ``ProtocolError``.
    """
    status = response.status_code
    if status == 200:
        return Completed(payload=_parse_json(response))
    if status == 202:
        location = response.headers.get(OPERATION_LOCATION_HEADER)
        if not location:
            raise ProtocolError("Operation-Location header missing on 202 response")
        if not _is_absolute_http_url(location):
            raise ProtocolError(f"Operation-Location is not an absolute http(s) URL: {truncate(location)}")
        return Pending(status_url=location)
    if is_transient_status(status):
        return Transient(status_code=status, detail=truncate(response.text))
    return Rejected(status_code=status, body=truncate(response.text))


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class AzureOcrClient(OCREngine):
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: RemoteConfig,
        *,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http_client
        self._config = config
        self._rng = rng
        self._sleep = sleep
        self._clock = clock
        self._timeout = httpx.Timeout(config.request_timeout_secs, connect=config.connect_timeout_secs)

    def ocr_url(self) -> str:
        base = self._config.endpoint.strip().rstrip("/")
        return f"{base}/vision/{self._config.api_version}/ocr?language=unk&detectOrientation=true"

    async def submit(self, image_bytes: bytes, content_type: str | None = None) -> str:
        if not self._config.is_configured:
            raise ConfigurationError("Azure credentials not configured")

        url = self.ocr_url()
        logger.info(
            "azure_ocr_submit",
            extra={
                "url": url,
                "bytes": len(image_bytes),
                "content_type": content_type,
                "api_key": mask_secret(self._config.api_key),
            },
        )

        outcome = await self._send_with_retries(url, image_bytes)

        if isinstance(outcome, Completed):
            text = extract_text(outcome.payload)
            logger.debug("azure_ocr_completed", extra={"text_length": len(text)})
            return text
        if isinstance(outcome, Pending):
            return await self._poll(outcome.status_url)

        logger.error(
            "azure_ocr_rejected",
            extra={"status_code": outcome.status_code, "body": outcome.body},
        )
        raise RemoteError(outcome.status_code, outcome.body)

    # ------------------------------------------------------------------ #
    #  Submission with retries                                             #
    # ------------------------------------------------------------------ #

    async def _send_once(self, url: str, image_bytes: bytes) -> SendOutcome:
        response = await self._http.post(
            url,
            content=image_bytes,
            headers={
                SUBSCRIPTION_KEY_HEADER: self._config.api_key,
                "Content-Type": "application/octet-stream",
            },
            timeout=self._timeout,
        )
        return classify_response(response)

    async def _send_with_retries(self, url: str, image_bytes: bytes) -> SendOutcome:
        attempts = max(1, self._config.max_retries)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self._backoff_seconds,
            retry=(
                retry_if_result(lambda outcome: isinstance(outcome, Transient))
                | retry_if_exception_type(httpx.TransportError)
            ),
            sleep=self._sleep,
            before_sleep=lambda retry_state: self._log_retry(retry_state, attempts),
        )
        try:
            return await retrying(self._send_once, url, image_bytes)
        except RetryError as exc:
            last = exc.last_attempt
            if last.failed:
                cause = last.exception()
                detail = f"{type(cause).__name__}: {cause}"
            else:
                transient: Transient = last.result()
                cause = None
                detail = f"status {transient.status_code}: {transient.detail}"
            logger.error("azure_ocr_retries_exhausted", extra={"attempts": attempts, "detail": detail})
            raise RetriesExhaustedError(attempts, detail) from cause

    def _backoff_seconds(self, retry_state: RetryCallState) -> float:
        return compute_delay_ms(retry_state.attempt_number, self._config.retry_backoff_ms, self._rng) / 1000

    def _log_retry(self, retry_state: RetryCallState, max_attempts: int) -> None:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            reason = repr(outcome.exception())
        elif outcome is not None:
            reason = f"status {outcome.result().status_code}"
        else:
            reason = "unknown"
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "azure_ocr_retry",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": max_attempts,
                "reason": reason,
                "delay_ms": int(delay * 1000),
            },
        )

    # ------------------------------------------------------------------ #
    #  Polling                                                             #
    # ------------------------------------------------------------------ #

    async def _poll(self, status_url: str) -> str:
        deadline = self._clock() + max(1, self._config.poll_timeout_secs)
        interval = max(MIN_POLL_INTERVAL_MS, self._config.poll_interval_ms) / 1000

        while self._clock() < deadline:
            try:
                response = await self._http.get(
                    status_url,
                    headers={SUBSCRIPTION_KEY_HEADER: self._config.api_key},
                    timeout=self._timeout,
                )
            except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
                logger.error("azure_ocr_poll_bad_url", extra={"status_url": truncate(status_url), "error": repr(exc)})
                raise ProtocolError(f"Cannot poll operation URL {truncate(status_url)}: {exc}") from exc
            except httpx.TransportError as exc:
                logger.warning("azure_ocr_poll_transport_error", extra={"error": repr(exc)})
            else:
                text = self._read_poll_response(response)
                if text is not None:
                    return text
            await self._sleep(interval)

        logger.error("azure_ocr_poll_timeout", extra={"poll_timeout_secs": self._config.poll_timeout_secs})
        raise PollTimeoutError("Timed out waiting for Read operation result")

    def _read_poll_response(self, response: httpx.Response) -> str | None:
        """Return the final text, ``None`` to keep polling, or raise on a terminal failure."""
        status = response.status_code
        if response.is_success:
            payload = _parse_json(response)
            op_status = ""
            if isinstance(payload, Mapping):
                op_status = str(payload.get("status") or "").lower()
            if op_status == "succeeded":
                return extract_text(read_results_document(payload))
            if op_status == "failed":
                raise RemoteOperationFailedError(f"Read operation failed: {truncate(response.text)}")
            logger.debug("azure_ocr_poll_pending", extra={"operation_status": op_status or "(none)"})
            return None

        body = truncate(response.text)
        if is_transient_status(status):
            logger.warning("azure_ocr_poll_transient", extra={"status_code": status, "body": body})
            return None

        logger.error("azure_ocr_poll_failed", extra={"status_code": status, "body": body})
        raise ProtocolError(f"Polling operation failed with status {status}: {body}")
