"""Error taxonomy for OCR requests.

Every failure raised by the OCR client or the input validation carries an
``ErrorKind``; its value doubles as the ``errorCode`` returned by the API.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    REMOTE_ERROR = "REMOTE_ERROR"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    POLL_TIMEOUT = "POLL_TIMEOUT"
    REMOTE_OPERATION_FAILED = "REMOTE_OPERATION_FAILED"


class OcrError(Exception):
    """Base error for OCR failures."""

    kind: ErrorKind = ErrorKind.REMOTE_ERROR


class InvalidInputError(OcrError):
    """Raised when the uploaded file is empty or not a supported image."""

    kind = ErrorKind.INVALID_INPUT


class ConfigurationError(OcrError):
    """Raised when the remote endpoint or API key is missing."""

    kind = ErrorKind.CONFIGURATION_ERROR


class RemoteError(OcrError):
    """Raised when the remote service rejects a request with a non-transient status."""

    kind = ErrorKind.REMOTE_ERROR

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Azure OCR returned status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class RetriesExhaustedError(OcrError):
    """Raised when transient failures outlast the retry budget."""

    kind = ErrorKind.RETRIES_EXHAUSTED

    def __init__(self, attempts: int, detail: str) -> None:
        super().__init__(f"Azure OCR failed after {attempts} attempts: {detail}")
        self.attempts = attempts
        self.detail = detail


class ProtocolError(OcrError):
    """Raised when the remote service breaks the expected contract."""

    kind = ErrorKind.PROTOCOL_ERROR


class PollTimeoutError(OcrError):
    kind = ErrorKind.POLL_TIMEOUT


class RemoteOperationFailedError(OcrError):
    kind = ErrorKind.REMOTE_OPERATION_FAILED
