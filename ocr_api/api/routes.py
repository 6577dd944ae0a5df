from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from ocr_api.ocr.errors import ErrorKind
from ocr_api.pipeline.pipeline import ImagePayload, OcrFailure, OcrPipeline
from ocr_api.schemas import ErrorResponse, OcrResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ocr")


def get_pipeline(request: Request) -> OcrPipeline:
    return request.app.state.pipeline


def _error(status_code: int, message: str, error_code: str) -> JSONResponse:
    body = ErrorResponse(message=message, error_code=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    logger.info("health_check")
    return "Azure OCR API is running"


@router.post("/extract", response_model=OcrResponse)
async def extract_text(
    file: UploadFile | None = File(None),
    pipeline: OcrPipeline = Depends(get_pipeline),
):
    if file is None:
        logger.error("extract_no_file")
        return _error(400, "No file provided", "NO_FILE")

    logger.info("extract_requested", extra={"upload_filename": file.filename})

    try:
        content = await file.read()
    except OSError as exc:
        logger.exception("extract_file_read_failed", extra={"upload_filename": file.filename})
        return _error(500, f"Error reading file: {exc}", "FILE_READ_ERROR")

    payload = ImagePayload(content=content, content_type=file.content_type, filename=file.filename)
    try:
        outcome = await pipeline.process(payload)
    except Exception as exc:
        logger.exception("extract_unexpected_error", extra={"upload_filename": file.filename})
        return _error(500, f"An unexpected error occurred: {exc}", "INTERNAL_ERROR")

    if isinstance(outcome, OcrFailure):
        status_code = 400 if outcome.kind is ErrorKind.INVALID_INPUT else 500
        return _error(status_code, outcome.message, outcome.kind.value)

    if outcome.demo:
        status = "SUCCESS (DEMO MODE)"
        message = "Text extraction completed in demo mode (Azure credentials not configured)"
    else:
        status = "SUCCESS"
        message = "Text extraction completed successfully"

    return OcrResponse(
        extracted_text=outcome.text,
        status=status,
        message=message,
        filename=file.filename,
        processed_at=datetime.now(),
        processing_time_ms=outcome.elapsed_ms,
    )


@router.post("/extract-from-url", status_code=501)
async def extract_text_from_url(url: str | None = None) -> JSONResponse:
    logger.info("extract_from_url_requested", extra={"image_url": url})
    return _error(
        501,
        "URL-based OCR is not yet implemented. Please use the /extract endpoint with file upload.",
        "NOT_IMPLEMENTED",
    )
