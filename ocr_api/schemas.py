from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OcrResponse(_CamelModel):
    extracted_text: str
    status: str
    message: str
    filename: str | None
    processed_at: datetime
    processing_time_ms: int


class ErrorResponse(_CamelModel):
    status: str = "ERROR"
    message: str
    error_code: str
