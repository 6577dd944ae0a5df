from __future__ import annotations


class OCREngine:
    async def submit(self, image_bytes: bytes, content_type: str | None = None) -> str:
        """Return the text recognized in *image_bytes*; raise ``OcrError`` on failure."""
        raise NotImplementedError
