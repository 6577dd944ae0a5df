"""Normalize Azure OCR / Read API payloads into plain text.

Two payload shapes are recognized:

    regions[].lines[].words[].text                 (OCR API, v3.x)
    analyzeResult.readResults[].lines[].text       (Read API)
    readResults[].lines[].text                     (Read API, unwrapped)

Remote payloads are untrusted: missing or mistyped fields are skipped rather
than raising, so ``extract_text`` always returns a string.
"""
from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _items(node: Any, key: str) -> list[Mapping[str, Any]]:
    """Return the mapping entries of ``node[key]`` when it is a list, else []."""
    if not isinstance(node, Mapping):
        return []
    value = node.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _region_lines(payload: Mapping[str, Any]) -> Iterator[str]:
    for region in _items(payload, "regions"):
        for line in _items(region, "lines"):
            if not isinstance(line.get("words"), list):
                continue
            words = (_as_text(word.get("text")) for word in _items(line, "words"))
            yield " ".join(word for word in words if word is not None)


def _read_result_lines(payload: Mapping[str, Any]) -> Iterator[str]:
    analyze = payload.get("analyzeResult")
    if isinstance(analyze, Mapping) and "readResults" in analyze:
        pages = _items(analyze, "readResults")
    else:
        pages = _items(payload, "readResults")

    for page in pages:
        for line in _items(page, "lines"):
            text = _as_text(line.get("text"))
            if text is not None:
                yield text


# Order matters: output follows this sequence when several shapes are present.
SHAPE_READERS: tuple[Callable[[Mapping[str, Any]], Iterator[str]], ...] = (
    _region_lines,
    _read_result_lines,
)


def extract_text(payload: Any) -> str:
    if not isinstance(payload, Mapping):
        return ""

    lines: list[str] = []
    for reader in SHAPE_READERS:
        lines.extend(reader(payload))
    return "\n".join(lines).strip()


def read_results_document(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only the Read API part of a finished operation payload.

    ``analyzeResult.readResults`` wins over a top-level ``readResults``.
    """
    analyze = payload.get("analyzeResult")
    if isinstance(analyze, Mapping) and analyze.get("readResults") is not None:
        return {"analyzeResult": analyze}
    if payload.get("readResults") is not None:
        return {"readResults": payload["readResults"]}
    return {}
