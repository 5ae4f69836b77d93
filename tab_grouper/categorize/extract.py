"""Pull the JSON grouping out of free-form model text."""

from __future__ import annotations

import json
import re
from typing import Any

from tab_grouper.categorize.errors import DecodeError, ExtractionError

# ``` or ```json, then the body up to the next closing fence.
_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\r?\n(.*?)\r?\n?```", re.DOTALL | re.IGNORECASE)


class JsonObject(dict):
    """
    A decoded JSON object that remembers every key/value pair.

    Behaves like the plain ``dict`` ``json.loads`` would build (last repeated
    key wins), while ``pairs`` keeps repeated keys so validators can report
    them instead of silently losing earlier values.
    """

    def __init__(self, pairs: list[tuple[str, Any]]) -> None:
        super().__init__(pairs)
        self.pairs = list(pairs)


def find_fenced_block(text: str) -> str | None:
    """Return the body of the first fenced block, or ``None``."""
    if not isinstance(text, str):
        return None
    match = _FENCE_RE.search(text)
    if not match:
        return None
    return match.group(1)


def extract_json_block(text: str) -> Any:
    """
    Decode the first fenced block of ``text`` as JSON.

    Raises:
        ExtractionError: no fenced block is present.
        DecodeError: the block is not valid JSON.
    """
    block = find_fenced_block(text)
    if block is None:
        raise ExtractionError("Failed to extract JSON from the response: no fenced block found")
    try:
        return json.loads(block, object_pairs_hook=JsonObject)
    except json.JSONDecodeError as exc:
        preview = block.strip()[:200]
        raise DecodeError(f"Fenced block is not valid JSON ({exc.msg}): {preview}") from exc
