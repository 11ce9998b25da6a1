"""LLM response text extraction.

Objective:
    Turn free-form model output into the ``{event_id: category}`` object the
    categorizer asked for. The model is instructed to return raw JSON, but in
    practice it can wrap it in Markdown fences or surround it with prose.

High-level call tree:
    - :func:`parse_category_mapping`
        - :func:`extract_first_json_object`
            - :func:`strip_code_fences`

Failure contract:
    :func:`parse_category_mapping` raises :class:`ResponseParseError` when no
    JSON object can be recovered. The categorizer treats that exactly like a
    failed LLM call.
"""

import json
import re
from typing import Any, Optional


class ResponseParseError(ValueError):
    """Raised when a model response contains no usable JSON object."""


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences from a model response.

    Args:
        text: Raw model response.

    Returns:
        str: Response with code fences removed.
    """
    # Remove ```json ... ``` and generic ``` ... ``` wrappers.
    return re.sub(r"```(?:json)?\s*|```", "", text, flags=re.IGNORECASE)


def extract_first_json_object(response_text: str) -> Optional[str]:
    """Extract the first balanced JSON object from a model response.

    Uses ``json.JSONDecoder.raw_decode`` from each ``{`` in turn, so braces
    inside string values and trailing prose are handled correctly.

    Args:
        response_text: Raw model response text.

    Returns:
        Optional[str]: JSON object string if found, else None.
    """
    if not response_text:
        return None

    cleaned = strip_code_fences(response_text)

    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    while start != -1:
        try:
            _, end = decoder.raw_decode(cleaned[start:])
            return cleaned[start : start + end]
        except json.JSONDecodeError:
            start = cleaned.find("{", start + 1)

    return None


def parse_category_mapping(response_text: str) -> dict[str, Any]:
    """Parse a model response into an id -> category mapping.

    Values are returned untouched; validation against the closed category
    set is the caller's job.

    Args:
        response_text: Raw model response.

    Returns:
        dict[str, Any]: Decoded JSON object.

    Raises:
        ResponseParseError: If the response holds no JSON object.
    """
    extracted = extract_first_json_object(response_text)
    if extracted is None:
        snippet = (response_text or "")[:300].replace("\n", "\\n")
        raise ResponseParseError(f"No JSON object in model response: {snippet!r}")

    return json.loads(extracted)
