"""
Extraction of search parameters from free-form model output.

Models often wrap the JSON object in prose or code fences. The extractor takes
the widest `{...}` span (first "{" to last "}") and parses it; there are no
repair attempts. It performs no I/O and no logging so it can be tested on its
own; callers log the returned failure.
"""
import json
import re
from typing import Any, Dict, Union

from pydantic import ValidationError

from grocery_search.core.logging import excerpt
from grocery_search.services.ai.schema import (
    REQUIRED_FIELDS,
    AIFailure,
    AIFailureKind,
    EnhancedSearchParams,
)

JSON_BLOCK_PATTERN = re.compile(r"\{.*\}", re.DOTALL)

FIELD_DEFAULTS: Dict[str, Any] = {
    "correctedQuery": None,
    "keywords": [],
    "categories": [],
}


def extract_search_params(text: str) -> Union[EnhancedSearchParams, AIFailure]:
    """
    Parse EnhancedSearchParams out of `text`.

    Missing required keys (and null keywords / categories) are filled with
    defaults (None / []) and listed in `defaulted_fields`; they are never a
    failure on their own.

    Returns:
        EnhancedSearchParams, or AIFailure with kind NO_JSON_BLOCK,
        MALFORMED_JSON or SCHEMA_INVALID.
    """
    match = JSON_BLOCK_PATTERN.search(text or "")
    if match is None:
        return AIFailure(
            kind=AIFailureKind.NO_JSON_BLOCK,
            detail="no {...} span in model output",
            raw_excerpt=excerpt(text),
        )

    block = match.group(0)
    try:
        payload = json.loads(block)
    except ValueError as exc:
        return AIFailure(
            kind=AIFailureKind.MALFORMED_JSON,
            detail=str(exc),
            raw_excerpt=excerpt(block),
        )

    if not isinstance(payload, dict):
        return AIFailure(
            kind=AIFailureKind.SCHEMA_INVALID,
            detail="JSON block is not an object",
            raw_excerpt=excerpt(block),
        )

    # null is a legal correctedQuery, but a null list means "not given"
    missing = [
        field
        for field in REQUIRED_FIELDS
        if field not in payload or (payload[field] is None and isinstance(FIELD_DEFAULTS[field], list))
    ]
    for field in missing:
        default = FIELD_DEFAULTS[field]
        payload[field] = list(default) if isinstance(default, list) else default

    try:
        params = EnhancedSearchParams.model_validate(payload)
    except ValidationError as exc:
        return AIFailure(
            kind=AIFailureKind.SCHEMA_INVALID,
            detail=f"{exc.error_count()} validation error(s)",
            raw_excerpt=excerpt(block),
        )

    params.defaulted_fields = missing
    return params
