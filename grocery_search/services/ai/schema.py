"""
Pydantic models for the AI search layer.

The model's reply is untrusted text. Everything downstream of the extractor
works with EnhancedSearchParams, where the three required fields are always
present, so no caller ever checks for key existence.
"""
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_FIELDS = ("correctedQuery", "keywords", "categories")
_ATTRIBUTE_FOR = {
    "correctedQuery": "corrected_query",
    "keywords": "keywords",
    "categories": "categories",
}


class AIFailureCategory(str, Enum):
    """Diagnostic grouping of AI failures. Both trigger the same fallback."""

    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    MALFORMED_RESPONSE = "malformed_response"


class AIFailureKind(str, Enum):
    # Upstream unavailable
    MISSING_API_KEY = "missing_api_key"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    HTTP_STATUS = "http_status"
    INVALID_JSON = "invalid_json"
    UNEXPECTED_SHAPE = "unexpected_shape"
    UNEXPECTED_ERROR = "unexpected_error"
    # Malformed response
    NO_JSON_BLOCK = "no_json_block"
    MALFORMED_JSON = "malformed_json"
    SCHEMA_INVALID = "schema_invalid"

    @property
    def category(self) -> AIFailureCategory:
        if self in _MALFORMED_KINDS:
            return AIFailureCategory.MALFORMED_RESPONSE
        return AIFailureCategory.UPSTREAM_UNAVAILABLE


_MALFORMED_KINDS = {
    AIFailureKind.NO_JSON_BLOCK,
    AIFailureKind.MALFORMED_JSON,
    AIFailureKind.SCHEMA_INVALID,
}


class AIFailure(BaseModel):
    """Failure value returned (never raised) by the AI client and the extractor."""

    model_config = ConfigDict(frozen=True)

    kind: AIFailureKind
    detail: str = ""
    raw_excerpt: Optional[str] = None

    @property
    def category(self) -> AIFailureCategory:
        return self.kind.category


class EnhancedSearchParams(BaseModel):
    """
    AI-derived search intent.

    Schema (as requested from the model):
    {
      "correctedQuery": "fresh bread",
      "keywords": ["loaf", "bakery"],
      "categories": ["Bread"],
      "explanation": "Corrected typo."
    }

    Extra keys the model volunteers are kept so the parsed object is not lossy.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    corrected_query: Optional[str] = Field(None, alias="correctedQuery")
    keywords: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    explanation: Optional[str] = None
    # Names of required fields the model omitted; diagnostic only
    defaulted_fields: List[str] = Field(default_factory=list, exclude=True)

    @field_validator("corrected_query", mode="before")
    @classmethod
    def blank_query_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("keywords", "categories", mode="before")
    @classmethod
    def drop_empty_terms(cls, value: Any) -> Any:
        """null list -> []; null, blank and non-string entries are skipped."""
        if value is None:
            return []
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str) and item.strip()]
        return value

    @property
    def search_terms(self) -> List[str]:
        """Keywords with blanks removed and surrounding whitespace trimmed."""
        return [k.strip() for k in self.keywords if k and k.strip()]

    @property
    def category_names(self) -> List[str]:
        return [c.strip() for c in self.categories if c and c.strip()]

    @property
    def query_text(self) -> Optional[str]:
        return self.corrected_query.strip() if self.corrected_query else None

    def is_empty(self) -> bool:
        """True when there is nothing to search for."""
        return not (self.query_text or self.search_terms or self.category_names)

    def to_payload(self) -> dict:
        """
        Wire form with the model's own key names.

        Optional keys the model never sent stay absent; required keys are
        always present after extraction.
        """
        payload = self.model_dump(by_alias=True, exclude_unset=True)
        for field in REQUIRED_FIELDS:
            payload.setdefault(field, getattr(self, _ATTRIBUTE_FOR[field]))
        return payload
