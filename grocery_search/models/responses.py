"""
Request and response models for the AI search endpoint.

Wire keys are camelCase to match the storefront's JavaScript client.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from grocery_search.services.catalog.models import ProductRecord


class AISearchRequest(BaseModel):
    """JSON body for POST /api/ai-search. `q` is the legacy field name."""

    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    q: Optional[str] = None

    @property
    def text(self) -> str:
        for value in (self.query, self.q):
            if isinstance(value, str) and value.strip():
                return value.strip()
        return ""


class AISearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    products: List[ProductRecord] = Field(default_factory=list)
    total_results: int = Field(0, alias="totalResults")
    search_term: str = Field(..., alias="searchTerm")
    corrected_term: Optional[str] = Field(None, alias="correctedTerm")
    # Only present (and true) when AI enhancement was not applied
    fallback: Optional[bool] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
