"""Pydantic models for API requests and responses."""

from .responses import AISearchRequest, AISearchResponse, ErrorResponse

__all__ = ["AISearchRequest", "AISearchResponse", "ErrorResponse"]
