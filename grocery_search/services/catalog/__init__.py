"""Read-only product catalog access: search plans and their stores."""

from .models import CategoryRef, ProductRecord
from .store import CatalogError, CatalogStore

__all__ = ["CategoryRef", "ProductRecord", "CatalogError", "CatalogStore"]
