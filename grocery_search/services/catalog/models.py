"""Catalog records. Read-only from the search pipeline's point of view."""
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CategoryRef(BaseModel):
    """Category offered to the model as context."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class ProductRecord(BaseModel):
    """Product row joined with its category name; serialized in camelCase."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    name: str
    description: Optional[str] = None
    price: float = 0.0
    stock_quantity: int = 0
    image_path: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProductRecord":
        """Build from a `products p LEFT JOIN categories c` row."""
        return cls(
            id=row["product_id"],
            name=row["name"],
            description=row.get("description"),
            price=row.get("price") or 0.0,
            stock_quantity=row.get("stock_quantity") or 0,
            image_path=row.get("image_path"),
            category_id=row.get("category_id"),
            category_name=row.get("category_name"),
            is_active=bool(row.get("is_active", True)),
        )
