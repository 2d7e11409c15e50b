"""Test doubles: a small grocery catalog and a scripted AI client."""
import json
from typing import List, Optional, Union

from grocery_search.services.ai.schema import AIFailure
from grocery_search.services.catalog.models import CategoryRef, ProductRecord

CATEGORIES = [
    CategoryRef(id=1, name="Dairy"),
    CategoryRef(id=2, name="Bread"),
    CategoryRef(id=3, name="Baked Goods"),
    CategoryRef(id=4, name="Confectionery"),
    CategoryRef(id=5, name="Baking Supplies"),
    CategoryRef(id=6, name="Frozen"),  # no products
]


def make_product(
    product_id: int,
    name: str,
    description: Optional[str],
    category: Optional[CategoryRef],
) -> ProductRecord:
    return ProductRecord(
        id=product_id,
        name=name,
        description=description,
        price=1.5,
        stock_quantity=10,
        image_path=f"assets/uploads/products/{product_id}.jpg",
        category_id=category.id if category else None,
        category_name=category.name if category else None,
        is_active=True,
    )


def sample_products() -> List[ProductRecord]:
    dairy, bread, baked, sweets, baking = CATEGORIES[:5]
    return [
        make_product(1, "Milk", "Fresh whole milk, 1 litre.", dairy),
        make_product(2, "Oat Milk", "Plant-based drink made from oats.", dairy),
        make_product(3, "Greek Yoghurt", "Strained yoghurt made from cow's milk.", dairy),
        make_product(4, "White Sliced Loaf", "Soft sliced white bread.", bread),
        make_product(5, "Sourdough Loaf", "Slow-fermented bakery loaf.", bread),
        make_product(6, "Fresh Bread", "Baked this morning.", bread),
        make_product(7, "Croissants", "All-butter bakery pastries.", baked),
        make_product(8, "Milk Chocolate", "Smooth chocolate bar.", sweets),
        make_product(9, "Chocolate Bar", "Dark chocolate made with milk.", sweets),
        make_product(10, "Baking Soda", "Sodium bicarbonate powder.", baking),
        make_product(11, "Unfiled Item", None, None),
    ]


class StubLLMClient:
    """Scripted stand-in for LLMClient: returns canned completions or failures."""

    def __init__(self, reply: Union[str, dict, AIFailure], api_key: str = "test-key"):
        self.reply = json.dumps(reply) if isinstance(reply, dict) else reply
        self.api_key = api_key
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def enhance(self, prompt: str) -> Union[str, AIFailure]:
        self.prompts.append(prompt)
        return self.reply

