"""
Seed script to create the catalog tables and load sample groceries.

Usage:
    DATABASE_URL=postgresql://... python scripts/seed_catalog.py [--reset]

Idempotent: tables are created if missing and products are upserted by name.
"""
import argparse
import asyncio
import random
from decimal import Decimal

import asyncpg

from grocery_search.core.config import load_settings
from grocery_search.core.logging import configure_logging, get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS categories (
    category_id SERIAL PRIMARY KEY,
    category_name VARCHAR(100) NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS products (
    product_id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL UNIQUE,
    description TEXT,
    price NUMERIC(10, 2) NOT NULL DEFAULT 0,
    stock_quantity INTEGER NOT NULL DEFAULT 0,
    image_path VARCHAR(255),
    category_id INTEGER REFERENCES categories(category_id),
    is_active BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE INDEX IF NOT EXISTS idx_products_category_id ON products (category_id);
"""

CATALOG = {
    "Dairy": [
        ("Milk", "Fresh whole milk, 1 litre."),
        ("Oat Milk", "Creamy plant-based drink made from oats."),
        ("Greek Yoghurt", "Thick strained yoghurt made from cow's milk."),
        ("Mature Cheddar", "Aged cheddar cheese block."),
        ("Salted Butter", "Churned butter made from fresh cream."),
    ],
    "Bread": [
        ("White Sliced Loaf", "Soft sliced white bread loaf."),
        ("Sourdough Loaf", "Slow-fermented bakery loaf with a crisp crust."),
        ("Wholemeal Rolls", "Pack of six wholemeal bread rolls."),
    ],
    "Baked Goods": [
        ("Croissants", "All-butter croissants baked fresh each morning."),
        ("Blueberry Muffins", "Soft muffins packed with blueberries."),
    ],
    "Baking Supplies": [
        ("Baking Soda", "Sodium bicarbonate powder for leavening."),
        ("Plain Flour", "Fine white wheat flour for baking."),
        ("Caster Sugar", "Fine sugar granules for baking."),
    ],
    "Pantry Staples": [
        ("Basmati Rice", "Long-grain aromatic rice."),
        ("Spaghetti", "Dried durum wheat pasta."),
        ("Olive Oil", "Extra virgin olive oil, cold pressed."),
    ],
    "Fresh Produce": [
        ("Bananas", "Bunch of ripe bananas."),
        ("Carrots", "Loose carrots, great for roasting."),
        ("Baby Spinach", "Washed baby spinach leaves."),
    ],
    "Beverages": [
        ("Orange Juice", "Freshly squeezed orange juice, no added sugar."),
        ("Sparkling Water", "Naturally carbonated mineral water."),
        ("Hot Chocolate", "Rich cocoa drink, just add milk."),
    ],
    "Confectionery": [
        ("Milk Chocolate", "Smooth milk chocolate bar."),
        ("Chocolate Bar", "Dark chocolate bar made with milk and cocoa."),
        ("Fruit Gums", "Chewy fruit-flavoured sweets."),
    ],
}


async def seed(database_url: str, reset: bool) -> None:
    conn = await asyncpg.connect(database_url)
    try:
        async with conn.transaction():
            if reset:
                logger.warning("seed_reset_tables")
                await conn.execute("DROP TABLE IF EXISTS products; DROP TABLE IF EXISTS categories;")
            await conn.execute(SCHEMA_SQL)

            inserted = 0
            for category_name, products in CATALOG.items():
                category_id = await conn.fetchval(
                    """
                    INSERT INTO categories (category_name) VALUES ($1)
                    ON CONFLICT (category_name) DO UPDATE SET category_name = EXCLUDED.category_name
                    RETURNING category_id
                    """,
                    category_name,
                )
                for name, description in products:
                    slug = name.lower().replace(" ", "_")
                    await conn.execute(
                        """
                        INSERT INTO products
                            (name, description, price, stock_quantity, image_path, category_id, is_active)
                        VALUES ($1, $2, $3, $4, $5, $6, TRUE)
                        ON CONFLICT (name) DO UPDATE SET
                            description = EXCLUDED.description,
                            category_id = EXCLUDED.category_id
                        """,
                        name,
                        description,
                        Decimal(random.randint(50, 600)) / 100,
                        random.randint(0, 120),
                        f"assets/uploads/products/{slug}.jpg",
                        category_id,
                    )
                    inserted += 1

        logger.info("seed_completed", categories=len(CATALOG), products=inserted)
    finally:
        await conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create and seed the grocery catalog tables.")
    parser.add_argument("--reset", action="store_true", help="Drop existing catalog tables first")
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(log_level=settings.log_level, json_output=False)
    asyncio.run(seed(settings.database_url, args.reset))


if __name__ == "__main__":
    main()
