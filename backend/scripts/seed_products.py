"""
Seed Products — fills the catalog with randomly generated tech products.

Run: python scripts/seed_products.py [--count 100] [--seed 42] [--reset]
"""

import argparse
import asyncio
import os
import random
import sys
from datetime import datetime

# Add backend to path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import structlog  # noqa: E402
from sqlalchemy import delete  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine  # noqa: E402

from db.models import Product  # noqa: E402
from db.session import create_tables, engine, make_session_factory  # noqa: E402

logger = structlog.get_logger()

# Name parts to make the catalog look realistic, e.g. "Wireless Keyboard 412"
ADJECTIVES = [
    "Wireless", "Gaming", "Mechanical", "4K", "Bluetooth",
    "USB-C", "Smart", "Ergonomic", "Portable", "Noise-Cancelling",
]
NOUNS = ["Mouse", "Keyboard", "Monitor", "Headset", "Laptop", "Webcam", "Router", "SSD", "Tablet", "Speaker"]


def generate_products(count: int, rng: random.Random) -> list[dict]:
    """Random catalog rows: stock 0-100, sales 10-50/week, lead time 1-14 days."""
    now = datetime.utcnow()
    return [
        {
            "name": f"{rng.choice(ADJECTIVES)} {rng.choice(NOUNS)} {rng.randint(100, 900)}",
            "current_inventory": rng.randint(0, 100),
            "avg_sales": rng.randint(10, 50),
            "lead_time": rng.randint(1, 14),
            "created_at": now,
            "updated_at": now,
        }
        for _ in range(count)
    ]


async def seed_products(db_engine: AsyncEngine, count: int = 100, seed: int | None = None, reset: bool = False) -> int:
    """Create the products table if needed and insert ``count`` rows."""
    await create_tables(db_engine)

    SessionLocal = make_session_factory(db_engine)
    rows = generate_products(count, random.Random(seed))
    async with SessionLocal() as db:
        if reset:
            await db.execute(delete(Product))
        db.add_all(Product(**row) for row in rows)
        await db.commit()

    logger.info("seed.products_created", count=len(rows), reset=reset)
    return len(rows)


def main():
    parser = argparse.ArgumentParser(description="Seed the Restock product catalog")
    parser.add_argument("--count", type=int, default=100, help="Number of products (default: 100)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible catalogs")
    parser.add_argument("--reset", action="store_true", help="Delete existing products first")
    args = parser.parse_args()

    created = asyncio.run(seed_products(engine, count=args.count, seed=args.seed, reset=args.reset))
    print(f"✅ Seeded {created} products")


if __name__ == "__main__":
    main()
