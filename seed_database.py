# seed_database.py
import asyncio
import logging
import os

from databases import Database

import crud
import models  # noqa: F401
import schemas
from config import configure_logging
from database import connect_with_retry, create_tables, database

logger = logging.getLogger(__name__)

DEMO_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@storefront.dev")
DEMO_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin@123")

SAMPLE_PRODUCTS = [
    {"name": "Premium Leather Watch", "category": "Watches", "price": 4500, "original_price": 6000,
     "description": "High-quality leather strap watch with classic design", "stock": 25, "is_featured": True},
    {"name": "Wireless Headphones", "category": "Electronics", "price": 3500, "original_price": 5000,
     "description": "Noise-cancelling wireless headphones with 20-hour battery", "stock": 50, "is_featured": True},
    {"name": "Designer Sunglasses", "category": "Accessories", "price": 2500, "original_price": 4000,
     "description": "Premium UV protection sunglasses with trendy design", "stock": 40},
    {"name": "Luxury Perfume", "category": "Beauty", "price": 3000, "original_price": 4500,
     "description": "Original imported perfume with long-lasting fragrance", "stock": 60, "is_featured": True},
    {"name": "Smartphone Case", "category": "Electronics", "price": 800, "original_price": 1200,
     "description": "Premium protective case with shock absorption", "stock": 150},
]


async def seed(db: Database) -> dict:
    """Ensure the demo admin and sample products exist; safe to run repeatedly."""
    created = {"admin": False, "products": 0}

    if await crud.get_admin_by_email(db, DEMO_ADMIN_EMAIL) is None:
        await crud.create_admin_user(db, DEMO_ADMIN_EMAIL, DEMO_ADMIN_PASSWORD, "Admin User")
        created["admin"] = True
        logger.info(f"✅ Demo admin created: {DEMO_ADMIN_EMAIL}")
    else:
        logger.info("ℹ️ Demo admin already exists")

    existing = {p["name"] for p in await crud.get_products(db)}
    for product in SAMPLE_PRODUCTS:
        if product["name"] in existing:
            continue
        await crud.create_product(db, schemas.ProductCreate(**product))
        created["products"] += 1

    logger.info(f"✅ {len(SAMPLE_PRODUCTS)} sample products ensured ({created['products']} new)")
    return created


async def main():
    await connect_with_retry(database)
    try:
        create_tables()
        await seed(database)
        logger.info("🎉 Database setup complete!")
    finally:
        await database.disconnect()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
