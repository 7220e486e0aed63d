"""Script to initialize the database and seed the treatment catalog."""

import asyncio

from sqlalchemy import func, insert, select, text

from app.database import engine
from app.models import metadata, treatments

ALL_LOCATIONS = ["Jubilee Hills", "Kokapet", "Kondapur"]

SAMPLE_TREATMENTS = [
    {
        "name": "HydraFacial",
        "category": "Facials",
        "description": "Deep cleansing, exfoliation and hydration in one session.",
        "price": 4500,
        "price_display": "₹4,500",
        "duration": 60,
        "duration_display": "60 mins",
        "is_popular": True,
        "available_locations": ALL_LOCATIONS,
    },
    {
        "name": "Laser Hair Reduction",
        "category": "Laser",
        "description": "Targeted laser sessions for long-lasting hair reduction.",
        "price": 6000,
        "price_display": "₹6,000",
        "duration": 45,
        "duration_display": "45 mins",
        "available_locations": ["Jubilee Hills", "Kondapur"],
    },
    {
        "name": "Deep Tissue Massage",
        "category": "Wellness",
        "description": "Full body massage focused on muscle tension.",
        "price": 3000,
        "price_display": "₹3,000",
        "duration": 90,
        "duration_display": "90 mins",
        "available_locations": ["Kokapet"],
    },
]


async def init_db() -> None:
    """Create all tables and seed treatments when the catalog is empty."""
    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(metadata.create_all)

        count = (await conn.execute(select(func.count()).select_from(treatments))).scalar()
        if not count:
            await conn.execute(insert(treatments), SAMPLE_TREATMENTS)
            print(f"✓ Seeded {len(SAMPLE_TREATMENTS)} treatments")

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
