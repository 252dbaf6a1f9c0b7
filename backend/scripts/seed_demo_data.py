import argparse
import asyncio
import sys
from pathlib import Path

"""
Seed demo categories and items into the stock database.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py --reset`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import delete, func, select

from db.database import async_session_maker, create_db_and_tables
from db.category import Category
from db.item import Item


# (category name, icon, [(item name, quantity, min stock), ...])
DEMO_DATA = [
    ("Gas Stove Parts", "🔥", [
        ("Burner Head Large", 12, 4),
        ("Burner Head Small", 3, 4),
        ("Knob Set", 0, 2),
        ("Igniter Spark Plug", 25, 10),
    ]),
    ("Mixer Grinder Parts", "⚙️", [
        ("Coupler", 8, 5),
        ("Carbon Brush Pair", 5, 5),
        ("Jar Blade Assembly", 14, 3),
    ]),
    ("Electrical", "⚡", [
        ("Thermal Fuse 250V", 40, 15),
        ("Power Cord 3-pin", 2, 6),
    ]),
    ("Tools", "🛠️", [
        ("Multimeter", 1, 1),
    ]),
]


async def get_or_create_category(session, name: str, icon: str) -> Category:
    result = await session.execute(
        select(Category).where(func.lower(Category.name) == name.strip().lower())
    )
    category = result.scalar_one_or_none()
    if category:
        return category

    category = Category(name=name.strip(), icon=icon)
    session.add(category)
    await session.flush()
    return category


async def get_or_create_item(session, category: Category, name: str, quantity: int, min_stock: int) -> tuple[Item, bool]:
    result = await session.execute(
        select(Item).where(
            Item.category_id == category.id,
            func.lower(Item.name) == name.strip().lower(),
        )
    )
    item = result.scalar_one_or_none()
    if item:
        return item, False

    item = Item(category_id=category.id, name=name.strip(), quantity=quantity, min_stock=min_stock, price=0)
    session.add(item)
    await session.flush()
    return item, True


async def main(reset: bool = False) -> None:
    await create_db_and_tables()
    async with async_session_maker() as session:
        if reset:
            # items follow through the FK cascade
            await session.execute(delete(Category))
            await session.commit()
            print("Cleared existing categories and items")

        created = 0
        for category_name, icon, items in DEMO_DATA:
            category = await get_or_create_category(session, category_name, icon)
            for name, quantity, min_stock in items:
                _, is_new = await get_or_create_item(session, category, name, quantity, min_stock)
                created += is_new
        await session.commit()
        print(f"Seeded {len(DEMO_DATA)} categories / {created} items")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo stock data")
    parser.add_argument("--reset", action="store_true", help="delete all categories and items first")
    args = parser.parse_args()
    asyncio.run(main(reset=args.reset))
