"""
Chaos Simulation Script

Drives a scripted admin session through the CollectionSynchronizer while
the store randomly fails, then checks that memory and store still agree.
Run from project root: python scripts/simulate.py

By default the in-memory mock store is used; pass --http to run against a
REST store started with `python -m menu_store.server`.

Version: 1.0.0
"""

import argparse
import asyncio
import os
import random
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from menu_store.core.config import setup_logging
from menu_store.exceptions import InitError, SyncError
from menu_store.schemas import DishDraft, DishVariant
from menu_store.services.ordering import has_unique_sort_orders
from menu_store.services.remote import HttpRemoteStore, MockRemoteStore
from menu_store.services.synchronizer import CollectionSynchronizer

CATEGORY_NAMES = ["Salads", "Soups", "Main dishes", "Grill", "Desserts", "Drinks"]
DISH_NAMES = ["Plov", "Lagman", "Shashlik", "Manti", "Samsa", "Shurpa", "Chuchvara", "Tea"]


def random_dish(category_id: str) -> DishDraft:
    """Random dish, half of them priced by variants."""
    if random.random() < 0.5:
        return DishDraft(
            category_id=category_id,
            name=random.choice(DISH_NAMES),
            price=random.randint(10, 90) * 1000,
        )
    return DishDraft(
        category_id=category_id,
        name=random.choice(DISH_NAMES),
        variants=[
            DishVariant(name="0.5", price=random.randint(10, 40) * 1000),
            DishVariant(name="1", price=random.randint(40, 90) * 1000),
        ],
    )


async def run_step(label: str, action, stats: dict[str, int]) -> None:
    try:
        await action
        stats["ok"] += 1
    except SyncError as e:
        stats["failed"] += 1
        print(f"   ⚠️ {label}: {e}")


async def simulate(sync: CollectionSynchronizer, steps: int) -> dict[str, int]:
    stats = {"ok": 0, "failed": 0}

    for name in CATEGORY_NAMES:
        await run_step(f"add category {name}", sync.add_category(name), stats)

    for _ in range(steps):
        categories = sync.categories
        if not categories:
            break
        category = random.choice(categories)
        roll = random.random()

        if roll < 0.4:
            await run_step("add dish", sync.add_dish(random_dish(category.id)), stats)
        elif roll < 0.6:
            shuffled = random.sample(categories, len(categories))
            await run_step("reorder categories", sync.reorder_categories(shuffled), stats)
        elif roll < 0.85:
            dishes = [d for d in sync.dishes if d.category_id == category.id]
            if dishes:
                dish = random.choice(dishes)
                direction = random.choice(["up", "down"])
                await run_step("move dish", sync.move_dish(dish.id, direction), stats)
        else:
            dishes = sync.dishes
            if dishes:
                dish = random.choice(dishes)
                await run_step("toggle dish", sync.set_dish_active(dish.id, not dish.is_active), stats)

    return stats


def verify(sync: CollectionSynchronizer) -> bool:
    """Check the ordering invariants on the in-memory menu."""
    orders = [c.sort_order for c in sync.categories]
    dense = sorted(orders) == list(range(len(orders)))
    scoped = all(
        has_unique_sort_orders(d for d in sync.dishes if d.category_id == c.id)
        for c in sync.categories
    )
    pending = [d.id for d in sync.dishes if d.id.startswith("pending:")]

    print(f"   Categories dense:       {'✅' if dense else '⚠️'} {orders}")
    print(f"   Dish orders unique:     {'✅' if scoped else '⚠️'}")
    print(f"   No pending placeholders:{'✅' if not pending else '⚠️'}")
    return dense and scoped and not pending


async def main() -> None:
    parser = argparse.ArgumentParser(description="Chaos simulation for the menu store")
    parser.add_argument("--steps", type=int, default=50)
    parser.add_argument("--failure-rate", type=float, default=0.1)
    parser.add_argument("--http", action="store_true", help="Use the REST store instead of the mock")
    args = parser.parse_args()

    setup_logging()

    if args.http:
        store = HttpRemoteStore()
    else:
        store = MockRemoteStore(failure_rate=args.failure_rate, max_latency=0.05)

    sync = CollectionSynchronizer(store)
    for attempt in range(1, 4):
        try:
            await sync.initialize()
            break
        except InitError as e:
            print(f"   ⚠️ Load attempt {attempt} failed: {e}")
    else:
        await sync.aclose()
        sys.exit(1)

    print("=" * 60)
    print("🔥 MENU STORE CHAOS SIMULATION")
    print("=" * 60)
    print(f"📡 Store: {store.provider_name}")
    print(f"🔁 Steps: {args.steps}")

    start = time.time()
    stats = await simulate(sync, args.steps)
    elapsed = round(time.time() - start, 2)

    print(f"\n📊 RESULTS ({elapsed}s)")
    print(f"   Succeeded: {stats['ok']}")
    print(f"   Rolled back: {stats['failed']}")
    print("\n🔍 INVARIANTS")
    verify(sync)

    await sync.aclose()


if __name__ == "__main__":
    asyncio.run(main())
