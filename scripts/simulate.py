"""
Lifecycle Simulation Script

Fires concurrent orders at a running API and walks them through the
order lifecycle, so merges and dashboard numbers can be checked.
Run from project root: python scripts/simulate.py

Use --seed once against an empty database to create the demo
customers, menu and tables.
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx
from sqlalchemy import select

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from restaurant_ops.database import async_session_maker, init_db  # noqa: E402
from restaurant_ops.models import Category, Customer, FoodItem, TableTop  # noqa: E402

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
NUM_CUSTOMERS = 10

MENU = {
    "Pizza Margherita": ("14.99", ["Pizza", "Vegetarian"]),
    "Pepperoni Pizza": ("16.99", ["Pizza"]),
    "Caesar Salad": ("8.99", ["Salad"]),
    "Garlic Bread": ("5.99", ["Sides", "Vegetarian"]),
    "Pasta Carbonara": ("13.99", ["Pasta"]),
    "Tiramisu": ("7.99", ["Dessert"]),
    "Coke": ("2.99", ["Drinks"]),
    "Sparkling Water": ("3.49", []),
}
TABLES = [f"T{n}" for n in range(1, 9)]
# Occasionally order something that is not on the menu
UNKNOWN_ITEMS = ["Sushi Platter", "Lobster"]

LIFECYCLE = ["PREPARING", "READY", "SHIPPED", "DELIVERED", "COMPLETED"]


# =============================================================================
# SEEDING
# =============================================================================

async def seed_database() -> None:
    """Create demo customers, categories, menu and tables if missing."""
    await init_db()
    async with async_session_maker() as session:
        existing = await session.execute(select(FoodItem.id).limit(1))
        if existing.first() is not None:
            print("   Database already seeded")
            return

        categories: dict[str, Category] = {}
        for name, (price, category_names) in MENU.items():
            for category_name in category_names:
                categories.setdefault(category_name, Category(name=category_name))
            session.add(FoodItem(
                name=name,
                price=Decimal(price),
                categories=[categories[c] for c in category_names],
            ))
        for n in range(1, NUM_CUSTOMERS + 1):
            session.add(Customer(email=f"guest{n}@example.com", full_name=f"Guest {n}", created_at=datetime.now()))
        for number in TABLES:
            session.add(TableTop(table_number=number, capacity=4))
        await session.commit()
    print(f"   Seeded {len(MENU)} food items, {NUM_CUSTOMERS} customers, {len(TABLES)} tables")


# =============================================================================
# ORDER FLOW
# =============================================================================

def generate_order_payload() -> dict[str, Any]:
    """Generate payload for /api/orders endpoint."""
    names = list(MENU) + UNKNOWN_ITEMS
    items = [
        {"food_name": random.choice(names), "quantity": random.randint(1, 3)}
        for _ in range(random.randint(1, 4))
    ]
    return {
        "items": items,
        "notes": random.choice([None, "Extra napkins", "No onions", "Spicy"]),
        "table_number": random.choice(TABLES + [None]),
    }


async def run_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Place one order and walk it to COMPLETED."""
    customer_id = random.randint(1, NUM_CUSTOMERS)
    headers = {"X-Customer-Id": str(customer_id)}
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=generate_order_payload(),
            headers=headers,
            timeout=30.0,
        )
        if response.status_code != 201:
            return {
                "order_num": order_num,
                "success": False,
                "error": response.text[:100],
                "time": round(time.time() - start_time, 3),
            }
        data = response.json()
        order_id = data["order"]["id"]

        final = data["order"]
        for status in LIFECYCLE:
            update = await client.patch(
                f"{API_BASE_URL}/api/orders/{order_id}/status",
                json={"status": status},
                timeout=30.0,
            )
            if update.status_code != 200:
                return {
                    "order_num": order_num,
                    "success": False,
                    "error": f"{status}: {update.text[:80]}",
                    "time": round(time.time() - start_time, 3),
                }
            final = update.json()

        return {
            "order_num": order_num,
            "success": True,
            "order_id": order_id,
            "total": Decimal(final["total_price"]),
            "skipped": len(data["skipped"]),
            "time": round(time.time() - start_time, 3),
        }
    except Exception as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 LIFECYCLE SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        results = await asyncio.gather(*[run_order(client, i + 1) for i in range(num_orders)])

        stats = (await client.get(f"{API_BASE_URL}/api/dashboard/stats")).json()
        export = await client.post(f"{API_BASE_URL}/api/dashboard/export")

    total_time = round(time.time() - start_time, 2)
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Completed Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Flow: {round(sum(r['time'] for r in successful) / len(successful), 3)}s")
        print(f"   Skipped lines: {sum(r['skipped'] for r in successful)}")

    print(f"\n💰 Dashboard:")
    print(f"   Revenue: {stats.get('total_revenue')}")
    print(f"   Orders: {stats.get('total_orders')} (merges fold recent orders together)")
    print(f"   Average: {stats.get('average_order_value')}")
    print(f"   Export: {export.status_code} {export.json().get('message')}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Check Celery terminal - the export task should complete")
    print("2. Run: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False
    data = response.json()
    print(f"   ✅ Status: {data.get('status')}")
    print(f"   Database: {data.get('database')}")
    print(f"   Redis: {data.get('redis')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Lifecycle Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--seed", action="store_true", help="Seed demo data first")
    args = parser.parse_args()

    if args.seed:
        print("\n🌱 Seeding database...")
        asyncio.run(seed_database())

    print("\n🩺 Health Check...")
    if not asyncio.run(check_health()):
        sys.exit(1)

    asyncio.run(run_simulation(args.orders))
