import os

# Settings are cached on first use; point them at SQLite before any app import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from restaurant_ops.core.money import to_money
from restaurant_ops.database import init_db
from restaurant_ops.models import (
    Address,
    Category,
    Customer,
    FoodItem,
    Order,
    OrderItem,
    OrderStatus,
    TableTop,
)

# Wednesday noon
NOW = datetime(2024, 5, 15, 12, 0, 0)


def fixed_clock(now: datetime = NOW):
    return lambda: now


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_maker(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def menu(session) -> dict:
    """Customers, categories, food items, tables and an address."""
    mains = Category(name="Mains")
    sides = Category(name="Sides")
    vegan = Category(name="Vegan")

    foods = {
        "Burger": FoodItem(name="Burger", price=Decimal("8.50"), categories=[mains]),
        "Fries": FoodItem(name="Fries", price=Decimal("3.00"), categories=[sides]),
        "Salad": FoodItem(name="Salad", price=Decimal("10.00"), categories=[mains, vegan]),
        "Water": FoodItem(name="Water", price=Decimal("1.50"), categories=[]),
        "Soup": FoodItem(name="Soup", price=Decimal("5.00"), categories=[], is_available=False),
    }
    alice = Customer(email="alice@example.com", full_name="Alice")
    bob = Customer(email="bob@example.com", full_name="Bob")
    tables = {
        "T1": TableTop(table_number="T1", capacity=4),
        "T2": TableTop(table_number="T2", capacity=2),
    }
    session.add_all([*foods.values(), alice, bob, *tables.values()])
    await session.flush()

    home = Address(customer_id=alice.id, label="Home", street="1 Main St", city="Springfield")
    session.add(home)
    await session.commit()

    return {
        "foods": foods,
        "alice": alice,
        "bob": bob,
        "tables": tables,
        "home": home,
    }


async def add_order(
    session: AsyncSession,
    customer: Customer,
    when: datetime,
    lines: list[tuple[FoodItem, int]],
    status: OrderStatus = OrderStatus.COMPLETED,
    table: Optional[TableTop] = None,
    address_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> Order:
    """Insert an order directly, priced from the food items."""
    items = [
        OrderItem(
            food_item=food,
            food_item_id=food.id,
            quantity=qty,
            unit_price=food.price,
            total_price=to_money(Decimal(food.price) * qty),
        )
        for food, qty in lines
    ]
    order = Order(
        customer_id=customer.id,
        order_time=when,
        status=status,
        total_price=to_money(sum((i.total_price for i in items), Decimal("0"))),
        notes=notes,
        table=table,
        address_id=address_id,
        items=items,
    )
    session.add(order)
    await session.commit()
    return order
