"""
SQL Lookup Implementations

Address and table records are read on the session the order engine
writes with, so table occupancy changes are committed together with the
order. Catalog lookups run on their own short-lived session: a lookup
cancelled by its timeout invalidates only that connection.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_ops.core.exceptions import CatalogTimeoutError
from restaurant_ops.models import Address, FoodItem, TableStatus, TableTop
from restaurant_ops.services.lookups.base import (
    AddressLookup,
    CatalogEntry,
    CatalogLookup,
    TableLookup,
)

logger = logging.getLogger(__name__)


class SqlCatalogLookup(CatalogLookup):
    """Catalog backed by the food_items table."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @property
    def provider_name(self) -> str:
        return "sql"

    async def resolve_food_item(self, name: str) -> Optional[CatalogEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(FoodItem).where(
                    FoodItem.name == name,
                    FoodItem.is_available.is_(True),
                )
            )
            food = result.scalar_one_or_none()
            if food is None:
                return None

            return CatalogEntry(
                food_item_id=food.id,
                name=food.name,
                unit_price=food.price,
                categories=tuple(c.name for c in food.categories),
            )


class TimeoutCatalogLookup(CatalogLookup):
    """
    Bounds every lookup of the wrapped catalog.

    A lookup that does not finish within `timeout` seconds raises
    CatalogTimeoutError; the order engine skips that line.
    """

    def __init__(self, inner: CatalogLookup, timeout: float):
        self.inner = inner
        self.timeout = timeout

    @property
    def provider_name(self) -> str:
        return f"{self.inner.provider_name}+timeout"

    async def resolve_food_item(self, name: str) -> Optional[CatalogEntry]:
        try:
            return await asyncio.wait_for(
                self.inner.resolve_food_item(name),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Catalog lookup for {name!r} timed out after {self.timeout}s")
            raise CatalogTimeoutError(f"Catalog lookup for {name!r} timed out")


class SqlAddressLookup(AddressLookup):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def belongs_to_customer(self, address_id: int, customer_id: int) -> bool:
        result = await self.session.execute(
            select(Address.id).where(
                Address.id == address_id,
                Address.customer_id == customer_id,
            )
        )
        return result.scalar_one_or_none() is not None


class SqlTableLookup(TableLookup):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_table(self, table_number: str) -> Optional[TableTop]:
        result = await self.session.execute(
            select(TableTop).where(TableTop.table_number == table_number)
        )
        return result.scalar_one_or_none()

    async def set_occupied(self, table: TableTop) -> None:
        table.status = TableStatus.OCCUPIED
        self.session.add(table)
        logger.debug(f"Table {table.table_number} marked occupied")
