"""
Lookup Factory

Single entry point for obtaining the collaborators the order engine
consumes. The catalog is always wrapped with the configured timeout and
reads through its own sessions on the same engine as `session`.

Usage:
    from restaurant_ops.services.lookups import get_catalog_lookup

    catalog = get_catalog_lookup(session)
    entry = await catalog.resolve_food_item("Burger")
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_ops.core.config import get_settings
from restaurant_ops.services.lookups.base import (
    AddressLookup,
    CatalogEntry,
    CatalogLookup,
    TableLookup,
)
from restaurant_ops.services.lookups.sql import (
    SqlAddressLookup,
    SqlCatalogLookup,
    SqlTableLookup,
    TimeoutCatalogLookup,
)


def get_catalog_lookup(session: AsyncSession) -> CatalogLookup:
    """
    Get the catalog lookup for a session.

    Returns:
        CatalogLookup: SQL catalog bounded by catalog_lookup_timeout_seconds
    """
    settings = get_settings()
    return TimeoutCatalogLookup(
        SqlCatalogLookup(async_sessionmaker(session.bind, expire_on_commit=False)),
        timeout=settings.catalog_lookup_timeout_seconds,
    )


def get_address_lookup(session: AsyncSession) -> AddressLookup:
    return SqlAddressLookup(session)


def get_table_lookup(session: AsyncSession) -> TableLookup:
    return SqlTableLookup(session)


__all__ = [
    "get_catalog_lookup",
    "get_address_lookup",
    "get_table_lookup",
    "CatalogLookup",
    "CatalogEntry",
    "AddressLookup",
    "TableLookup",
    "SqlCatalogLookup",
    "SqlAddressLookup",
    "SqlTableLookup",
    "TimeoutCatalogLookup",
]
