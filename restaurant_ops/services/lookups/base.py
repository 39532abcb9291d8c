"""
Lookup Abstract Base Classes

Defines the interface contracts for the collaborators the order engine
consumes but does not own: the food catalog, customer addresses and
dining tables.

Design Pattern: Strategy Pattern
    - The engine only sees these interfaces
    - The SQL implementations read the shared database
    - Tests and other deployments can plug in their own sources
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from restaurant_ops.models import TableTop


@dataclass(frozen=True)
class CatalogEntry:
    """
    A resolved food item.

    Attributes:
        food_item_id: Primary key of the food item
        name: Display name
        unit_price: Current catalog price
        categories: Names of the categories the item belongs to
    """
    food_item_id: int
    name: str
    unit_price: Decimal
    categories: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "food_item_id": self.food_item_id,
            "name": self.name,
            "unit_price": str(self.unit_price),
            "categories": list(self.categories),
        }


class CatalogLookup(ABC):
    """Resolves food item names to prices and categories."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the catalog source."""
        pass

    @abstractmethod
    async def resolve_food_item(self, name: str) -> Optional[CatalogEntry]:
        """
        Resolve a food item by its exact name.

        Args:
            name: Food item name as typed on the order

        Returns:
            CatalogEntry if the item exists and can be ordered, else None

        Raises:
            CatalogTimeoutError: If the source did not answer in time
        """
        pass


class AddressLookup(ABC):
    """Answers ownership questions about saved addresses."""

    @abstractmethod
    async def belongs_to_customer(self, address_id: int, customer_id: int) -> bool:
        """
        Check whether an address belongs to a customer.

        Unknown address ids return False.
        """
        pass


class TableLookup(ABC):
    """Resolves dining tables and updates their occupancy."""

    @abstractmethod
    async def resolve_table(self, table_number: str) -> Optional[TableTop]:
        """Return the table with this number, or None."""
        pass

    @abstractmethod
    async def set_occupied(self, table: TableTop) -> None:
        """Mark a table as occupied within the caller's unit of work."""
        pass
