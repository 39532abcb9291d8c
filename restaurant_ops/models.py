"""
SQLAlchemy Database Models

Orders and order items are owned by the order engine. Customers,
addresses, the food catalog and tables are maintained elsewhere and
only read here (tables also get their occupancy flipped on placement).

Money columns are Numeric(10, 2) and map to decimal.Decimal.
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from restaurant_ops.database import Base


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PLACED = "PLACED"
    PREPARING = "PREPARING"
    READY = "READY"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TableStatus(str, enum.Enum):
    """Occupancy of a dining table."""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


# =============================================================================
# CUSTOMERS
# =============================================================================

class Customer(Base):
    """Authenticated customer; identity is managed by the account service."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Customer #{self.id} - {self.email}>"


class Address(Base):
    """Delivery address saved by a customer."""
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label = Column(String(50), nullable=True)
    street = Column(String(255), nullable=False)
    city = Column(String(50), nullable=True)
    zip_code = Column(String(10), nullable=True)

    def __repr__(self):
        return f"<Address #{self.id} - customer #{self.customer_id}>"


# =============================================================================
# CATALOG
# =============================================================================

food_item_categories = Table(
    "food_item_categories",
    Base.metadata,
    Column("food_item_id", Integer, ForeignKey("food_items.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)

    def __repr__(self):
        return f"<Category {self.name}>"


class FoodItem(Base):
    """Menu entry; its price is copied into every order item at order time."""
    __tablename__ = "food_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    categories = relationship(
        Category,
        secondary=food_item_categories,
        lazy="selectin",
        order_by=Category.name,
    )

    def __repr__(self):
        return f"<FoodItem {self.name} - {self.price}>"


# =============================================================================
# TABLES
# =============================================================================

class TableTop(Base):
    """Dining table identified by its printed number."""
    __tablename__ = "table_tops"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    table_number = Column(String(20), nullable=False, unique=True, index=True)
    capacity = Column(Integer, nullable=False, default=4)
    status = Column(
        Enum(TableStatus),
        default=TableStatus.AVAILABLE,
        nullable=False,
    )

    def __repr__(self):
        return f"<TableTop {self.table_number} - {self.status.value}>"


# =============================================================================
# ORDERS
# =============================================================================

class OrderItem(Base):
    """
    One line of an order.

    unit_price is a snapshot of the catalog price when the order was
    placed, so later price changes never alter historical totals.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    food_item_id = Column(Integer, ForeignKey("food_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    note = Column(Text, nullable=True)

    food_item = relationship(FoodItem, lazy="selectin")

    @property
    def food_name(self):
        return self.food_item.name if self.food_item is not None else None

    def __repr__(self):
        return f"<OrderItem #{self.id} - order #{self.order_id} - {self.quantity}x>"


class Order(Base):
    """
    A customer's checkout event.

    total_price always equals the sum of the items' total_price at the
    moment of the last mutation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_time = Column(DateTime, nullable=False, index=True)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PLACED,
        nullable=False,
        index=True,
    )
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=True)
    table_id = Column(Integer, ForeignKey("table_tops.id"), nullable=True)

    table = relationship(TableTop, lazy="selectin")
    items = relationship(
        OrderItem,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by=OrderItem.id,
    )

    @property
    def table_number(self):
        return self.table.table_number if self.table is not None else None

    def __repr__(self):
        return f"<Order #{self.id} - customer #{self.customer_id} - {self.status.value}>"
