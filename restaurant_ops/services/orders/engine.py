"""
Order Engine

Owns the order lifecycle:
    - placement and pricing against the catalog
    - status transitions (see state_machine.py)
    - customer cancellation
    - merging of a freshly completed order with an earlier completed
      order of the same customer and address
    - table reassignment

Every mutating operation is one unit of work on the session: it either
commits completely or is rolled back and the error re-raised. There is
no optimistic locking; concurrent status updates of the same order are
last-writer-wins.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncIterator, Callable, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_ops.core.config import Settings, get_settings
from restaurant_ops.core.exceptions import (
    AccessDeniedError,
    CatalogTimeoutError,
    NotFoundError,
    ValidationError,
)
from restaurant_ops.core.money import ZERO, to_money
from restaurant_ops.models import Customer, Order, OrderItem, OrderStatus
from restaurant_ops.services.business_day import business_day_start
from restaurant_ops.services.lookups import (
    AddressLookup,
    CatalogLookup,
    TableLookup,
    get_address_lookup,
    get_catalog_lookup,
    get_table_lookup,
)
from restaurant_ops.services.orders.results import (
    OrderLine,
    PlacementResult,
    SkippedLine,
    SkipReason,
)
from restaurant_ops.services.orders.state_machine import (
    CANCELLABLE_STATUSES,
    ensure_transition,
    parse_status,
)
from restaurant_ops.services.paging import Page

logger = logging.getLogger(__name__)

KITCHEN_STATUSES = (
    OrderStatus.PLACED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.CANCELLED,
)


class OrderEngine:
    """
    Validates, prices and mutates orders.

    Args:
        session: Database session; the engine commits on it
        catalog: Food item resolver (default: SQL catalog with timeout)
        addresses: Address ownership checks (default: SQL)
        tables: Table resolver (default: SQL)
        clock: Returns "now"; injectable for tests
        settings: Application settings (default: cached settings)
    """

    def __init__(
        self,
        session: AsyncSession,
        catalog: Optional[CatalogLookup] = None,
        addresses: Optional[AddressLookup] = None,
        tables: Optional[TableLookup] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.catalog = catalog or get_catalog_lookup(session)
        self.addresses = addresses or get_address_lookup(session)
        self.tables = tables or get_table_lookup(session)
        self.clock = clock or datetime.now
        self.settings = settings or get_settings()

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[None]:
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def _load_order(
        self,
        order_id: int,
        for_update: bool = False,
        refresh: bool = False,
    ) -> Order:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    # =========================================================================
    # PLACEMENT
    # =========================================================================

    async def place_order(
        self,
        customer_id: int,
        items: Iterable[OrderLine],
        notes: Optional[str] = None,
        address_id: Optional[int] = None,
        table_number: Optional[str] = None,
    ) -> PlacementResult:
        """
        Create an order in status PLACED.

        Lines whose food item cannot be resolved (unknown or catalog
        timeout) are skipped and reported in the result instead of
        failing the order.

        Raises:
            ValidationError: No items, a quantity below 1, or no line resolved
            NotFoundError: Unknown customer
        """
        lines = list(items)
        if not lines:
            raise ValidationError("Order must contain at least one item")
        for line in lines:
            if line.quantity is None or line.quantity < 1:
                raise ValidationError(
                    f"Quantity for {line.food_name!r} must be a positive integer"
                )

        async with self._unit_of_work():
            customer = await self.session.get(Customer, customer_id)
            if customer is None:
                raise NotFoundError("Customer", customer_id)

            skipped: list[SkippedLine] = []
            notices: list[str] = []
            order_items: list[OrderItem] = []
            total = ZERO

            for line in lines:
                try:
                    entry = await self.catalog.resolve_food_item(line.food_name)
                except CatalogTimeoutError:
                    skipped.append(SkippedLine(line.food_name, line.quantity, SkipReason.TIMEOUT))
                    continue
                if entry is None:
                    skipped.append(SkippedLine(line.food_name, line.quantity, SkipReason.NOT_FOUND))
                    continue

                unit_price = to_money(entry.unit_price)
                line_total = to_money(unit_price * line.quantity)
                order_items.append(
                    OrderItem(
                        food_item_id=entry.food_item_id,
                        quantity=line.quantity,
                        unit_price=unit_price,
                        total_price=line_total,
                        note=line.note,
                    )
                )
                total += line_total

            for line in skipped:
                logger.warning(f"Customer #{customer_id}: {line.message}")

            if not order_items:
                raise ValidationError(
                    "No valid order items found",
                    detail=[line.food_name for line in skipped],
                )

            if address_id is not None and not await self.addresses.belongs_to_customer(address_id, customer_id):
                logger.info(f"Address #{address_id} does not belong to customer #{customer_id}; dropped")
                notices.append(f"Address #{address_id} is not one of your addresses and was ignored")
                address_id = None

            table = None
            if table_number is not None:
                table = await self.tables.resolve_table(table_number)
                if table is None:
                    notices.append(f"Table {table_number!r} not found and was ignored")
                else:
                    await self.tables.set_occupied(table)

            order = Order(
                customer_id=customer_id,
                order_time=self.clock(),
                status=OrderStatus.PLACED,
                total_price=to_money(total),
                notes=notes,
                address_id=address_id,
                table=table,
                items=order_items,
            )
            self.session.add(order)
            await self.session.flush()
            # Reload so items carry their food item for callers
            order = await self._load_order(order.id, refresh=True)

        logger.info(
            f"Order #{order.id} placed for customer #{customer_id}: "
            f"{len(order_items)} item(s), total {order.total_price}, "
            f"{len(skipped)} skipped"
        )
        return PlacementResult(order=order, skipped_lines=skipped, notices=notices)

    # =========================================================================
    # STATUS
    # =========================================================================

    async def update_order_status(self, order_id: int, status: str) -> Order:
        """
        Move an order to a new status.

        Completing an order first merges an earlier completed order of
        the same customer and address into it.

        Raises:
            NotFoundError: Unknown order
            InvalidValueError: Unknown status name
            InvalidOperationError: Same status, or a forbidden cancellation
        """
        async with self._unit_of_work():
            order = await self._load_order(order_id, for_update=True)
            target = parse_status(status)
            ensure_transition(order.status, target)

            if target == OrderStatus.COMPLETED:
                await self.merge_recent_orders(order)

            previous = order.status
            order.status = target

        logger.info(f"Order #{order.id}: {previous.value} → {target.value}")
        return order

    async def cancel_order(self, order_id: int, customer_id: int) -> Order:
        """
        Cancel an order on behalf of its customer.

        Outside PLACED and PREPARING the order is returned unchanged.

        Raises:
            NotFoundError: Unknown order
            AccessDeniedError: The order belongs to another customer
        """
        async with self._unit_of_work():
            order = await self._load_order(order_id, for_update=True)
            if order.customer_id != customer_id:
                raise AccessDeniedError(f"Order #{order_id} belongs to another customer")

            if order.status in CANCELLABLE_STATUSES:
                order.status = OrderStatus.CANCELLED
                logger.info(f"Order #{order.id} cancelled by customer #{customer_id}")
            else:
                logger.info(
                    f"Order #{order.id} is {order.status.value}; cancellation ignored"
                )
        return order

    # =========================================================================
    # MERGE
    # =========================================================================

    async def merge_recent_orders(self, primary: Order) -> Optional[Order]:
        """
        Fold one earlier completed order into `primary`.

        The candidate belongs to the same customer and address (no address
        on both counts as the same), is COMPLETED, and was placed no more
        than merge_window_max_minutes and strictly more than
        merge_window_min_minutes ago. When several qualify, the earliest
        is taken.

        Runs inside the caller's unit of work.

        Returns:
            The primary order, or None if nothing was merged
        """
        now = self.clock()
        oldest = now - timedelta(minutes=self.settings.merge_window_max_minutes)
        youngest = now - timedelta(minutes=self.settings.merge_window_min_minutes)

        if primary.address_id is None:
            same_address = Order.address_id.is_(None)
        else:
            same_address = Order.address_id == primary.address_id

        result = await self.session.execute(
            select(Order)
            .where(
                Order.id != primary.id,
                Order.customer_id == primary.customer_id,
                same_address,
                Order.status == OrderStatus.COMPLETED,
                Order.order_time >= oldest,
                Order.order_time < youngest,
            )
            .order_by(Order.order_time.asc(), Order.id.asc())
            .limit(1)
            .with_for_update()
        )
        candidate = result.scalar_one_or_none()
        if candidate is None:
            return None

        for item in list(candidate.items):
            candidate.items.remove(item)
            primary.items.append(item)

        primary.total_price = to_money(
            Decimal(primary.total_price or 0) + Decimal(candidate.total_price or 0)
        )
        primary.notes = "\n\n".join(
            n for n in (primary.notes, candidate.notes) if n and n.strip()
        ) or None

        await self.session.flush()
        await self.session.delete(candidate)
        await self.session.flush()

        logger.info(
            f"Order #{candidate.id} merged into order #{primary.id}; "
            f"new total {primary.total_price}"
        )
        return primary

    # =========================================================================
    # TABLES
    # =========================================================================

    async def change_table(self, order_id: int, table_number: str) -> Order:
        """
        Point an order at another table.

        Only the reference changes; neither table's status is touched.

        Raises:
            NotFoundError: Unknown order or table
        """
        async with self._unit_of_work():
            order = await self._load_order(order_id, for_update=True)
            table = await self.tables.resolve_table(table_number)
            if table is None:
                raise NotFoundError("Table", table_number)
            order.table = table

        logger.info(f"Order #{order.id} moved to table {table_number}")
        return order

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_order(self, order_id: int) -> Order:
        return await self._load_order(order_id)

    async def get_order_for_customer(self, order_id: int, customer_id: int) -> Order:
        order = await self._load_order(order_id)
        if order.customer_id != customer_id:
            raise AccessDeniedError(f"Order #{order_id} belongs to another customer")
        return order

    async def get_order_items(self, order_id: int) -> list[OrderItem]:
        order = await self._load_order(order_id)
        return list(order.items)

    async def list_orders(
        self,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Page[Order]:
        """Newest first, optionally filtered by a status name."""
        if offset < 0 or limit < 1:
            raise ValidationError("offset must be >= 0 and limit >= 1")

        query = select(Order).order_by(Order.order_time.desc(), Order.id.desc())
        count_query = select(func.count(Order.id))
        if status:
            status_enum = parse_status(status)
            query = query.where(Order.status == status_enum)
            count_query = count_query.where(Order.status == status_enum)

        total = (await self.session.execute(count_query)).scalar() or 0
        result = await self.session.execute(query.offset(offset).limit(limit))
        return Page(
            content=list(result.scalars().all()),
            total=total,
            offset=offset,
            limit=limit,
        )

    async def list_customer_orders(self, customer_id: int) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.order_time.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def get_last_order(self, customer_id: int) -> Order:
        result = await self.session.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.order_time.desc(), Order.id.desc())
            .limit(1)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order")
        return order

    async def list_open_orders(self) -> list[Order]:
        """Waiter view: everything not yet completed in the current business day."""
        since = business_day_start(self.clock(), self.settings)
        result = await self.session.execute(
            select(Order)
            .where(Order.status != OrderStatus.COMPLETED, Order.order_time >= since)
            .order_by(Order.order_time.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def list_kitchen_orders(self) -> list[Order]:
        """Kitchen view: placed, preparing, ready and cancelled orders of the business day."""
        since = business_day_start(self.clock(), self.settings)
        result = await self.session.execute(
            select(Order)
            .where(Order.status.in_(KITCHEN_STATUSES), Order.order_time >= since)
            .order_by(Order.order_time.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    async def delete_order(self, order_id: int) -> Order:
        """Hard delete an order and its items."""
        async with self._unit_of_work():
            order = await self._load_order(order_id, for_update=True)
            await self.session.delete(order)

        logger.info(f"Order #{order_id} deleted")
        return order
