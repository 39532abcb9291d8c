"""
Pydantic Schemas for Request/Response Validation

Request bodies for the order lifecycle endpoints and response models
for orders, pages and dashboard metrics. Money is serialized as a
decimal string with two places.
"""

from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from restaurant_ops.models import OrderStatus

T = TypeVar("T")


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderItemCreate(BaseModel):
    """Single requested line, matched to the catalog by name."""
    food_name: str = Field(..., min_length=1, max_length=100, examples=["Burger"])
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    note: Optional[str] = Field(None, max_length=200, examples=["no onions"])


class OrderCreate(BaseModel):
    """Request schema for placing a new order."""
    items: List[OrderItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=500)
    address_id: Optional[int] = Field(None, examples=[1])
    table_number: Optional[str] = Field(None, max_length=20, examples=["T1"])


class StatusUpdate(BaseModel):
    """New status name, case-insensitive."""
    status: str = Field(..., min_length=1, examples=["PREPARING"])


class TableChange(BaseModel):
    table_number: str = Field(..., min_length=1, max_length=20, examples=["T2"])


# =============================================================================
# ORDER RESPONSE SCHEMAS
# =============================================================================

class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    food_item_id: int
    food_name: Optional[str]
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    note: Optional[str]


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_time: datetime
    status: OrderStatus
    total_price: Decimal
    notes: Optional[str]
    customer_id: int
    address_id: Optional[int]
    table_number: Optional[str]
    items: List[OrderItemResponse]


class SkippedLineResponse(BaseModel):
    food_name: str
    quantity: int
    reason: str


class OrderCreateResponse(BaseModel):
    """Response after placing an order."""
    success: bool = True
    message: str
    order: OrderResponse
    skipped: List[SkippedLineResponse] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PageResponse(BaseModel, Generic[T]):
    """One page of a list."""
    content: List[T]
    total: int
    page: int
    size: int
    total_pages: int
    has_next: bool


# =============================================================================
# DASHBOARD SCHEMAS
# =============================================================================

class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    new_customers: int


class RevenueDataPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    revenue: Decimal


class TopItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    food_name: str
    quantity_sold: int
    total_revenue: Decimal


class TopCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_name: str
    total_revenue: Decimal


class BusiestTableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    table_number: str
    order_count: int


class HeatmapPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: str
    hour_of_day: int
    revenue: Decimal


class ExportQueuedResponse(BaseModel):
    success: bool = True
    message: str
    task_id: str


# =============================================================================
# COMMON
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    timestamp: datetime
