"""
FastAPI Application Entry Point

Restaurant Operations - order lifecycle and dashboard analytics.

Endpoints:
    - POST /api/orders: Place an order
    - GET /api/orders: List orders (admin)
    - GET /api/orders/open, /api/orders/kitchen: Waiter and kitchen views
    - PATCH /api/orders/{id}/status|cancel|table: Lifecycle transitions
    - GET /api/customers/me/orders: Order history of the calling customer
    - GET /api/dashboard/*: Analytics
    - POST /api/dashboard/export: Queue an Excel report
    - GET /health: System health check

Customers identify themselves with the X-Customer-Id header.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, Callable, Optional

import redis
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_ops.core.config import get_settings, setup_logging
from restaurant_ops.core.exceptions import RestaurantError, ValidationError
from restaurant_ops.database import engine, get_db, init_db
from restaurant_ops.schemas import (
    BusiestTableResponse,
    DashboardStatsResponse,
    ErrorResponse,
    ExportQueuedResponse,
    HealthResponse,
    HeatmapPointResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderItemResponse,
    OrderResponse,
    PageResponse,
    RevenueDataPointResponse,
    SkippedLineResponse,
    StatusUpdate,
    TableChange,
    TopCategoryResponse,
    TopItemResponse,
)
from restaurant_ops.services.dashboard import DashboardService
from restaurant_ops.services.orders import OrderEngine, OrderLine
from restaurant_ops.services.paging import Page
from restaurant_ops.tasks import export_dashboard_report

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")
    logger.info(
        f"✅ Merge window: {settings.merge_window_min_minutes}-"
        f"{settings.merge_window_max_minutes} min, "
        f"catalog timeout: {settings.catalog_lookup_timeout_seconds}s"
    )

    yield

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Order lifecycle engine and dashboard analytics for a restaurant.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

def get_order_engine(db: AsyncSession = Depends(get_db)) -> OrderEngine:
    return OrderEngine(db)


def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


def to_page_response(page: Page, convert: Callable[[Any], Any]) -> dict[str, Any]:
    return {
        "content": [convert(item) for item in page.content],
        "total": page.total,
        "page": page.page,
        "size": page.limit,
        "total_pages": page.total_pages,
        "has_next": page.has_next,
    }


ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify database and Redis are reachable."""

    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    overall = "operational" if db_status == redis_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def place_order(
    order_data: OrderCreate,
    x_customer_id: int = Header(...),
    orders: OrderEngine = Depends(get_order_engine),
) -> OrderCreateResponse:
    """
    Place an order for the calling customer.

    Unknown food names are skipped and reported in `skipped`; the order
    is rejected only if no line can be resolved.
    """
    logger.info(f"Placing order for customer #{x_customer_id}: {len(order_data.items)} line(s)")

    result = await orders.place_order(
        customer_id=x_customer_id,
        items=[OrderLine(i.food_name, i.quantity, i.note) for i in order_data.items],
        notes=order_data.notes,
        address_id=order_data.address_id,
        table_number=order_data.table_number,
    )

    return OrderCreateResponse(
        message=f"Order #{result.order.id} placed",
        order=OrderResponse.model_validate(result.order),
        skipped=[
            SkippedLineResponse(food_name=s.food_name, quantity=s.quantity, reason=s.reason.value)
            for s in result.skipped_lines
        ],
        warnings=result.warnings,
    )


@app.get(
    "/api/orders",
    response_model=PageResponse[OrderResponse],
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    status: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    orders: OrderEngine = Depends(get_order_engine),
) -> dict[str, Any]:
    """Newest orders first, optionally filtered by status."""
    size = size or settings.default_page_size
    if size > settings.max_page_size:
        raise ValidationError(f"size must be <= {settings.max_page_size}")
    result = await orders.list_orders(status=status, offset=page * size, limit=size)
    return to_page_response(result, OrderResponse.model_validate)


@app.get("/api/orders/open", response_model=list[OrderResponse], tags=["Orders"])
async def list_open_orders(
    orders: OrderEngine = Depends(get_order_engine),
) -> list[OrderResponse]:
    """Orders of the current business day that are not completed."""
    return [OrderResponse.model_validate(o) for o in await orders.list_open_orders()]


@app.get("/api/orders/kitchen", response_model=list[OrderResponse], tags=["Orders"])
async def list_kitchen_orders(
    orders: OrderEngine = Depends(get_order_engine),
) -> list[OrderResponse]:
    return [OrderResponse.model_validate(o) for o in await orders.list_kitchen_orders()]


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    x_customer_id: Optional[int] = Header(None),
    orders: OrderEngine = Depends(get_order_engine),
) -> OrderResponse:
    """Get an order; with X-Customer-Id only the caller's own orders are visible."""
    if x_customer_id is None:
        order = await orders.get_order(order_id)
    else:
        order = await orders.get_order_for_customer(order_id, x_customer_id)
    return OrderResponse.model_validate(order)


@app.get(
    "/api/orders/{order_id}/items",
    response_model=list[OrderItemResponse],
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def get_order_items(
    order_id: int,
    orders: OrderEngine = Depends(get_order_engine),
) -> list[OrderItemResponse]:
    return [OrderItemResponse.model_validate(i) for i in await orders.get_order_items(order_id)]


@app.patch(
    "/api/orders/{order_id}/status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def update_order_status(
    order_id: int,
    update: StatusUpdate,
    orders: OrderEngine = Depends(get_order_engine),
) -> OrderResponse:
    """Move an order to a new status; COMPLETED may absorb a recent order."""
    order = await orders.update_order_status(order_id, update.status)
    return OrderResponse.model_validate(order)


@app.patch(
    "/api/orders/{order_id}/cancel",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def cancel_order(
    order_id: int,
    x_customer_id: int = Header(...),
    orders: OrderEngine = Depends(get_order_engine),
) -> OrderResponse:
    """Cancel the caller's order while it is still PLACED or PREPARING."""
    order = await orders.cancel_order(order_id, x_customer_id)
    return OrderResponse.model_validate(order)


@app.patch(
    "/api/orders/{order_id}/table",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def change_table(
    order_id: int,
    change: TableChange,
    orders: OrderEngine = Depends(get_order_engine),
) -> OrderResponse:
    order = await orders.change_table(order_id, change.table_number)
    return OrderResponse.model_validate(order)


@app.delete(
    "/api/orders/{order_id}",
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def delete_order(
    order_id: int,
    orders: OrderEngine = Depends(get_order_engine),
) -> dict[str, Any]:
    await orders.delete_order(order_id)
    return {"success": True, "message": f"Order #{order_id} deleted"}


@app.get(
    "/api/customers/me/orders",
    response_model=list[OrderResponse],
    tags=["Customers"],
)
async def list_my_orders(
    x_customer_id: int = Header(...),
    orders: OrderEngine = Depends(get_order_engine),
) -> list[OrderResponse]:
    return [OrderResponse.model_validate(o) for o in await orders.list_customer_orders(x_customer_id)]


@app.get(
    "/api/customers/me/orders/last",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Customers"],
)
async def get_my_last_order(
    x_customer_id: int = Header(...),
    orders: OrderEngine = Depends(get_order_engine),
) -> OrderResponse:
    return OrderResponse.model_validate(await orders.get_last_order(x_customer_id))


# =============================================================================
# DASHBOARD ENDPOINTS
# =============================================================================

@app.get(
    "/api/dashboard/stats",
    response_model=DashboardStatsResponse,
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_stats(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> DashboardStatsResponse:
    """Revenue, order count, average order value and new customers."""
    stats = await dashboard.get_dashboard_stats(start_date, end_date)
    return DashboardStatsResponse.model_validate(stats)


@app.get(
    "/api/dashboard/revenue-chart",
    response_model=list[RevenueDataPointResponse],
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_revenue_chart(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> list[RevenueDataPointResponse]:
    """Hourly buckets for short ranges, daily otherwise."""
    points = await dashboard.get_revenue_chart(start_date, end_date)
    return [RevenueDataPointResponse.model_validate(p) for p in points]


@app.get(
    "/api/dashboard/revenue-heatmap",
    response_model=list[HeatmapPointResponse],
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_revenue_heatmap(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> list[HeatmapPointResponse]:
    points = await dashboard.get_revenue_heatmap(start_date, end_date)
    return [HeatmapPointResponse.model_validate(p) for p in points]


@app.get(
    "/api/dashboard/top-items",
    response_model=PageResponse[TopItemResponse],
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_top_items(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    result = await dashboard.get_top_items(start_date, end_date, page, size)
    return to_page_response(result, TopItemResponse.model_validate)


@app.get(
    "/api/dashboard/top-categories",
    response_model=PageResponse[TopCategoryResponse],
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_top_categories(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    result = await dashboard.get_top_categories(start_date, end_date, page, size)
    return to_page_response(result, TopCategoryResponse.model_validate)


@app.get(
    "/api/dashboard/busiest-tables",
    response_model=PageResponse[BusiestTableResponse],
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_busiest_tables(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    result = await dashboard.get_busiest_tables(start_date, end_date, page, size)
    return to_page_response(result, BusiestTableResponse.model_validate)


@app.post(
    "/api/dashboard/export",
    response_model=ExportQueuedResponse,
    status_code=202,
    responses=ERROR_RESPONSES,
    tags=["Dashboard"],
)
async def dashboard_export(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    dashboard: DashboardService = Depends(get_dashboard_service),
) -> ExportQueuedResponse:
    """Queue an Excel export of every dashboard metric."""
    start, end = dashboard.resolve_range(start_date, end_date)
    task = export_dashboard_report.delay(start.isoformat(), end.isoformat())
    logger.info(f"Queued dashboard export {start} → {end} as task {task.id}")
    return ExportQueuedResponse(message=f"Export {start} → {end} queued", task_id=str(task.id))


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RestaurantError)
async def restaurant_error_handler(request: Request, exc: RestaurantError) -> JSONResponse:
    """Expected failures keep their own status code."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("restaurant_ops.main:app", host=settings.api_host, port=settings.api_port, reload=settings.is_development)
