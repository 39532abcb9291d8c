"""HTTP surface, exercised in-process through httpx."""

from datetime import timedelta
from types import SimpleNamespace

import httpx
import pytest

from restaurant_ops import main
from restaurant_ops.database import get_db
from restaurant_ops.models import OrderStatus

from conftest import NOW, add_order


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    main.app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    main.app.dependency_overrides.clear()


def customer(c) -> dict:
    return {"X-Customer-Id": str(c.id)}


# =============================================================================
# ORDERS
# =============================================================================

@pytest.mark.anyio
async def test_place_order(client, menu):
    response = await client.post(
        "/api/orders",
        json={
            "items": [
                {"food_name": "Burger", "quantity": 2},
                {"food_name": "UnknownFood", "quantity": 1},
            ],
            "table_number": "T1",
        },
        headers=customer(menu["alice"]),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["order"]["status"] == "PLACED"
    assert data["order"]["total_price"] == "17.00"
    assert data["order"]["table_number"] == "T1"
    assert [i["food_name"] for i in data["order"]["items"]] == ["Burger"]
    assert data["skipped"] == [{"food_name": "UnknownFood", "quantity": 1, "reason": "not_found"}]
    assert len(data["warnings"]) == 1


@pytest.mark.anyio
async def test_place_order_requires_customer_header(client, menu):
    response = await client.post("/api/orders", json={"items": [{"food_name": "Burger", "quantity": 1}]})
    assert response.status_code == 422


@pytest.mark.anyio
async def test_place_order_rejects_empty_items(client, menu):
    response = await client.post("/api/orders", json={"items": []}, headers=customer(menu["alice"]))
    assert response.status_code == 422


@pytest.mark.anyio
async def test_place_order_nothing_resolves(client, menu):
    response = await client.post(
        "/api/orders",
        json={"items": [{"food_name": "Nope", "quantity": 1}]},
        headers=customer(menu["alice"]),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


@pytest.mark.anyio
async def test_place_order_unknown_customer(client, menu):
    response = await client.post(
        "/api/orders",
        json={"items": [{"food_name": "Burger", "quantity": 1}]},
        headers={"X-Customer-Id": "9999"},
    )
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "not_found", "detail": "Customer 9999 not found"}


@pytest.mark.anyio
async def test_status_lifecycle(client, menu):
    placed = await client.post(
        "/api/orders",
        json={"items": [{"food_name": "Fries", "quantity": 1}]},
        headers=customer(menu["alice"]),
    )
    order_id = placed.json()["order"]["id"]

    ok = await client.patch(f"/api/orders/{order_id}/status", json={"status": "preparing"})
    same = await client.patch(f"/api/orders/{order_id}/status", json={"status": "PREPARING"})
    bad = await client.patch(f"/api/orders/{order_id}/status", json={"status": "BAKING"})
    missing = await client.patch("/api/orders/424242/status", json={"status": "READY"})

    assert ok.status_code == 200 and ok.json()["status"] == "PREPARING"
    assert same.status_code == 409
    assert bad.status_code == 400
    assert missing.status_code == 404


@pytest.mark.anyio
async def test_cancel_order(client, menu):
    placed = await client.post(
        "/api/orders",
        json={"items": [{"food_name": "Fries", "quantity": 1}]},
        headers=customer(menu["alice"]),
    )
    order_id = placed.json()["order"]["id"]

    denied = await client.patch(f"/api/orders/{order_id}/cancel", headers=customer(menu["bob"]))
    cancelled = await client.patch(f"/api/orders/{order_id}/cancel", headers=customer(menu["alice"]))
    again = await client.patch(f"/api/orders/{order_id}/cancel", headers=customer(menu["alice"]))

    assert denied.status_code == 403
    assert cancelled.json()["status"] == "CANCELLED"
    assert again.status_code == 200
    assert again.json()["status"] == "CANCELLED"


@pytest.mark.anyio
async def test_change_table(client, menu):
    placed = await client.post(
        "/api/orders",
        json={"items": [{"food_name": "Fries", "quantity": 1}], "table_number": "T1"},
        headers=customer(menu["alice"]),
    )
    order_id = placed.json()["order"]["id"]

    moved = await client.patch(f"/api/orders/{order_id}/table", json={"table_number": "T2"})
    unknown = await client.patch(f"/api/orders/{order_id}/table", json={"table_number": "T9"})

    assert moved.json()["table_number"] == "T2"
    assert unknown.status_code == 404


@pytest.mark.anyio
async def test_order_queries(client, session, menu):
    alice, bob, foods = menu["alice"], menu["bob"], menu["foods"]
    mine = await add_order(session, alice, NOW - timedelta(days=1), [(foods["Burger"], 1)])
    latest = await add_order(session, alice, NOW, [(foods["Water"], 2)], status=OrderStatus.PLACED)
    theirs = await add_order(session, bob, NOW, [(foods["Fries"], 1)])

    listing = await client.get("/api/orders", params={"status": "completed", "size": 1})
    own = await client.get(f"/api/orders/{mine.id}", headers=customer(alice))
    foreign = await client.get(f"/api/orders/{theirs.id}", headers=customer(alice))
    items = await client.get(f"/api/orders/{latest.id}/items")
    history = await client.get("/api/customers/me/orders", headers=customer(alice))
    last = await client.get("/api/customers/me/orders/last", headers=customer(alice))

    assert listing.json()["total"] == 2
    assert len(listing.json()["content"]) == 1
    assert listing.json()["has_next"] is True
    assert own.status_code == 200
    assert foreign.status_code == 403
    assert [(i["food_name"], i["quantity"], i["total_price"]) for i in items.json()] == [("Water", 2, "3.00")]
    assert [o["id"] for o in history.json()] == [latest.id, mine.id]
    assert last.json()["id"] == latest.id


@pytest.mark.anyio
async def test_list_orders_uses_configured_page_size(client, menu):
    settings = main.settings

    default = await client.get("/api/orders")
    largest = await client.get("/api/orders", params={"size": settings.max_page_size})
    too_large = await client.get("/api/orders", params={"size": settings.max_page_size + 1})

    assert default.json()["size"] == settings.default_page_size
    assert largest.status_code == 200
    assert too_large.status_code == 422
    assert too_large.json()["error"] == "validation_error"


@pytest.mark.anyio
async def test_delete_order(client, session, menu):
    order = await add_order(session, menu["alice"], NOW, [(menu["foods"]["Burger"], 1)])
    order_id = order.id

    deleted = await client.delete(f"/api/orders/{order_id}")
    gone = await client.get(f"/api/orders/{order_id}")

    assert deleted.status_code == 200
    assert gone.status_code == 404


# =============================================================================
# DASHBOARD
# =============================================================================

@pytest.mark.anyio
async def test_dashboard_endpoints(client, session, menu):
    alice, foods, tables = menu["alice"], menu["foods"], menu["tables"]
    await add_order(session, alice, NOW, [(foods["Salad"], 2)], table=tables["T1"])
    await add_order(session, alice, NOW, [(foods["Burger"], 10)], status=OrderStatus.CANCELLED)
    params = {"start_date": "2024-05-15", "end_date": "2024-05-15"}

    stats = await client.get("/api/dashboard/stats", params=params)
    chart = await client.get("/api/dashboard/revenue-chart", params=params)
    heatmap = await client.get("/api/dashboard/revenue-heatmap", params=params)
    items = await client.get("/api/dashboard/top-items", params={**params, "size": 5})
    categories = await client.get("/api/dashboard/top-categories", params=params)
    tables_page = await client.get("/api/dashboard/busiest-tables", params={**params, "page": 3})

    assert stats.json() == {
        "total_revenue": "20.00",
        "total_orders": 1,
        "average_order_value": "20.00",
        "new_customers": 1,
    }
    assert chart.json() == [{"label": "2024-05-15 12:00", "revenue": "20.00"}]
    assert heatmap.json() == [{"day_of_week": "WEDNESDAY", "hour_of_day": 12, "revenue": "20.00"}]
    assert items.json()["content"] == [{"food_name": "Salad", "quantity_sold": 2, "total_revenue": "20.00"}]
    assert items.json()["size"] == 5
    assert [c["total_revenue"] for c in categories.json()["content"]] == ["10.00", "10.00"]
    assert tables_page.json()["content"] == []
    assert tables_page.json()["total"] == 1


@pytest.mark.anyio
async def test_dashboard_rejects_inverted_range(client, menu):
    response = await client.get(
        "/api/dashboard/stats", params={"start_date": "2024-05-20", "end_date": "2024-05-01"}
    )
    assert response.status_code == 422


@pytest.mark.anyio
async def test_dashboard_export_queues_task(client, monkeypatch, menu):
    queued = []

    def fake_delay(*args):
        queued.append(args)
        return SimpleNamespace(id="task-1")

    monkeypatch.setattr(main.export_dashboard_report, "delay", fake_delay)

    response = await client.post(
        "/api/dashboard/export", params={"start_date": "2024-05-01", "end_date": "2024-05-15"}
    )

    assert response.status_code == 202
    assert response.json()["task_id"] == "task-1"
    assert queued == [("2024-05-01", "2024-05-15")]


# =============================================================================
# HEALTH
# =============================================================================

@pytest.mark.anyio
async def test_health(client, monkeypatch):
    class FakeRedis:
        def ping(self):
            return True

        def close(self):
            pass

    monkeypatch.setattr(main.redis.Redis, "from_url", lambda *a, **kw: FakeRedis())

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"
    assert response.json()["database"] == "healthy"
