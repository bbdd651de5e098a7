"""
Tests for the expense endpoints.
"""

from httpx import AsyncClient

from tests.factories import ExpenseFactory


class TestExpenses:
    """/api/expenses"""

    async def test_create_expense(self, client: AsyncClient, sample_vehicle: dict):
        data = ExpenseFactory(vehicle_id=sample_vehicle["id"], category=" Tyres ")
        resp = await client.post("/api/expenses", json=data)
        assert resp.status_code == 201
        body = resp.json()
        assert body["category"] == "tyres"
        assert body["created_by"] == "tester"

    async def test_expense_for_missing_vehicle(self, client: AsyncClient):
        data = ExpenseFactory(vehicle_id="00000000-0000-0000-0000-000000000000")
        resp = await client.post("/api/expenses", json=data)
        assert resp.status_code == 404

    async def test_filter_by_date_window(self, client: AsyncClient, sample_vehicle: dict):
        for day in ("2024-01-10", "2024-02-10", "2024-03-10"):
            await client.post("/api/expenses", json=ExpenseFactory(vehicle_id=sample_vehicle["id"], date=day))

        resp = await client.get(
            "/api/expenses", params={"start_date": "2024-02-01", "end_date": "2024-03-31"}
        )
        assert resp.json()["total"] == 2


class TestUpdateExpense:
    """PUT /api/expenses/{id}"""

    async def test_update_amount(self, client: AsyncClient, sample_vehicle: dict):
        expense = (await client.post("/api/expenses", json=ExpenseFactory(vehicle_id=sample_vehicle["id"]))).json()
        resp = await client.put(f"/api/expenses/{expense['id']}", json={"amount": "80.00"})
        assert resp.status_code == 200
        assert float(resp.json()["amount"]) == 80.0

    async def test_null_amount_rejected(self, client: AsyncClient, sample_vehicle: dict):
        expense = (await client.post("/api/expenses", json=ExpenseFactory(vehicle_id=sample_vehicle["id"]))).json()
        for field in ("amount", "date", "category"):
            resp = await client.put(f"/api/expenses/{expense['id']}", json={field: None})
            assert resp.status_code == 422, field


class TestRecentExpenses:
    """GET /api/expenses/recent"""

    async def test_newest_first_and_limited(self, client: AsyncClient, sample_vehicle: dict):
        for day in ("2024-01-10", "2024-02-10", "2024-03-10"):
            await client.post("/api/expenses", json=ExpenseFactory(vehicle_id=sample_vehicle["id"], date=day))

        resp = await client.get("/api/expenses/recent", params={"limit": 2})
        assert resp.status_code == 200
        assert [e["date"] for e in resp.json()] == ["2024-03-10", "2024-02-10"]

    async def test_limit_bounds(self, client: AsyncClient):
        assert (await client.get("/api/expenses/recent", params={"limit": 0})).status_code == 422
        assert (await client.get("/api/expenses/recent", params={"limit": 101})).status_code == 422

    async def test_empty(self, client: AsyncClient):
        resp = await client.get("/api/expenses/recent")
        assert resp.json() == []
