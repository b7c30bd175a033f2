"""
Tests for the REST storage

A small aiohttp backend is started in-process on a free port, so
requests go over real HTTP without any external service.
"""

import asyncio
import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from aiohttp import web

from src.config import ApiSettings
from src.models.records import (
    ExpenseCategory,
    ExpenseDraft,
    JobDraft,
    SalaryPaymentDraft,
    WorkEntryDraft,
)
from src.aggregation import month_range
from src.services.storage import (
    AuthenticationError,
    NotFoundError,
    RestApiFinanceStorage,
    StorageConnectionError,
    StorageError,
)


class FakeBackend:
    """Mongo-flavored JSON backend keeping its collections in dicts."""

    def __init__(self, token=None):
        self.token = token
        self.failures_left = 0
        self.requests = []
        self.bodies = []
        self.collections = {
            "expenses": {
                "e1": {
                    "_id": "e1",
                    "title": "Lunch",
                    "category": "Food",
                    "amount": 20,
                    "date": "2024-03-01T00:00:00.000Z",
                },
                "e2": {
                    "_id": "e2",
                    "title": "Broken",
                    "category": "Mystery",
                    "amount": None,
                    "date": "not a date",
                },
            },
            "jobs": {"j1": {"_id": "j1", "name": "Cafe"}},
            "work-entries": {
                "w1": {
                    "_id": "w1",
                    "job": {"_id": "j1", "name": "Cafe"},
                    "amount": 50,
                    "date": "2024-03-01T00:00:00.000Z",
                },
            },
            "salary-payments": {
                "p1": {
                    "_id": "p1",
                    "job": "j1",
                    "amount": 60,
                    "createdAt": "2024-03-10T09:00:00.000Z",
                },
            },
        }

    def app(self) -> web.Application:
        @web.middleware
        async def gatekeeper(request, handler):
            self.requests.append((request.method, request.path, dict(request.query)))
            if self.token and request.headers.get("Authorization") != f"Bearer {self.token}":
                return web.json_response({"message": "Not authorized"}, status=401)
            if self.failures_left:
                self.failures_left -= 1
                return web.json_response({"message": "Temporarily down"}, status=503)
            return await handler(request)

        app = web.Application(middlewares=[gatekeeper])
        app.router.add_get("/api/expenses/range", self.expense_range)
        app.router.add_get("/api/{collection}", self.list_rows)
        app.router.add_post("/api/{collection}", self.create_row)
        app.router.add_put("/api/{collection}/{id}", self.update_row)
        app.router.add_delete("/api/{collection}/{id}", self.delete_row)
        return app

    def _rows(self, request):
        rows = self.collections.get(request.match_info["collection"])
        if rows is None:
            raise web.HTTPNotFound()
        return rows

    async def list_rows(self, request):
        return web.json_response(list(self._rows(request).values()))

    async def expense_range(self, request):
        return web.json_response([self.collections["expenses"]["e1"]])

    async def create_row(self, request):
        rows = self._rows(request)
        body = await request.json()
        self.bodies.append(body)
        if request.match_info["collection"] == "expenses" and not body.get("title"):
            return web.json_response({"message": "Title is required"}, status=400)
        row = dict(body, _id=uuid4().hex)
        if request.match_info["collection"] == "salary-payments":
            row["createdAt"] = "2024-03-12T08:00:00.000Z"
        rows[row["_id"]] = row
        return web.json_response(row, status=201)

    async def update_row(self, request):
        rows = self._rows(request)
        record_id = request.match_info["id"]
        if record_id not in rows:
            return web.json_response({"message": "Not found"}, status=404)
        body = await request.json()
        self.bodies.append(body)
        rows[record_id] = dict(rows[record_id], **body)
        return web.json_response(rows[record_id])

    async def delete_row(self, request):
        rows = self._rows(request)
        if rows.pop(request.match_info["id"], None) is None:
            return web.json_response({"message": "Not found"}, status=404)
        return web.json_response({"message": "Deleted"})


async def start(app: web.Application):
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host="127.0.0.1", port=0)
    await site.start()
    port = site._server.sockets[0].getsockname()[1]
    return runner, f"http://127.0.0.1:{port}/api/"


def run_against(backend: FakeBackend, scenario, **settings):
    """Start the backend, run the scenario with a storage pointed at it."""
    async def main():
        runner, base_url = await start(backend.app())
        try:
            storage = RestApiFinanceStorage(ApiSettings(base_url=base_url, **settings))
            await scenario(storage)
        finally:
            await runner.cleanup()

    asyncio.run(main())


class TestReads:
    """Tests for listing collections."""

    def test_list_expenses_parses_leniently(self):
        """Test malformed rows come back with None values instead of failing."""
        async def scenario(storage):
            expenses = await storage.list_expenses()
            assert [e.id for e in expenses] == ["e1", "e2"]
            assert expenses[0].amount == Decimal("20")
            assert expenses[1].amount is None
            assert expenses[1].date is None
            assert expenses[1].category == ExpenseCategory.OTHER

        run_against(FakeBackend(), scenario)

    def test_populated_job_and_created_at(self):
        """Test job references and payment timestamps."""
        async def scenario(storage):
            entries = await storage.list_work_entries()
            payments = await storage.list_salary_payments()
            jobs = await storage.list_jobs()
            assert entries[0].job_id == "j1"
            assert payments[0].job_id == "j1"
            assert payments[0].date is not None
            assert jobs[0].name == "Cafe"

        run_against(FakeBackend(), scenario)

    def test_range_query_parameters(self):
        """Test the month bounds are sent as startDate and endDate."""
        backend = FakeBackend()

        async def scenario(storage):
            expenses = await storage.list_expenses_in_range(month_range(date(2024, 3, 5)))
            assert [e.id for e in expenses] == ["e1"]

        run_against(backend, scenario)
        method, path, query = backend.requests[-1]
        assert path == "/api/expenses/range"
        assert query == {
            "startDate": "2024-03-01T00:00:00",
            "endDate": "2024-03-31T00:00:00",
        }


class TestWrites:
    """Tests for create, update and delete."""

    def test_create_expense_payload(self):
        """Test the JSON body and the returned record."""
        backend = FakeBackend()

        async def scenario(storage):
            created = await storage.create_expense(
                ExpenseDraft(title="Taxi", amount="18.20", category="Cab", date=date(2024, 3, 5))
            )
            assert created.title == "Taxi"
            assert created.amount == Decimal("18.2")
            assert created.category == ExpenseCategory.OTHER

        run_against(backend, scenario)
        assert backend.bodies[-1] == {
            "title": "Taxi",
            "amount": 18.2,
            "category": "Other",
            "date": "2024-03-05T00:00:00",
        }

    def test_update_and_delete(self):
        """Test updates return the stored row and deletes report success."""
        async def scenario(storage):
            job = await storage.update_job("j1", JobDraft(name="Cafe Luna"))
            assert job.name == "Cafe Luna"
            assert await storage.delete_job("j1") is True
            assert await storage.delete_job("j1") is False

        run_against(FakeBackend(), scenario)

    def test_update_missing_raises_not_found(self):
        """Test updating an unknown id."""
        async def scenario(storage):
            with pytest.raises(NotFoundError):
                await storage.update_expense(
                    "nope", ExpenseDraft(title="x", amount=1, date=date(2024, 1, 1))
                )

        run_against(FakeBackend(), scenario)

    def test_work_entry_and_payment(self):
        """Test job references are sent under 'job'."""
        backend = FakeBackend()

        async def scenario(storage):
            entry = await storage.create_work_entry(
                WorkEntryDraft(job_id="j1", amount=70, date=datetime(2024, 3, 2))
            )
            payment = await storage.create_salary_payment(
                SalaryPaymentDraft(job_id="j1", amount=60)
            )
            assert entry.job_id == "j1"
            assert payment.date is not None
            assert await storage.delete_work_entry(entry.id) is True
            assert await storage.delete_salary_payment(payment.id) is True

        run_against(backend, scenario)
        assert backend.bodies[0]["job"] == "j1"
        assert backend.bodies[1] == {"job": "j1", "amount": 60.0}

    def test_rejected_request_is_not_retried(self):
        """Test a 400 raises StorageError after a single attempt."""
        backend = FakeBackend()

        async def scenario(storage):
            with pytest.raises(StorageError) as exc_info:
                await storage.create_expense(ExpenseDraft(title="", amount=1))
            assert not isinstance(exc_info.value, StorageConnectionError)

        run_against(backend, scenario, max_retries=3)
        assert len(backend.requests) == 1


class TestFailures:
    """Tests for authentication, retries and outages."""

    def test_token_is_sent(self):
        """Test the bearer token."""
        async def scenario(storage):
            assert len(await storage.list_jobs()) == 1

        run_against(FakeBackend(token="s3cret"), scenario, token="s3cret")

    def test_bad_token(self):
        """Test a 401 becomes AuthenticationError."""
        async def scenario(storage):
            with pytest.raises(AuthenticationError):
                await storage.list_jobs()

        run_against(FakeBackend(token="s3cret"), scenario, token="wrong")

    def test_transient_failure_is_retried(self):
        """Test one 503 followed by success."""
        backend = FakeBackend()
        backend.failures_left = 1

        async def scenario(storage):
            assert len(await storage.list_jobs()) == 1

        run_against(backend, scenario, max_retries=3)
        assert len(backend.requests) == 2

    def test_retries_exhausted(self):
        """Test persistent 5xx responses surface as StorageConnectionError."""
        backend = FakeBackend()
        backend.failures_left = 10

        async def scenario(storage):
            with pytest.raises(StorageConnectionError):
                await storage.list_expenses()

        run_against(backend, scenario, max_retries=2)
        assert len(backend.requests) == 2

    def test_create_is_not_retried(self):
        """Test a 503 on POST fails at once so no duplicate record is created."""
        backend = FakeBackend()
        backend.failures_left = 1

        async def scenario(storage):
            with pytest.raises(StorageConnectionError):
                await storage.create_job(JobDraft(name="Bakery"))

        run_against(backend, scenario, max_retries=3)
        assert backend.requests == [("POST", "/api/jobs", {})]
        assert len(backend.collections["jobs"]) == 1

    def test_delete_is_retried(self):
        """Test a 503 on DELETE is retried like a read."""
        backend = FakeBackend()
        backend.failures_left = 1

        async def scenario(storage):
            assert await storage.delete_job("j1") is True

        run_against(backend, scenario, max_retries=3)
        assert [r[0] for r in backend.requests] == ["DELETE", "DELETE"]

    def test_unreachable_backend(self):
        """Test a refused connection surfaces as StorageConnectionError."""
        async def main():
            runner, base_url = await start(web.Application())
            await runner.cleanup()
            storage = RestApiFinanceStorage(
                ApiSettings(base_url=base_url, max_retries=1, timeout_seconds=2)
            )
            with pytest.raises(StorageConnectionError):
                await storage.list_jobs()

        asyncio.run(main())
