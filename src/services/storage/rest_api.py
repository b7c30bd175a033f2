"""
REST API Storage Implementation

Talks to the finance backend over HTTP/JSON:

    GET/POST        /expenses          PUT/DELETE /expenses/{id}
    GET             /expenses/range?startDate=&endDate=
    GET/POST        /jobs              PUT/DELETE /jobs/{id}
    GET/POST        /work-entries      DELETE     /work-entries/{id}
    GET/POST        /salary-payments   DELETE     /salary-payments/{id}

TRADEOFFS:
- A new aiohttp session is opened per request. The Streamlit front end
  runs each action on a fresh event loop, and a session cannot outlive
  the loop it was created on.
- Only connection failures and 5xx responses are retried. A 4xx means
  the request itself is wrong and retrying will not help.
- POST is never retried: a timeout may hide a record the backend already
  stored, and sending it again would duplicate it.
"""

import asyncio
from typing import Any, Optional

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import ApiSettings, get_settings
from src.models.records import (
    Expense,
    ExpenseDraft,
    Job,
    JobDraft,
    SalaryPayment,
    SalaryPaymentDraft,
    WorkEntry,
    WorkEntryDraft,
)
from src.models.summary import MonthRange
from src.services.storage.interface import (
    AuthenticationError,
    FinanceStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)


IDEMPOTENT_METHODS = frozenset({"GET", "PUT", "DELETE"})


class RestApiFinanceStorage(FinanceStorageInterface):
    """
    REST implementation of finance storage.

    Records come back as JSON and are parsed leniently by the
    record models (Mongo-style "_id", populated job references).
    """

    def __init__(self, settings: Optional[ApiSettings] = None):
        self._settings = settings or get_settings().api

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Perform one HTTP request and decode the JSON body."""
        url = f"{self._settings.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self._settings.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method,
                    url,
                    json=payload,
                    params=params,
                    headers=self._headers(),
                ) as response:
                    if response.status == 401:
                        raise AuthenticationError("Backend rejected credentials")
                    if response.status == 404:
                        raise NotFoundError(f"{method} {path}: not found")
                    if response.status >= 500:
                        raise StorageConnectionError(
                            f"{method} {path}: backend error {response.status}"
                        )
                    if response.status >= 400:
                        body = await response.text()
                        raise StorageError(
                            f"{method} {path}: rejected with {response.status}: {body}"
                        )
                    if response.status == 204:
                        return None
                    return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StorageConnectionError(f"{method} {path}: {e}") from e

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """_send() with retries for transient failures of idempotent methods."""
        if method not in IDEMPOTENT_METHODS:
            return await self._send(method, path, payload, params)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(StorageConnectionError),
            reraise=True,
        ):
            with attempt:
                return await self._send(method, path, payload, params)

    async def _delete(self, path: str) -> bool:
        try:
            await self._request("DELETE", path)
        except NotFoundError:
            return False
        return True

    # -- Expenses -------------------------------------------------------------

    async def list_expenses(self) -> list[Expense]:
        rows = await self._request("GET", "/expenses")
        return [Expense.model_validate(row) for row in rows or []]

    async def list_expenses_in_range(self, month: MonthRange) -> list[Expense]:
        """Server-side date filtering, for views that only need one month."""
        rows = await self._request(
            "GET",
            "/expenses/range",
            params={
                "startDate": month.start.isoformat(),
                "endDate": month.end.isoformat(),
            },
        )
        return [Expense.model_validate(row) for row in rows or []]

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        row = await self._request("POST", "/expenses", payload=draft.to_payload())
        return Expense.model_validate(row)

    async def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        row = await self._request(
            "PUT", f"/expenses/{expense_id}", payload=draft.to_payload()
        )
        return Expense.model_validate(row)

    async def delete_expense(self, expense_id: str) -> bool:
        return await self._delete(f"/expenses/{expense_id}")

    # -- Jobs -----------------------------------------------------------------

    async def list_jobs(self) -> list[Job]:
        rows = await self._request("GET", "/jobs")
        return [Job.model_validate(row) for row in rows or []]

    async def create_job(self, draft: JobDraft) -> Job:
        row = await self._request("POST", "/jobs", payload=draft.to_payload())
        return Job.model_validate(row)

    async def update_job(self, job_id: str, draft: JobDraft) -> Job:
        row = await self._request("PUT", f"/jobs/{job_id}", payload=draft.to_payload())
        return Job.model_validate(row)

    async def delete_job(self, job_id: str) -> bool:
        return await self._delete(f"/jobs/{job_id}")

    # -- Work entries ---------------------------------------------------------

    async def list_work_entries(self) -> list[WorkEntry]:
        rows = await self._request("GET", "/work-entries")
        return [WorkEntry.model_validate(row) for row in rows or []]

    async def create_work_entry(self, draft: WorkEntryDraft) -> WorkEntry:
        row = await self._request("POST", "/work-entries", payload=draft.to_payload())
        return WorkEntry.model_validate(row)

    async def delete_work_entry(self, entry_id: str) -> bool:
        return await self._delete(f"/work-entries/{entry_id}")

    # -- Salary payments ------------------------------------------------------

    async def list_salary_payments(self) -> list[SalaryPayment]:
        rows = await self._request("GET", "/salary-payments")
        return [SalaryPayment.model_validate(row) for row in rows or []]

    async def create_salary_payment(self, draft: SalaryPaymentDraft) -> SalaryPayment:
        row = await self._request(
            "POST", "/salary-payments", payload=draft.to_payload()
        )
        return SalaryPayment.model_validate(row)

    async def delete_salary_payment(self, payment_id: str) -> bool:
        return await self._delete(f"/salary-payments/{payment_id}")
