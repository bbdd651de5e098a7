import logging
import uuid
from datetime import date
from typing import Any, Optional

import httpx

from rentdesk.client.cache import QueryCache
from rentdesk.config import settings
from rentdesk.reports.schemas import ReportConfiguration, SavedReportResponse

logger = logging.getLogger(__name__)

CATALOG_KEY = ("reports", "catalog")
SAVED_REPORTS_KEY = ("reports", "saved")


def saved_report_key(report_id: Any) -> tuple:
    return ("reports", "saved", str(report_id))


class ApiError(Exception):
    """A request that did not complete with a 2xx response.

    ``status_code`` is 0 when the server was never reached.
    """

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class RentDeskClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        user: Optional[str] = None,
        cache: Optional[QueryCache] = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            transport=transport,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            headers={"X-User": user} if user else None,
        )
        self.cache = cache if cache is not None else QueryCache()

    async def __aenter__(self) -> "RentDeskClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, str(exc)) from exc

        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
            detail = body.get("detail", body) if isinstance(body, dict) else body
            logger.info("%s %s returned %d", method, path, resp.status_code)
            raise ApiError(resp.status_code, detail)
        return resp

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------

    async def check_availability(
        self,
        vehicle_id: uuid.UUID,
        start_date: date,
        end_date: Optional[date] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> list[dict]:
        params = {"vehicle_id": str(vehicle_id), "start_date": start_date.isoformat()}
        if end_date is not None:
            params["end_date"] = end_date.isoformat()
        if exclude_id is not None:
            params["exclude_id"] = str(exclude_id)
        resp = await self._request("GET", "/api/reservations/check-availability", params=params)
        return resp.json()

    async def list_reservations(self, **params) -> dict:
        resp = await self._request("GET", "/api/reservations", params={k: str(v) for k, v in params.items()})
        return resp.json()

    async def create_reservation(self, payload: dict) -> dict:
        resp = await self._request("POST", "/api/reservations", json=payload)
        return resp.json()

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def get_catalog(self) -> list[dict]:
        async def load():
            return (await self._request("GET", "/api/reports/catalog")).json()

        return await self.cache.fetch(CATALOG_KEY, load)

    async def execute_report(self, config: ReportConfiguration) -> list[dict]:
        resp = await self._request("POST", "/api/reports/execute", json=config.to_wire())
        return resp.json()

    async def list_saved_reports(self) -> list[SavedReportResponse]:
        async def load():
            resp = await self._request("GET", "/api/reports/saved")
            return [SavedReportResponse.model_validate(item) for item in resp.json()]

        return await self.cache.fetch(SAVED_REPORTS_KEY, load)

    async def get_saved_report(self, report_id: uuid.UUID) -> SavedReportResponse:
        key = saved_report_key(report_id)

        async def load():
            resp = await self._request("GET", f"/api/reports/saved/{report_id}")
            return SavedReportResponse.model_validate(resp.json())

        self.cache.register_dependents(SAVED_REPORTS_KEY, key)
        return await self.cache.fetch(key, load)

    async def save_report(self, config: ReportConfiguration) -> SavedReportResponse:
        resp = await self._request("POST", "/api/reports/saved", json=config.to_wire())
        self.cache.invalidate(SAVED_REPORTS_KEY)
        return SavedReportResponse.model_validate(resp.json())

    async def delete_saved_report(self, report_id: uuid.UUID) -> None:
        await self._request("DELETE", f"/api/reports/saved/{report_id}")
        self.cache.invalidate(SAVED_REPORTS_KEY)
        self.cache.invalidate(saved_report_key(report_id))
