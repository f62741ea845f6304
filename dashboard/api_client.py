from __future__ import annotations

from dataclasses import dataclass

import requests

from dashboard.config import API_URL

STOCKS_PATH = "/api/stocks"


@dataclass(frozen=True)
class ApiSession:
    """Qui appelle, et où. Passé explicitement à chaque appel API."""

    token: str
    base_url: str = API_URL

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{STOCKS_PATH}{path}"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _check(response):
    if response.status_code >= 400:
        try:
            message = response.json().get("detail", response.text)
        except ValueError:
            message = response.text
        raise ApiError(response.status_code, str(message))
    return response.json()


class StockApiClient:
    """
    Client minimal des endpoints de stock.

    `http` : tout objet avec get/post/put façon requests (requests.Session
    par défaut).
    """

    def __init__(self, http=None):
        self.http = http or requests.Session()

    def list_stocks(self, session: ApiSession) -> list[dict]:
        return _check(self.http.get(session.url("/"), headers=session.headers))

    def filter_stocks(
        self,
        session: ApiSession,
        *,
        year: int,
        week: int | None = None,
        start_week: int | None = None,
        end_week: int | None = None,
    ) -> list[dict]:
        params = {"year": year}
        if week is not None:
            params["week"] = week
        if start_week is not None:
            params["startWeek"] = start_week
        if end_week is not None:
            params["endWeek"] = end_week
        return _check(self.http.get(session.url("/filter"), params=params, headers=session.headers))

    def add_stock(self, session: ApiSession, entry: dict) -> dict:
        return _check(self.http.post(session.url("/add"), json=entry, headers=session.headers))

    def update_sales(self, session: ApiSession, stock_id: str, body: dict) -> dict:
        return _check(
            self.http.put(session.url(f"/update-sales/{stock_id}"), json=body, headers=session.headers)
        )
