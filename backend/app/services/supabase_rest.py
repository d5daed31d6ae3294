from __future__ import annotations

import logging
from typing import Any

import requests


logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"Supabase request failed ({status}): {message}" if status else message)


class SupabaseRestClient:
    # Row-level security is enforced remotely; callers choose which bearer to present.
    def __init__(self, *, url: str, api_key: str, timeout_s: float = 8, session: requests.Session | None = None) -> None:
        self._url = (url or "").strip().rstrip("/")
        self._api_key = (api_key or "").strip()
        self._timeout_s = timeout_s
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self._url and self._api_key)

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
        bearer: str | None = None,
    ) -> list[dict[str, Any]]:
        if not self.configured:
            raise SupabaseError(None, "Supabase REST client is not configured")

        params: dict[str, str] = {"select": columns}
        for column, expr in (filters or {}).items():
            params[column] = expr
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(int(limit))

        try:
            resp = self._session.get(
                f"{self._url}/rest/v1/{table}",
                params=params,
                headers={
                    "apikey": self._api_key,
                    "authorization": f"Bearer {bearer or self._api_key}",
                    "accept": "application/json",
                },
                timeout=self._timeout_s,
            )
        except requests.RequestException as exc:
            logger.warning("supabase.select.transport_error table=%s error=%s", table, exc)
            raise SupabaseError(None, str(exc)) from exc

        status = int(resp.status_code)
        if status != 200:
            message = _error_message(resp)
            logger.warning("supabase.select.http_error table=%s status=%s", table, status)
            raise SupabaseError(status, message)

        rows = resp.json()
        if not isinstance(rows, list):
            raise SupabaseError(status, "Unexpected response shape")
        return [r for r in rows if isinstance(r, dict)]

    def select_one(self, table: str, **kwargs: Any) -> dict[str, Any] | None:
        rows = self.select(table, limit=1, **kwargs)
        return rows[0] if rows else None


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip() or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("hint") or body)
    return str(body)
