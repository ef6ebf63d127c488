"""
Hosted backend client.

This module wraps the backend's REST endpoints (PostgREST under /rest/v1)
in a single async HTTP client. One instance is created per process and
handed to the components that need it.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from starlette.requests import HTTPConnection

from driver_portal.app.core.config import settings
from driver_portal.app.core.exceptions import QueryError

logger = logging.getLogger("driver_portal.backend")

REST_PREFIX = "/rest/v1"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("code") is not None:
        return str(body["code"])
    return None


class BackendClient:
    """Thin async client over the hosted backend's REST interface."""

    def __init__(self, http: httpx.AsyncClient, anon_key: str):
        self.http = http
        self.anon_key = anon_key

    @classmethod
    def from_settings(cls) -> "BackendClient":
        http = httpx.AsyncClient(base_url=settings.supabase_url)
        return cls(http, settings.supabase_anon_key)

    async def aclose(self) -> None:
        await self.http.aclose()

    def _headers(self, access_token: str, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Backend transport failure", extra={"method": method, "path": path, "error": str(e)})
            raise QueryError(str(e) or "Network error while contacting backend")

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Backend request rejected",
                extra={"method": method, "path": path, "status_code": response.status_code, "backend_message": message}
            )
            raise QueryError(
                message,
                details={"status_code": response.status_code, "code": _error_code(response)}
            )
        return response

    async def select(
        self,
        table: str,
        access_token: str,
        params: Dict[str, str]
    ) -> Any:
        """
        Read rows from a table or view.

        Args:
            table: Table or view name
            access_token: Driver's access token, forwarded for row-level security
            params: PostgREST query parameters (select, filters, order)

        Returns:
            List of row dicts
        """
        response = await self._send(
            "GET",
            f"{REST_PREFIX}/{table}",
            params=params,
            headers=self._headers(access_token),
        )
        return response.json()

    async def update(
        self,
        table: str,
        access_token: str,
        filters: Dict[str, str],
        values: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """Apply a partial update and return the rows the backend changed."""
        response = await self._send(
            "PATCH",
            f"{REST_PREFIX}/{table}",
            params=filters,
            json=values,
            headers=self._headers(access_token, prefer="return=representation"),
        )
        return response.json() if response.content else []

    async def insert(self, table: str, access_token: str, values: Dict[str, Any]) -> None:
        await self._send(
            "POST",
            f"{REST_PREFIX}/{table}",
            json=values,
            headers=self._headers(access_token, prefer="return=minimal"),
        )


def get_backend(conn: HTTPConnection) -> BackendClient:
    """
    FastAPI dependency for the shared backend client.

    The client is created once in the application lifespan.
    """
    return conn.app.state.backend
