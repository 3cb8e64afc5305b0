# taskboard/client/api.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from taskboard.client.config import client_settings
from taskboard.client.models import TaskRecord

logger = logging.getLogger(__name__)


class TaskApiError(Exception):
    """A failed request, surfaced to the user as-is."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}


class TaskApiTimeout(TaskApiError):
    pass


_BAD_RESPONSE = "The server returned an unexpected response. Please try again."


def _record(raw: Any) -> TaskRecord:
    try:
        return TaskRecord.model_validate(raw)
    except PydanticValidationError as e:
        logger.warning("task api malformed task | %s", e.errors()[:1])
        raise TaskApiError(_BAD_RESPONSE) from e


def _encode(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in fields.items()}


class TaskApiClient:
    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url or client_settings.api_base_url,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            timeout=timeout if timeout is not None else client_settings.api_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TaskApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            r = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("task api timeout | %s %s", method, url)
            raise TaskApiTimeout("The server took too long to respond. Please try again.") from e
        except httpx.HTTPError as e:
            logger.warning("task api transport error | %s %s | %s", method, url, e)
            raise TaskApiError("Could not reach the server. Please try again.") from e

        if r.is_success:
            if r.status_code == 204 or not r.content:
                return {}
            try:
                data = r.json()
            except ValueError as e:
                logger.warning("task api invalid json | %s %s | status=%s", method, url, r.status_code)
                raise TaskApiError(_BAD_RESPONSE, status_code=r.status_code) from e
            if not isinstance(data, dict):
                raise TaskApiError(_BAD_RESPONSE, status_code=r.status_code)
            return data

        try:
            body = r.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        raise TaskApiError(
            body.get("message") or body.get("detail") or f"Request failed ({r.status_code})",
            status_code=r.status_code,
            errors=body.get("errors"),
        )

    async def list_tasks(self, status: Optional[str] = None) -> List[TaskRecord]:
        params = {"status": status} if status else None
        data = await self._request("GET", "/tasks", params=params)
        tasks = data.get("tasks", [])
        if not isinstance(tasks, list):
            raise TaskApiError(_BAD_RESPONSE)
        return [_record(t) for t in tasks]

    async def get_task(self, task_id: str) -> TaskRecord:
        data = await self._request("GET", f"/tasks/{task_id}")
        return _record(data.get("task"))

    async def create_task(self, fields: Mapping[str, Any]) -> TaskRecord:
        data = await self._request("POST", "/tasks", json=_encode(fields))
        return _record(data.get("task"))

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> TaskRecord:
        data = await self._request("PUT", f"/tasks/{task_id}", json=_encode(fields))
        return _record(data.get("task"))

    async def update_status(self, task_id: str, status: str) -> TaskRecord:
        data = await self._request("PATCH", f"/tasks/{task_id}/status", json={"status": status})
        return _record(data.get("task"))

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")
