"""Redmine REST client.

每次请求新建一个 httpx.AsyncClient，携带 X-Redmine-API-Key 与统一超时。
所有失败都转换为带 RedmineErrorKind 的 RedmineApiError，日志里只出现
method、path 和状态码，不会出现 API Key。
"""

from typing import Any

import httpx
from loguru import logger

from src.core.config import settings
from src.core.infrastructure.logging import BusinessEvents
from src.modules.redmine.domain.exceptions import RedmineApiError, RedmineErrorKind
from src.modules.redmine.domain.models import (
    Activity,
    Issue,
    Project,
    RedmineAccount,
    TimeEntry,
    TimeEntryInput,
)


class RedmineClient:
    """Redmine API session bound to one base URL and API key."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float | None = None,
        page_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout = timeout or settings.REDMINE_TIMEOUT_SECONDS
        self.page_limit = page_limit or settings.REDMINE_PAGE_LIMIT
        self._transport = transport

    def __repr__(self) -> str:
        return f"RedmineClient(base_url={self.base_url!r})"

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    json=json,
                    headers={
                        "X-Redmine-API-Key": self._api_key,
                        "User-Agent": settings.REDMINE_USER_AGENT,
                        "Accept": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            logger.warning(f"Redmine {method} {path} timed out: {type(e).__name__}")
            raise self._failed(method, path, RedmineErrorKind.TIMEOUT) from e
        except httpx.HTTPError as e:
            logger.warning(f"Redmine {method} {path} transport error: {e}")
            raise self._failed(method, path, RedmineErrorKind.NETWORK_ERROR) from e

        if not response.is_success:
            kind = RedmineErrorKind.from_status(response.status_code)
            messages = (
                self._validation_messages(response)
                if kind is RedmineErrorKind.VALIDATION
                else None
            )
            raise self._failed(method, path, kind, response.status_code, messages)

        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Redmine {method} {path} returned invalid JSON")
            raise self._failed(
                method, path, RedmineErrorKind.API_ERROR, response.status_code
            ) from e

    @staticmethod
    def _validation_messages(response: httpx.Response) -> list[str]:
        try:
            payload = response.json()
        except ValueError:
            return [response.text] if response.text else []
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if isinstance(errors, list):
            return [str(error) for error in errors]
        return []

    @staticmethod
    def _failed(
        method: str,
        path: str,
        kind: RedmineErrorKind,
        status_code: int | None = None,
        messages: list[str] | None = None,
    ) -> RedmineApiError:
        BusinessEvents.redmine_request_failed(
            method=method, path=path, kind=kind.value, status_code=status_code
        )
        return RedmineApiError(kind, status_code=status_code, messages=messages)

    async def _paginate(
        self, path: str, collection: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """按 offset/limit 翻页直到取完 total_count。"""
        items: list[dict[str, Any]] = []
        offset = 0
        while True:
            page = await self._request(
                "GET",
                path,
                params={**(params or {}), "offset": offset, "limit": self.page_limit},
            )
            batch = (page or {}).get(collection) or []
            items.extend(batch)
            total = (page or {}).get("total_count", len(items))
            offset += len(batch)
            if not batch or offset >= total:
                return items

    async def get_current_account(self) -> RedmineAccount:
        payload = await self._request("GET", "/my/account.json")
        try:
            return RedmineAccount.model_validate(payload["user"])
        except (KeyError, TypeError, ValueError) as e:
            raise self._failed(
                "GET", "/my/account.json", RedmineErrorKind.API_ERROR
            ) from e

    async def list_projects(self) -> list[Project]:
        rows = await self._paginate("/projects.json", "projects")
        return [Project.model_validate(row) for row in rows]

    async def list_activities(self) -> list[Activity]:
        payload = await self._request("GET", "/enumerations/time_entry_activities.json")
        rows = (payload or {}).get("time_entry_activities") or []
        return [Activity.model_validate(row) for row in rows]

    async def list_open_issues(self, project_id: int) -> list[Issue]:
        payload = await self._request(
            "GET",
            "/issues.json",
            params={
                "project_id": project_id,
                "status_id": "open",
                "sort": "updated_on:desc",
                "limit": self.page_limit,
            },
        )
        rows = (payload or {}).get("issues") or []
        return [Issue.model_validate(row) for row in rows]

    async def list_time_entries(
        self, redmine_user_id: str, date_from: str, date_to: str
    ) -> list[TimeEntry]:
        rows = await self._paginate(
            "/time_entries.json",
            "time_entries",
            params={"user_id": redmine_user_id, "from": date_from, "to": date_to},
        )
        return [TimeEntry.model_validate(row) for row in rows]

    async def create_time_entry(self, entry: TimeEntryInput) -> TimeEntry:
        payload = await self._request(
            "POST", "/time_entries.json", json=entry.to_payload()
        )
        try:
            return TimeEntry.model_validate(payload["time_entry"])
        except (KeyError, TypeError, ValueError) as e:
            raise self._failed(
                "POST", "/time_entries.json", RedmineErrorKind.API_ERROR
            ) from e

    async def update_time_entry(self, entry_id: int, entry: TimeEntryInput) -> None:
        await self._request(
            "PUT", f"/time_entries/{entry_id}.json", json=entry.to_payload()
        )

    async def delete_time_entry(self, entry_id: int) -> None:
        await self._request("DELETE", f"/time_entries/{entry_id}.json")


def create_redmine_client(base_url: str, api_key: str) -> RedmineClient:
    return RedmineClient(base_url, api_key)
