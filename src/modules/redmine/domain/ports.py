"""Redmine gateway ports."""

from typing import Protocol

from src.modules.redmine.domain.models import (
    Activity,
    Issue,
    Project,
    RedmineAccount,
    TimeEntry,
    TimeEntryInput,
)


class RedmineGateway(Protocol):
    """A Redmine API session bound to one base URL and API key."""

    async def get_current_account(self) -> RedmineAccount: ...

    async def list_projects(self) -> list[Project]: ...

    async def list_activities(self) -> list[Activity]: ...

    async def list_open_issues(self, project_id: int) -> list[Issue]: ...

    async def list_time_entries(
        self, redmine_user_id: str, date_from: str, date_to: str
    ) -> list[TimeEntry]: ...

    async def create_time_entry(self, entry: TimeEntryInput) -> TimeEntry: ...

    async def update_time_entry(self, entry_id: int, entry: TimeEntryInput) -> None: ...

    async def delete_time_entry(self, entry_id: int) -> None: ...


class RedmineGatewayFactory(Protocol):
    def __call__(self, base_url: str, api_key: str) -> RedmineGateway: ...


class TimeEntryPolicy(Protocol):
    """Per-user rules applied before time entries are written."""

    async def require_issue(self, user_id: str) -> bool: ...
