"""Redmine query and time entry services."""

from dataclasses import dataclass, field

from pydantic import BaseModel, TypeAdapter

from src.core.config import settings
from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.core.infrastructure.logging import BusinessEvents
from src.modules.redmine.application.gated_fetcher import (
    CredentialGatedFetcher,
    GatedResult,
)
from src.modules.redmine.domain.exceptions import MissingIssueError, RedmineApiError
from src.modules.redmine.domain.models import (
    Activity,
    Issue,
    Project,
    RedmineAccount,
    TimeEntry,
    TimeEntryInput,
)
from src.modules.redmine.domain.ports import RedmineGateway, TimeEntryPolicy

_projects = TypeAdapter(list[Project])
_activities = TypeAdapter(list[Activity])
_issues = TypeAdapter(list[Issue])
_time_entries = TypeAdapter(list[TimeEntry])


def time_entries_tag(user_id: str) -> str:
    """所有时间范围的工时查询共用的 tag，写入后整体失效。"""
    return f"time_entries:{user_id}"


def _dump(models: list[BaseModel]) -> list[dict]:
    return [model.model_dump(mode="json") for model in models]


def _revalidate[T](result: GatedResult, adapter: TypeAdapter[T]) -> GatedResult[T]:
    # 缓存里存的是 JSON，取出后重新校验为领域模型
    if not result.is_ok:
        return result
    return GatedResult.ok(adapter.validate_python(result.data))


class RedmineQueryService:
    """Cached read access to Redmine data."""

    def __init__(self, fetcher: CredentialGatedFetcher):
        self.fetcher = fetcher

    async def list_projects(self, user_id: str | None) -> GatedResult[list[Project]]:
        async def call(client: RedmineGateway, _: str) -> list[dict]:
            return _dump(await client.list_projects())

        result = await self.fetcher.fetch_cached(
            user_id, "projects", settings.CACHE_TTL_PROJECTS, call
        )
        return _revalidate(result, _projects)

    async def list_activities(
        self, user_id: str | None
    ) -> GatedResult[list[Activity]]:
        async def call(client: RedmineGateway, _: str) -> list[dict]:
            return _dump(await client.list_activities())

        result = await self.fetcher.fetch_cached(
            user_id, "activities", settings.CACHE_TTL_ACTIVITIES, call
        )
        return _revalidate(result, _activities)

    async def list_open_issues(
        self, user_id: str | None, project_id: int
    ) -> GatedResult[list[Issue]]:
        async def call(client: RedmineGateway, _: str) -> list[dict]:
            return _dump(await client.list_open_issues(project_id))

        result = await self.fetcher.fetch_cached(
            user_id, f"issues:{project_id}", settings.CACHE_TTL_ISSUES, call
        )
        return _revalidate(result, _issues)

    async def list_time_entries(
        self, user_id: str | None, date_from: str, date_to: str
    ) -> GatedResult[list[TimeEntry]]:
        """当前用户自己在 [date_from, date_to] 内的工时。"""

        async def call(client: RedmineGateway, redmine_user_id: str) -> list[dict]:
            return _dump(
                await client.list_time_entries(redmine_user_id, date_from, date_to)
            )

        result = await self.fetcher.fetch_cached(
            user_id,
            f"time_entries:{date_from}:{date_to}",
            settings.CACHE_TTL_TIME_ENTRIES,
            call,
            tags=[time_entries_tag(user_id)] if user_id else (),
        )
        return _revalidate(result, _time_entries)

    async def test_connection(
        self, user_id: str | None
    ) -> GatedResult[RedmineAccount]:
        """用已保存的凭据重新请求 /my/account.json，不走缓存。"""

        async def call(client: RedmineGateway, _: str) -> RedmineAccount:
            return await client.get_current_account()

        return await self.fetcher.fetch_uncached(user_id, call)


@dataclass
class BulkCreateFailure:
    index: int
    entry: TimeEntryInput
    error: RedmineApiError


@dataclass
class BulkCreateResult:
    created: list[TimeEntry] = field(default_factory=list)
    failed: list[BulkCreateFailure] = field(default_factory=list)


class TimeEntryService:
    """Writes time entries to Redmine and invalidates the cached listings."""

    def __init__(
        self,
        fetcher: CredentialGatedFetcher,
        cache: ScopedCache,
        policy: TimeEntryPolicy | None = None,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.policy = policy

    async def create_bulk(
        self, user_id: str | None, entries: list[TimeEntryInput]
    ) -> GatedResult[BulkCreateResult]:
        """逐条创建，单条失败不影响其余条目。

        用户开启 require_issue 时，任一条目缺少 issue_id 则整批拒绝，不发出请求。
        只要有一条写入成功，就失效该用户所有时间范围的工时缓存。

        Raises:
            MissingIssueError: 偏好要求 Issue 而部分条目未填写
        """
        if user_id and self.policy and await self.policy.require_issue(user_id):
            missing = [i for i, entry in enumerate(entries) if entry.issue_id is None]
            if missing:
                raise MissingIssueError(missing)

        async def call(client: RedmineGateway, _: str) -> BulkCreateResult:
            outcome = BulkCreateResult()
            for index, entry in enumerate(entries):
                try:
                    outcome.created.append(await client.create_time_entry(entry))
                except RedmineApiError as e:
                    outcome.failed.append(BulkCreateFailure(index, entry, e))
            return outcome

        result = await self.fetcher.fetch_uncached(user_id, call)
        if not result.is_ok:
            return result

        outcome = result.data
        if outcome.created:
            await self.cache.invalidate_tag(time_entries_tag(user_id))
        BusinessEvents.time_entries_created(
            user_id=user_id,
            created=len(outcome.created),
            failed=len(outcome.failed),
            total_hours=sum(entry.hours for entry in outcome.created),
        )
        return result

    async def update(
        self, user_id: str | None, entry_id: int, entry: TimeEntryInput
    ) -> GatedResult[None]:
        async def call(client: RedmineGateway, _: str) -> None:
            await client.update_time_entry(entry_id, entry)

        result = await self.fetcher.fetch_uncached(user_id, call)
        if result.is_ok:
            await self.cache.invalidate_tag(time_entries_tag(user_id))
        return result

    async def delete(self, user_id: str | None, entry_id: int) -> GatedResult[None]:
        async def call(client: RedmineGateway, _: str) -> None:
            await client.delete_time_entry(entry_id)

        result = await self.fetcher.fetch_uncached(user_id, call)
        if result.is_ok:
            await self.cache.invalidate_tag(time_entries_tag(user_id))
        return result
