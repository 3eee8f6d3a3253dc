"""Tests for credential-gated Redmine access and the services built on it."""

import base64
from datetime import date

import pytest

from src.core.domain.exceptions import AuthenticationRequiredError
from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.modules.credentials.application.vault import CredentialVault
from src.modules.redmine.application.gated_fetcher import (
    CredentialGatedFetcher,
    GatedStatus,
)
from src.modules.redmine.application.services import (
    RedmineQueryService,
    TimeEntryService,
)
from src.modules.redmine.domain.exceptions import (
    MissingIssueError,
    RedmineApiError,
    RedmineErrorKind,
)
from src.modules.redmine.domain.models import (
    NamedRef,
    Project,
    TimeEntry,
    TimeEntryInput,
)
from tests.unit.fakes import FakeVerifier, InMemoryCredentialRepository

BASE_URL = "https://t.example"


class FakeGateway:
    """Records calls made against one (base_url, api_key) pair."""

    def __init__(self, base_url: str, api_key: str, log: list) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.log = log

    async def list_projects(self) -> list[Project]:
        self.log.append(("list_projects", self.api_key))
        return [Project(id=1, name=f"Project for {self.api_key}")]

    async def list_time_entries(
        self, redmine_user_id: str, date_from: str, date_to: str
    ) -> list[TimeEntry]:
        self.log.append(("list_time_entries", redmine_user_id, date_from, date_to))
        return [
            TimeEntry(
                id=10,
                project=NamedRef(id=1, name="P"),
                activity=NamedRef(id=9, name="Dev"),
                spent_on=date(2026, 10, 19),
                hours=2.5,
            )
        ]

    async def create_time_entry(self, entry: TimeEntryInput) -> TimeEntry:
        self.log.append(("create_time_entry", entry.spent_on))
        if entry.hours == 0:
            raise RedmineApiError(
                RedmineErrorKind.VALIDATION,
                status_code=422,
                messages=["Hours is invalid"],
            )
        return TimeEntry(
            id=100 + len(self.log),
            project=NamedRef(id=entry.project_id),
            activity=NamedRef(id=entry.activity_id),
            spent_on=date.fromisoformat(entry.spent_on),
            hours=entry.hours,
        )

    async def delete_time_entry(self, entry_id: int) -> None:
        self.log.append(("delete_time_entry", entry_id))


@pytest.fixture
def calls() -> list:
    return []


@pytest.fixture
def repository() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def vault(repository, crypto_box) -> CredentialVault:
    return CredentialVault(
        repository, crypto_box, FakeVerifier({"key-abc": "42", "key-xyz": "77"})
    )


@pytest.fixture
def cache(kv, clock) -> ScopedCache:
    return ScopedCache(kv, clock=clock)


@pytest.fixture
def fetcher(vault, cache, calls) -> CredentialGatedFetcher:
    def factory(base_url: str, api_key: str) -> FakeGateway:
        return FakeGateway(base_url, api_key, calls)

    return CredentialGatedFetcher(vault, cache, factory)


def _corrupt(value: str) -> str:
    raw = bytearray(base64.b64decode(value))
    raw[0] ^= 0xFF
    return base64.b64encode(bytes(raw)).decode("ascii")


@pytest.mark.anyio
async def test_anonymous_call_is_rejected(fetcher, calls) -> None:
    service = RedmineQueryService(fetcher)

    with pytest.raises(AuthenticationRequiredError):
        await service.list_projects(None)
    assert calls == []


@pytest.mark.anyio
async def test_missing_credential_is_not_configured(fetcher, calls) -> None:
    result = await RedmineQueryService(fetcher).list_projects("u1")

    assert result.status is GatedStatus.NOT_CONFIGURED
    assert result.data is None
    assert calls == []


@pytest.mark.anyio
async def test_projects_are_cached_per_user(fetcher, vault, calls) -> None:
    await vault.save("u1", BASE_URL, "key-abc")
    await vault.save("u2", BASE_URL, "key-xyz")
    service = RedmineQueryService(fetcher)

    first = await service.list_projects("u1")
    again = await service.list_projects("u1")
    other = await service.list_projects("u2")

    assert first.status is GatedStatus.OK
    assert first.data == [Project(id=1, name="Project for key-abc")]
    assert again.data == first.data
    assert other.data == [Project(id=1, name="Project for key-xyz")]
    assert calls == [("list_projects", "key-abc"), ("list_projects", "key-xyz")]


@pytest.mark.anyio
async def test_corrupted_credential_is_reset(fetcher, vault, repository, calls) -> None:
    saved = await vault.save("u1", BASE_URL, "key-abc")
    repository.credentials["u1"] = saved.model_copy(
        update={"ciphertext": _corrupt(saved.ciphertext)}
    )

    result = await RedmineQueryService(fetcher).list_projects("u1")

    assert result.status is GatedStatus.CREDENTIALS_RESET
    assert await vault.fetch("u1") is None
    assert calls == []

    follow_up = await RedmineQueryService(fetcher).list_projects("u1")
    assert follow_up.status is GatedStatus.NOT_CONFIGURED


@pytest.mark.anyio
async def test_time_entries_use_stored_redmine_user_id(fetcher, vault, calls) -> None:
    await vault.save("u1", BASE_URL, "key-abc")

    result = await RedmineQueryService(fetcher).list_time_entries(
        "u1", "2026-10-19", "2026-10-25"
    )

    assert result.data[0].hours == 2.5
    assert calls == [("list_time_entries", "42", "2026-10-19", "2026-10-25")]


@pytest.mark.anyio
async def test_bulk_create_collects_failures_and_invalidates(
    fetcher, vault, cache, calls
) -> None:
    await vault.save("u1", BASE_URL, "key-abc")
    queries = RedmineQueryService(fetcher)
    await queries.list_time_entries("u1", "2026-10-19", "2026-10-25")

    entries = [
        TimeEntryInput(project_id=1, activity_id=9, spent_on="2026-10-19", hours=8),
        TimeEntryInput(project_id=1, activity_id=9, spent_on="2026-10-20", hours=0),
    ]
    result = await TimeEntryService(fetcher, cache).create_bulk("u1", entries)

    assert result.status is GatedStatus.OK
    assert len(result.data.created) == 1
    assert [failure.index for failure in result.data.failed] == [1]
    assert result.data.failed[0].error.kind is RedmineErrorKind.VALIDATION

    await queries.list_time_entries("u1", "2026-10-19", "2026-10-25")
    listings = [call for call in calls if call[0] == "list_time_entries"]
    assert len(listings) == 2


@pytest.mark.anyio
async def test_delete_time_entry_without_credential(fetcher, cache, calls) -> None:
    result = await TimeEntryService(fetcher, cache).delete("u1", 5)

    assert result.status is GatedStatus.NOT_CONFIGURED
    assert calls == []


class StaticPolicy:
    def __init__(self, require_issue: bool) -> None:
        self.value = require_issue

    async def require_issue(self, user_id: str) -> bool:
        return self.value


@pytest.mark.anyio
async def test_bulk_create_rejects_entries_without_issue_when_required(
    fetcher, vault, cache, calls
) -> None:
    await vault.save("u1", BASE_URL, "key-abc")
    service = TimeEntryService(fetcher, cache, StaticPolicy(require_issue=True))
    entries = [
        TimeEntryInput(
            project_id=1, activity_id=9, issue_id=7, spent_on="2026-10-19", hours=4
        ),
        TimeEntryInput(project_id=1, activity_id=9, spent_on="2026-10-20", hours=4),
    ]

    with pytest.raises(MissingIssueError) as exc_info:
        await service.create_bulk("u1", entries)

    assert exc_info.value.indexes == [1]
    assert exc_info.value.error_code == "MISSING_ISSUE"
    assert exc_info.value.details["type"] == "missing_issue"
    assert calls == []


@pytest.mark.anyio
async def test_bulk_create_with_issues_passes_required_preference(
    fetcher, vault, cache, calls
) -> None:
    await vault.save("u1", BASE_URL, "key-abc")
    service = TimeEntryService(fetcher, cache, StaticPolicy(require_issue=True))
    entries = [
        TimeEntryInput(
            project_id=1, activity_id=9, issue_id=7, spent_on="2026-10-19", hours=4
        ),
    ]

    result = await service.create_bulk("u1", entries)

    assert result.status is GatedStatus.OK
    assert len(result.data.created) == 1


@pytest.mark.anyio
async def test_entries_without_issue_allowed_when_preference_off(
    fetcher, vault, cache
) -> None:
    await vault.save("u1", BASE_URL, "key-abc")
    service = TimeEntryService(fetcher, cache, StaticPolicy(require_issue=False))
    entries = [
        TimeEntryInput(project_id=1, activity_id=9, spent_on="2026-10-20", hours=4),
    ]

    result = await service.create_bulk("u1", entries)

    assert len(result.data.created) == 1
