"""API tests through the FastAPI app with in-memory infrastructure."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from src.core.application import dependencies as core_app_deps
from src.core.infrastructure.security.jwt import create_access_token
from src.modules.credentials.application import dependencies as credentials_app_deps
from src.modules.redmine.application import dependencies as redmine_app_deps
from src.modules.redmine.domain.models import Activity, Project, TimeEntry
from src.modules.users.application import dependencies as users_app_deps
from src.modules.users.domain.entities import User
from tests.unit.fakes import (
    FakeVerifier,
    InMemoryCredentialRepository,
    InMemoryMagicLinkRepository,
    InMemoryUserRepository,
)


class StubGateway:
    def __init__(self, base_url: str, api_key: str) -> None:
        self.api_key = api_key

    async def list_projects(self) -> list[Project]:
        return [Project(id=1, name="Internal", identifier="internal")]

    async def list_activities(self) -> list[Activity]:
        return [Activity(id=9, name="Development", is_default=True)]

    async def create_time_entry(self, entry) -> TimeEntry:
        return TimeEntry(
            id=500,
            project={"id": entry.project_id},
            activity={"id": entry.activity_id},
            spent_on=entry.spent_on,
            hours=entry.hours,
        )


@pytest.fixture
def repository() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository({"u1": User(id="u1", email="user@example.com")})


@pytest.fixture
def link_repo() -> InMemoryMagicLinkRepository:
    return InMemoryMagicLinkRepository()


@pytest.fixture
async def async_client(
    kv, crypto_box, repository, user_repo, link_repo
) -> AsyncGenerator[AsyncClient, None]:
    """异步 HTTP 客户端，基础设施全部替换为内存实现。"""
    from main import app

    saved_overrides = dict(app.dependency_overrides)
    app.dependency_overrides[core_app_deps.get_kv_client] = lambda: kv
    app.dependency_overrides[core_app_deps.get_secret_cipher] = lambda: crypto_box
    app.dependency_overrides[credentials_app_deps.get_credential_repository] = (
        lambda: repository
    )
    app.dependency_overrides[credentials_app_deps.get_credential_verifier] = (
        lambda: FakeVerifier({"key-abc": "42"})
    )
    app.dependency_overrides[redmine_app_deps.get_redmine_client_factory] = (
        lambda: StubGateway
    )
    app.dependency_overrides[users_app_deps.get_user_repository] = lambda: user_repo
    app.dependency_overrides[users_app_deps.get_magic_link_repository] = (
        lambda: link_repo
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
    app.dependency_overrides.update(saved_overrides)


def _auth(user_id: str = "u1") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.mark.anyio
async def test_anonymous_redmine_call_is_401(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/redmine/projects")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.anyio
async def test_not_configured_is_409(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/redmine/projects", headers=_auth())

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "REDMINE_NOT_CONFIGURED"


@pytest.mark.anyio
async def test_save_credentials_then_list_projects(async_client: AsyncClient) -> None:
    saved = await async_client.put(
        "/api/v1/redmine/credentials",
        json={"base_url": "https://t.example/", "api_key": "key-abc"},
        headers=_auth(),
    )
    assert saved.status_code == 200
    assert saved.json()["data"]["base_url"] == "https://t.example"
    assert "key-abc" not in saved.text

    status_response = await async_client.get(
        "/api/v1/redmine/credentials", headers=_auth()
    )
    assert status_response.json()["data"]["configured"] is True
    assert status_response.json()["data"]["redmine_user_id"] == "42"
    assert "key-abc" not in status_response.text

    projects = await async_client.get("/api/v1/redmine/projects", headers=_auth())
    assert projects.status_code == 200
    assert projects.json()["data"][0]["name"] == "Internal"


@pytest.mark.anyio
async def test_rejected_credentials_return_422(
    async_client: AsyncClient, repository
) -> None:
    response = await async_client.put(
        "/api/v1/redmine/credentials",
        json={"base_url": "https://t.example", "api_key": "wrong"},
        headers=_auth(),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "CREDENTIAL_VERIFICATION_FAILED"
    assert repository.credentials == {}


@pytest.mark.anyio
async def test_credentials_endpoints_require_login(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/redmine/credentials")
    assert response.status_code == 401


@pytest.mark.anyio
async def test_bulk_create_requires_entries(async_client: AsyncClient) -> None:
    response = await async_client.post(
        "/api/v1/redmine/time-entries/bulk", json={"entries": []}, headers=_auth()
    )
    assert response.status_code == 422


@pytest.mark.anyio
async def test_time_entries_reject_inverted_range(async_client: AsyncClient) -> None:
    response = await async_client.get(
        "/api/v1/redmine/time-entries",
        params={"from": "2026-10-25", "to": "2026-10-19"},
        headers=_auth(),
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.anyio
async def test_preferences_round_trip(async_client: AsyncClient) -> None:
    initial = await async_client.get("/api/v1/users/me/preferences", headers=_auth())
    assert initial.status_code == 200
    assert initial.json()["data"] == {"require_issue": False}

    updated = await async_client.put(
        "/api/v1/users/me/preferences",
        json={"require_issue": True},
        headers=_auth(),
    )
    assert updated.status_code == 200
    assert updated.json()["data"] == {"require_issue": True}

    again = await async_client.get("/api/v1/users/me/preferences", headers=_auth())
    assert again.json()["data"]["require_issue"] is True


@pytest.mark.anyio
async def test_required_issue_rejects_bulk_entries(
    async_client: AsyncClient, user_repo
) -> None:
    await async_client.put(
        "/api/v1/redmine/credentials",
        json={"base_url": "https://t.example", "api_key": "key-abc"},
        headers=_auth(),
    )
    user_repo.users["u1"].update_preferences(require_issue=True)
    entry = {"project_id": 1, "activity_id": 9, "spent_on": "2026-10-19", "hours": 2}

    rejected = await async_client.post(
        "/api/v1/redmine/time-entries/bulk",
        json={"entries": [entry]},
        headers=_auth(),
    )
    assert rejected.status_code == 422
    assert rejected.json()["error"]["code"] == "MISSING_ISSUE"
    assert rejected.json()["error"]["details"]["indexes"] == [0]

    accepted = await async_client.post(
        "/api/v1/redmine/time-entries/bulk",
        json={"entries": [{**entry, "issue_id": 7}]},
        headers=_auth(),
    )
    assert accepted.status_code == 200
    assert len(accepted.json()["data"]["created"]) == 1


@pytest.mark.anyio
async def test_clear_account_data_logs_out(
    async_client: AsyncClient, repository, link_repo
) -> None:
    await async_client.put(
        "/api/v1/redmine/credentials",
        json={"base_url": "https://t.example", "api_key": "key-abc"},
        headers=_auth(),
    )

    response = await async_client.delete("/api/v1/users/me/data", headers=_auth())

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["credentials_deleted"] is True
    assert body["logged_out"] is True
    assert repository.credentials == {}

    projects = await async_client.get("/api/v1/redmine/projects", headers=_auth())
    assert projects.json()["error"]["code"] == "REDMINE_NOT_CONFIGURED"


@pytest.mark.anyio
async def test_clear_account_data_requires_login(async_client: AsyncClient) -> None:
    response = await async_client.delete("/api/v1/users/me/data")
    assert response.status_code == 401
