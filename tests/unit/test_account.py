"""Tests for user preferences and account data removal."""

from datetime import timedelta

import pytest

from src.core.domain.base_entity import utc_now
from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.core.infrastructure.redis.keys import RedisKeys
from src.modules.credentials.application.services import CredentialSettingsService
from src.modules.credentials.application.vault import CredentialVault
from src.modules.users.application.commands import (
    ClearAccountDataCommand,
    UpdatePreferencesCommand,
)
from src.modules.users.application.handlers import (
    ClearAccountDataHandler,
    UpdatePreferencesHandler,
)
from src.modules.users.application.query_service import UserQueryService
from src.modules.users.domain.entities import MagicLink, User
from src.modules.users.domain.exceptions import UserNotFoundError
from tests.unit.fakes import (
    FakeVerifier,
    InMemoryCredentialRepository,
    InMemoryMagicLinkRepository,
    InMemoryUserRepository,
)

BASE_URL = "https://t.example"


def _link(email: str, token: str) -> MagicLink:
    return MagicLink(
        email=email, token=token, expires_at=utc_now() + timedelta(minutes=15)
    )


@pytest.fixture
def user() -> User:
    return User(id="u1", email="user@example.com")


@pytest.fixture
def user_repo(user) -> InMemoryUserRepository:
    return InMemoryUserRepository({user.id: user})


@pytest.fixture
def link_repo() -> InMemoryMagicLinkRepository:
    return InMemoryMagicLinkRepository()


@pytest.fixture
def credential_repo() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def cache(kv, clock) -> ScopedCache:
    return ScopedCache(kv, clock=clock)


@pytest.fixture
def settings_service(credential_repo, crypto_box, cache) -> CredentialSettingsService:
    vault = CredentialVault(credential_repo, crypto_box, FakeVerifier({"key-abc": "42"}))
    return CredentialSettingsService(vault, cache)


@pytest.mark.anyio
async def test_preferences_default_to_optional_issue(user_repo) -> None:
    assert await UserQueryService(user_repo).require_issue("u1") is False
    assert await UserQueryService(user_repo).require_issue("missing") is False


@pytest.mark.anyio
async def test_update_preferences_persists(user_repo) -> None:
    handler = UpdatePreferencesHandler(user_repo)

    user = await handler.handle(
        UpdatePreferencesCommand(user_id="u1", require_issue=True)
    )

    assert user.require_issue is True
    assert await UserQueryService(user_repo).require_issue("u1") is True


@pytest.mark.anyio
async def test_update_preferences_for_unknown_user(user_repo) -> None:
    with pytest.raises(UserNotFoundError):
        await UpdatePreferencesHandler(user_repo).handle(
            UpdatePreferencesCommand(user_id="ghost", require_issue=True)
        )


@pytest.mark.anyio
async def test_clear_account_removes_credentials_links_and_cache(
    user_repo, link_repo, credential_repo, settings_service, cache
) -> None:
    await settings_service.save("u1", BASE_URL, "key-abc")
    await cache.wrap("projects", "u1", BASE_URL, 600, _fetch_projects)()
    await link_repo.create(_link("user@example.com", "t1"))
    await link_repo.create(_link("user@example.com", "t2"))
    await link_repo.create(_link("other@example.com", "t3"))
    handler = ClearAccountDataHandler(user_repo, link_repo, settings_service)

    result = await handler.handle(ClearAccountDataCommand(user_id="u1"))

    assert result.credentials_deleted is True
    assert result.magic_links_removed == 2
    assert credential_repo.credentials == {}
    assert [link.token for link in link_repo.links.values()] == ["t3"]
    assert RedisKeys.cache("projects", "u1", BASE_URL) not in cache.kv.data


@pytest.mark.anyio
async def test_clear_account_without_credentials(
    user_repo, link_repo, settings_service
) -> None:
    handler = ClearAccountDataHandler(user_repo, link_repo, settings_service)

    result = await handler.handle(ClearAccountDataCommand(user_id="u1"))

    assert result.credentials_deleted is False
    assert result.magic_links_removed == 0


@pytest.mark.anyio
async def test_clear_account_for_unknown_user(
    user_repo, link_repo, settings_service
) -> None:
    handler = ClearAccountDataHandler(user_repo, link_repo, settings_service)

    with pytest.raises(UserNotFoundError):
        await handler.handle(ClearAccountDataCommand(user_id="ghost"))


async def _fetch_projects() -> list[dict]:
    return [{"id": 1, "name": "Internal"}]
