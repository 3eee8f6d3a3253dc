"""Application-level security dependencies.

Defines auth dependencies without importing infrastructure.
The actual implementations are injected via FastAPI dependency_overrides in main.py.
"""

from typing import NoReturn


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_current_user_id() -> str:
    """Get the current authenticated user ID (401 when absent)."""
    _missing_dependency("get_current_user_id")


async def get_optional_user_id() -> str | None:
    """Get the current user ID, or None for anonymous requests.

    Redmine 代理接口用它把"未登录"交给 CredentialGatedFetcher 统一拒绝。
    """
    _missing_dependency("get_optional_user_id")
