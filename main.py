"""timefill Backend - Redmine 批量工时录入服务入口。"""

from collections.abc import Callable
from typing import Any, cast

import sentry_sdk
from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from src.core.application import dependencies as core_app_deps
from src.core.application import security as app_security
from src.core.config import settings
from src.core.domain.exceptions import DomainException
from src.core.infrastructure.database.session import check_db_health, init_db
from src.core.infrastructure.logging import setup_logging
from src.core.infrastructure.redis import get_redis_client, redis_client
from src.core.infrastructure.security import jwt as infra_jwt
from src.core.infrastructure.security.crypto import get_crypto_box
from src.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from src.core.interfaces.http.routers import api_router
from src.modules.credentials.application import dependencies as credentials_app_deps
from src.modules.credentials.infrastructure import (
    dependencies as credentials_infra_deps,
)
from src.modules.redmine.application import dependencies as redmine_app_deps
from src.modules.redmine.infrastructure import dependencies as redmine_infra_deps
from src.modules.users.application import dependencies as users_app_deps
from src.modules.users.infrastructure import dependencies as users_infra_deps


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


openapi_security_schemes = {
    "BearerAuth": {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "JWT Bearer token (issued by the magic link login)",
    },
}


def custom_openapi():
    """Customize OpenAPI schema to include the bearer auth scheme."""
    if app.openapi_schema:
        return app.openapi_schema
    from fastapi.openapi.utils import get_openapi

    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    schema["components"] = schema.get("components", {})
    schema["components"]["securitySchemes"] = openapi_security_schemes
    app.openapi_schema = schema
    return schema


# Initialize Sentry if configured
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        environment=settings.ENVIRONMENT,
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info("Starting timefill backend...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    # 密钥缺失或长度不对时直接拒绝启动
    get_crypto_box()

    logger.info("Initializing database connection...")
    await init_db()

    yield

    logger.info("Shutting down timefill backend...")
    await redis_client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "Redmine 批量工时录入 - 凭据加密存储、按用户隔离的缓存与 Magic Link 登录\n\n"
        "## 认证方式\n\n"
        "- **JWT Bearer**: 通过 Magic Link 登录后获取"
    ),
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    root_path=settings.ROOTPATH,
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)
app.openapi = cast(Callable[[], dict[str, Any]], custom_openapi)

# Dependency overrides (application -> infrastructure)
app.dependency_overrides[app_security.get_current_user_id] = (
    infra_jwt.get_current_user_id
)
app.dependency_overrides[app_security.get_optional_user_id] = (
    infra_jwt.get_optional_user_id
)

app.dependency_overrides[core_app_deps.get_kv_client] = get_redis_client
app.dependency_overrides[core_app_deps.get_secret_cipher] = get_crypto_box

app.dependency_overrides[users_app_deps.get_user_repository] = (
    users_infra_deps.get_user_repository
)
app.dependency_overrides[users_app_deps.get_magic_link_repository] = (
    users_infra_deps.get_magic_link_repository
)
app.dependency_overrides[users_app_deps.get_token_service] = infra_jwt.get_token_service
app.dependency_overrides[users_app_deps.get_magic_link_sender] = (
    users_infra_deps.get_magic_link_sender
)
app.dependency_overrides[users_app_deps.get_account_data_eraser] = (
    credentials_app_deps.get_credential_settings_service
)

app.dependency_overrides[credentials_app_deps.get_credential_repository] = (
    credentials_infra_deps.get_credential_repository
)
app.dependency_overrides[credentials_app_deps.get_credential_verifier] = (
    redmine_infra_deps.get_credential_verifier
)

app.dependency_overrides[redmine_app_deps.get_redmine_client_factory] = (
    redmine_infra_deps.get_redmine_client_factory
)
app.dependency_overrides[redmine_app_deps.get_time_entry_policy] = (
    users_app_deps.get_user_query_service
)

# Exception handlers
app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS middleware
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint.

    - healthy: 数据库与 Redis 均正常
    - degraded: 数据库正常、Redis 异常（限流放行，缓存直连 Redmine）
    - unhealthy: 数据库异常
    """
    db_health_result = await check_db_health()
    redis_health_result = await redis_client.health_check()

    db_ok = db_health_result.status.value == "ok"
    redis_ok = redis_health_result.status.value == "ok"

    if db_ok and redis_ok:
        overall_status = "healthy"
    elif db_ok:
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    return {
        "status": overall_status,
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
        "components": {
            "database": db_health_result.to_dict(),
            "redis": redis_health_result.to_dict(),
        },
    }


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to timefill API",
        "docs": f"{settings.API_V1_STR}/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
