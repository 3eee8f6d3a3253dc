"""Database session management."""

from collections.abc import AsyncGenerator

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from src.core.config import settings
from src.core.infrastructure.health import DatabaseHealthResult, HealthStatus

async_engine = create_async_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=settings.ENVIRONMENT == "local",
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
    pool_timeout=10,
    connect_args={"connect_timeout": 5},
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session with automatic transaction management.

    请求结束时提交；仓储可以在中途显式 commit（例如凭据写入后需要立刻持久化，
    再去失效缓存），出现异常时回滚。
    """
    async with AsyncSession(async_engine, expire_on_commit=False) as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Initialize database connection."""
    try:
        async with async_engine.begin() as conn:
            # 测试连接
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established successfully")
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Failed to connect to database: {e}")
        raise


async def check_db_health() -> DatabaseHealthResult:
    """检查数据库健康状态。

    Returns:
        DatabaseHealthResult: 健康检查结果
    """
    try:
        async with async_engine.connect() as conn:
            result = await conn.execute(text("SELECT version()"))
            version = result.scalar()
            return DatabaseHealthResult(
                status=HealthStatus.OK,
                connected=True,
                version=version.split(",")[0] if version else "unknown",
            )
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        return DatabaseHealthResult(
            status=HealthStatus.ERROR,
            connected=False,
            error=str(e),
        )
