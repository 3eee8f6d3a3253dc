"""HTTP exception handlers.

提供统一的异常处理机制，将领域异常转换为标准 HTTP 响应。
各模块的异常类通过定义 http_status_code 和 error_code 类属性来自定义响应。
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from src.core.domain.exceptions import DomainException
from src.core.interfaces.http.response import ErrorResponse


async def domain_exception_handler(
    _request: Request, exc: DomainException
) -> JSONResponse:
    """Handle domain exceptions.

    通过读取异常类的 http_status_code 和 error_code 类属性来确定响应。
    这样各模块可以定义自己的异常类而不需要修改 core 层代码。
    """
    status_code = getattr(exc, "http_status_code", 400)
    error_code = getattr(exc, "error_code", "DOMAIN_ERROR")

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning(f"Domain error {error_code}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.create(
            error_code, exc.message, getattr(exc, "details", None)
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception: {type(exc).__name__}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse.create(
            "INTERNAL_ERROR", "An internal error occurred"
        ).model_dump(),
    )
