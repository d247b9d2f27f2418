import logging

from app.application.errors.exceptions import AppException
from app.interfaces.schemas import JSONAPI_MEDIA_TYPE, ErrorDocument
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


def _error_response(status_code: int, title: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDocument.single(status_code, title).model_dump(),
        media_type=JSONAPI_MEDIA_TYPE,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """统一处理文件服务中的异常，全部转换为JSON:API错误文档，涵盖：业务异常、参数异常、HTTP异常、通用异常"""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        """自定义应用异常处理器，捕获AppException并返回错误文档"""
        if exc.status_code >= 500:
            logger.error(f"App exception: {exc.msg}")
        else:
            logger.info(f"App exception: {exc.msg}")
        return _error_response(exc.status_code, exc.msg)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """请求参数校验失败统一返回400"""
        logger.info(f"Request validation failed: {exc.errors()}")
        return _error_response(400, "请求参数错误")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """HTTP异常处理器，例如路由不存在、方法不允许"""
        logger.error(f"HTTP exception: {exc.detail}")
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """通用异常处理器，捕获所有未处理的异常, 状态码500"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error_response(500, "Internal Server Error")
