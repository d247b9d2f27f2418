from fastapi import APIRouter

from . import file_routes, status_routes


def create_api_routes() -> APIRouter:
    """创建API路由，涵盖整个项目的所有路由管理"""

    api_router = APIRouter()

    # 文件资源路由
    api_router.include_router(file_routes.router)

    # 健康检查路由
    api_router.include_router(status_routes.router)

    return api_router


router = create_api_routes()
