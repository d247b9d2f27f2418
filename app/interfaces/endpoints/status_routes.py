import logging
from typing import List

from app.application.services.status_service import StatusService
from app.domain.models.health_status import HealthStatus
from app.interfaces.schemas import Response
from app.interfaces.service_dependencies import get_status_service
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/status", tags=["状态模块"])


@router.get(
    "",
    response_model=Response[List[HealthStatus]],
    summary="系统健康检查",
    description="检查元数据目录、文件存储与fastapi的健康状态",
)
async def get_status(
    status_service: StatusService = Depends(get_status_service),
):
    """系统健康检查，任一依赖异常时返回503"""
    statues = await status_service.check_all()

    if any(item.status == "error" for item in statues):
        logger.warning("系统存在服务异常")
        return JSONResponse(
            status_code=503,
            content=Response.fail(503, "系统存在服务异常", statues).model_dump(
                mode="json"
            ),
        )

    return Response.success(msg="系统健康检查成功", data=statues)
