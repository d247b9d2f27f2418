import asyncio
import logging
from typing import List, Optional

import anyio
from app.domain.external.health_checker import HealthChecker
from app.domain.models.health_status import HealthStatus

logger = logging.getLogger(__name__)


class StatusService:
    """文件服务健康检查：元数据目录与文件存储各一个检查器

    单个检查器超时或抛出异常都记为error，不影响其他检查器；
    文件服务自身能够响应请求即视为ok，追加在结果末尾。
    """

    def __init__(
        self,
        checkers: List[HealthChecker],
        timeout: Optional[float] = None,
        service_name: str = "file-service",
    ) -> None:
        self._checkers = checkers
        self._timeout = timeout
        self._service_name = service_name

    async def _check_one(self, checker: HealthChecker) -> HealthStatus:
        service = str(getattr(checker, "service_name", checker.__class__.__name__))
        try:
            with anyio.fail_after(self._timeout):
                return await checker.check()
        except TimeoutError:
            logger.error(f"{service}健康检查超时({self._timeout}秒)")
            return HealthStatus(service=service, status="error", details="健康检查超时")
        except Exception as e:
            logger.error(f"{service}健康检查失败: {str(e)}")
            return HealthStatus(service=service, status="error", details=str(e))

    async def check_all(self) -> List[HealthStatus]:
        """并发执行所有检查，结果顺序与检查器顺序一致"""
        statuses = list(
            await asyncio.gather(*(self._check_one(c) for c in self._checkers))
        )
        statuses.append(HealthStatus(service=self._service_name, status="ok"))
        return statuses
