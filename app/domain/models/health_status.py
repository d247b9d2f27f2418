from typing import Literal, Optional

from pydantic import BaseModel


class HealthStatus(BaseModel):
    """服务健康状态"""

    service: str  # 服务名字
    status: Literal["ok", "error"] = "ok"
    details: Optional[str] = None  # 异常详情
