from typing import Dict, List, Optional, Protocol, Sequence

from app.domain.models.statement import SelectQuery, UpdateStatement

Binding = Dict[str, str]


class CatalogError(RuntimeError):
    """元数据目录调用失败"""

    outcome_unknown: bool = False


class MalformedCatalogRequestError(CatalogError):
    """请求本身有误(调用方bug)，不可重试"""


class TransientCatalogError(CatalogError):
    """网络或服务端错误，是否重试由调用方决定"""


class CatalogTimeoutError(TransientCatalogError):
    """调用超时，更新是否已生效未知"""

    outcome_unknown = True


class MetadataCatalog(Protocol):
    """图数据库元数据目录协议"""

    async def run_update(
        self, statements: Sequence[UpdateStatement], timeout: Optional[float] = None
    ) -> None:
        """在一次调用中原子地执行一批插入/删除语句"""
        ...

    async def run_query(
        self, query: SelectQuery, timeout: Optional[float] = None
    ) -> List[Binding]:
        """执行模式查询，返回变量绑定列表，空列表表示未找到"""
        ...
