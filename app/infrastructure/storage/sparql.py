import logging
from functools import lru_cache
from typing import Optional

import httpx
from core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SparqlClient:
    """SPARQL端点的httpx异步客户端封装，进程内共享一个连接池"""

    def __init__(self, settings: Settings) -> None:
        """构造函数：保存配置 + 初始化 client 占位"""
        self._settings = settings
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def init(self) -> None:
        """创建httpx异步客户端"""
        if self._client is not None:
            logger.warning("SPARQL客户端已初始化，无需重复操作")
            return

        self._client = httpx.AsyncClient(
            timeout=self._settings.catalog_timeout_seconds,
        )
        logger.info(f"SPARQL客户端初始化成功: {self._settings.sparql_endpoint}")

    async def shutdown(self) -> None:
        """关闭httpx客户端"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("SPARQL客户端已关闭")
        else:
            logger.warning("SPARQL客户端未初始化，无法关闭")

        get_sparql.cache_clear()

    @property
    def client(self) -> httpx.AsyncClient:
        """只读属性：返回httpx客户端"""
        if self._client is None:
            raise RuntimeError("SPARQL客户端未初始化，请调用 init() 完成初始化")
        return self._client


@lru_cache()
def get_sparql() -> SparqlClient:
    """lru_cache 单例：获取SPARQL客户端实例"""
    return SparqlClient(get_settings())
