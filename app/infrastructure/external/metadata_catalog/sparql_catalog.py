import logging
from typing import Dict, List, Mapping, Optional, Sequence

import httpx
from app.domain.external.metadata_catalog import (
    Binding,
    CatalogTimeoutError,
    MalformedCatalogRequestError,
    MetadataCatalog,
    TransientCatalogError,
)
from app.domain.models.statement import SelectQuery, UpdateStatement
from app.infrastructure.external.metadata_catalog.sparql_renderer import (
    render_select,
    render_update,
)

logger = logging.getLogger(__name__)

SPARQL_RESULTS_JSON = "application/sparql-results+json"


class SparqlMetadataCatalog(MetadataCatalog):
    """基于SPARQL 1.1 Protocol的元数据目录，每次update调用对应一次HTTP请求"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        query_endpoint: str,
        update_endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """构造函数，headers为需要透传给目录服务的请求头(如会话/授权信息)"""
        self._client = client
        self._query_endpoint = query_endpoint
        self._update_endpoint = update_endpoint or query_endpoint
        self._timeout = timeout
        self._headers: Dict[str, str] = dict(headers or {})

    async def run_update(
        self, statements: Sequence[UpdateStatement], timeout: Optional[float] = None
    ) -> None:
        """将一批语句渲染为一个update请求提交，目录服务保证单次请求的原子性"""
        update = render_update(statements)
        logger.debug(f"执行SPARQL更新: {update}")
        await self._post(self._update_endpoint, {"update": update}, timeout)

    async def run_query(
        self, query: SelectQuery, timeout: Optional[float] = None
    ) -> List[Binding]:
        """执行查询并将结果转换为 变量名->值 的字典列表"""
        text = render_select(query)
        logger.debug(f"执行SPARQL查询: {text}")
        response = await self._post(self._query_endpoint, {"query": text}, timeout)

        try:
            payload = response.json()
            rows = payload["results"]["bindings"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransientCatalogError(f"无法解析SPARQL查询结果: {str(e)}") from e

        return [
            {name: value["value"] for name, value in row.items() if "value" in value}
            for row in rows
        ]

    async def _post(
        self, url: str, data: Dict[str, str], timeout: Optional[float]
    ) -> httpx.Response:
        headers = {"Accept": SPARQL_RESULTS_JSON, **self._headers}
        effective_timeout = timeout if timeout is not None else self._timeout
        try:
            if effective_timeout is None:
                response = await self._client.post(url, data=data, headers=headers)
            else:
                response = await self._client.post(
                    url, data=data, headers=headers, timeout=effective_timeout
                )
        except httpx.TimeoutException as e:
            raise CatalogTimeoutError(f"SPARQL请求超时: {url}") from e
        except httpx.HTTPError as e:
            raise TransientCatalogError(f"SPARQL请求失败: {str(e)}") from e

        if response.status_code >= 500:
            raise TransientCatalogError(
                f"SPARQL服务端错误: {response.status_code} {response.text}"
            )
        if response.status_code >= 400:
            raise MalformedCatalogRequestError(
                f"SPARQL请求被拒绝: {response.status_code} {response.text}"
            )
        return response

