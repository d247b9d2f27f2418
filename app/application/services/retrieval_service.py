import logging
from typing import BinaryIO, List, Tuple

from app.application.errors.exceptions import (
    InconsistentCatalogError,
    MissingBlobError,
    NotFoundError,
    ServerRequestsError,
)
from app.domain.external.blob_store import BlobNotFoundError, BlobStore, BlobStoreError
from app.domain.external.metadata_catalog import (
    Binding,
    CatalogError,
    MetadataCatalog,
)
from app.domain.models.file import BlobLocation, FileInfo
from app.domain.models.file_service_config import FileServiceConfig
from app.domain.models.statement import SelectQuery
from app.domain.services.file_records import (
    file_info_from_binding,
    select_derived_file,
    select_file_info,
)

logger = logging.getLogger(__name__)


class RetrievalService:
    """文件读取协调服务，只读，不修改任何一侧的存储"""

    def __init__(
        self,
        blob_store: BlobStore,
        catalog: MetadataCatalog,
        config: FileServiceConfig,
    ) -> None:
        self._blob_store = blob_store
        self._catalog = catalog
        self._config = config

    async def _query(self, query: SelectQuery) -> List[Binding]:
        try:
            return await self._catalog.run_query(
                query, timeout=self._config.catalog_timeout
            )
        except CatalogError as e:
            logger.error(f"查询元数据目录失败: {str(e)}")
            raise ServerRequestsError("查询文件元数据失败") from e

    async def get_metadata(self, resource_id: str) -> FileInfo:
        """根据id获取文件基础信息"""
        rows = await self._query(select_file_info(self._config.graph, resource_id))
        if not rows:
            raise NotFoundError(f"该文件[{resource_id}]不存在")

        # id唯一，多条记录说明目录已损坏
        if len(rows) > 1:
            logger.error(
                f"元数据不一致: 文件id[{resource_id}]匹配到{len(rows)}条记录"
            )
            raise InconsistentCatalogError()

        return file_info_from_binding(resource_id, rows[0])

    async def resolve_physical_location(self, upload_id: str) -> BlobLocation:
        """根据上传id找到派生出的物理文件，并确认文件存储中确实存在"""
        # 1.查询上传记录派生出的物理文件uri
        rows = await self._query(select_derived_file(self._config.graph, upload_id))
        if not rows:
            raise NotFoundError(f"该文件[{upload_id}]不存在")

        file_urls = {row["fileUrl"] for row in rows}
        if len(file_urls) > 1:
            logger.error(
                f"元数据不一致: 上传[{upload_id}]派生出{len(file_urls)}个物理文件"
            )
            raise InconsistentCatalogError()
        file_url = file_urls.pop()

        # 2.将uri映射为文件存储中的名字
        name = self._blob_store.name_from_uri(file_url)
        if name is None:
            logger.error(f"元数据与文件存储不一致: 文件uri[{file_url}]不在存储中")
            raise MissingBlobError()

        # 3.确认文件确实存在
        try:
            exists = await self._blob_store.exists(
                name, timeout=self._config.blob_timeout
            )
        except BlobStoreError as e:
            logger.error(f"检查文件[{name}]是否存在失败: {str(e)}")
            raise ServerRequestsError("访问文件存储失败") from e
        if not exists:
            logger.error(f"元数据与文件存储不一致: 文件[{name}]在存储中不存在")
            raise MissingBlobError()

        return BlobLocation(
            uri=file_url,
            stored_name=name,
            location=self._blob_store.location_of(name),
        )

    async def open_download(self, upload_id: str) -> Tuple[BinaryIO, BlobLocation]:
        """根据上传id打开文件流，返回文件流+物理位置"""
        location = await self.resolve_physical_location(upload_id)
        try:
            stream = await self._blob_store.open(
                location.stored_name, timeout=self._config.blob_timeout
            )
        except BlobNotFoundError as e:
            logger.error(f"文件[{location.stored_name}]在读取前被删除")
            raise MissingBlobError() from e
        except BlobStoreError as e:
            logger.error(f"读取文件[{location.stored_name}]失败: {str(e)}")
            raise ServerRequestsError("读取文件失败") from e
        return stream, location
