import logging

from app.application.errors.exceptions import (
    InconsistentCatalogError,
    MetadataWriteFailedError,
    NotFoundError,
    ServerRequestsError,
)
from app.domain.external.blob_store import BlobStore
from app.domain.external.metadata_catalog import CatalogError, MetadataCatalog
from app.domain.models.file_service_config import FileServiceConfig
from app.domain.services.file_records import (
    delete_file_record,
    delete_upload_record,
    select_derived_file,
)

logger = logging.getLogger(__name__)


class DeletionService:
    """文件删除协调服务

    先删除元数据再删除文件: 两步之间崩溃只会留下可被对账清理的孤儿文件，
    而不会留下指向不存在文件的元数据。
    """

    def __init__(
        self,
        blob_store: BlobStore,
        catalog: MetadataCatalog,
        config: FileServiceConfig,
    ) -> None:
        self._blob_store = blob_store
        self._catalog = catalog
        self._config = config

    async def delete(self, upload_id: str) -> None:
        """根据上传id删除上传记录、文件记录以及物理文件"""
        graph = self._config.graph

        # 1.查询上传记录及其派生的文件记录
        try:
            rows = await self._catalog.run_query(
                select_derived_file(graph, upload_id),
                timeout=self._config.catalog_timeout,
            )
        except CatalogError as e:
            logger.error(f"查询文件[{upload_id}]元数据失败: {str(e)}")
            raise ServerRequestsError("查询文件元数据失败") from e
        if not rows:
            raise NotFoundError(f"该文件[{upload_id}]不存在")

        pairs = {(row["uri"], row["fileUrl"]) for row in rows}
        if len(pairs) > 1:
            logger.error(f"元数据不一致: 上传[{upload_id}]匹配到{len(pairs)}组记录")
            raise InconsistentCatalogError()
        upload_uri, file_url = pairs.pop()

        # 2.一次原子更新按读取到的形状删除两条记录
        logger.info(f"正在删除文件元数据, 上传id: {upload_id}")
        try:
            await self._catalog.run_update(
                [
                    delete_upload_record(graph, upload_uri),
                    delete_file_record(graph, file_url, upload_uri),
                ],
                timeout=self._config.catalog_timeout,
            )
        except CatalogError as e:
            logger.error(f"删除文件[{upload_id}]元数据失败: {str(e)}")
            raise MetadataWriteFailedError(
                msg="文件元数据删除失败", outcome_unknown=e.outcome_unknown
            ) from e

        # 3.删除物理文件，文件已不存在也视为成功
        name = self._blob_store.name_from_uri(file_url)
        if name is None:
            logger.warning(f"文件uri[{file_url}]不在当前存储中，跳过物理删除")
            return
        try:
            await self._blob_store.delete(name, timeout=self._config.blob_timeout)
        except Exception:
            logger.exception(f"删除物理文件[{name}]失败，文件成为孤儿，等待对账清理")
            return
        logger.info(f"文件删除成功: {name} (上传ID: {upload_id})")
