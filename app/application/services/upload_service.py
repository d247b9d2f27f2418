import logging
from datetime import datetime, timezone
from enum import Enum

from app.application.errors.exceptions import (
    BadRequestError,
    BlobWriteFailedError,
    MetadataWriteFailedError,
    ValidationFailedError,
)
from app.domain.external.blob_store import (
    BlobStore,
    BlobStoreError,
    InvalidBlobNameError,
)
from app.domain.external.metadata_catalog import CatalogError, MetadataCatalog
from app.domain.models.file import FileResource, UploadedFile, UploadResource
from app.domain.models.file_service_config import FileServiceConfig
from app.domain.services.file_records import insert_uploaded_file, select_file_info
from app.domain.services.resource_namer import (
    extension_of,
    next_identifier,
    stored_name,
)

logger = logging.getLogger(__name__)


class UploadStep(str, Enum):
    """上传流程的步骤，失败时根据所处步骤决定补偿动作"""

    NAMING = "naming"
    BLOB_WRITE = "blob_write"
    MEASURE = "measure"
    METADATA_WRITE = "metadata_write"
    VALIDATION = "validation"


class UploadService:
    """文件上传协调服务

    严格按照 命名 -> 写文件 -> 测量大小 -> 写元数据 -> (可选)回读校验 的顺序执行。
    文件写入之后的任何失败都会删除刚写入的文件，但不会删除可能已经写入的元数据。
    """

    def __init__(
        self,
        blob_store: BlobStore,
        catalog: MetadataCatalog,
        config: FileServiceConfig,
    ) -> None:
        """构造函数，完成上传服务的初始化"""
        self._blob_store = blob_store
        self._catalog = catalog
        self._config = config

    async def create(
        self, original_filename: str, content: bytes, detected_format: str
    ) -> UploadedFile:
        """保存上传文件并写入元数据，返回上传记录+物理文件记录"""
        # 1.生成上传id与文件id，并计算存储名字
        step = UploadStep.NAMING
        upload_id = next_identifier()
        file_id = next_identifier()
        extension = extension_of(original_filename)
        name = stored_name(file_id, original_filename)
        try:
            file_uri = self._blob_store.uri_for(name)
        except InvalidBlobNameError as e:
            raise BadRequestError(f"非法的文件名: {original_filename}") from e

        # 2.写入文件，失败时元数据尚未改动，无需补偿
        step = UploadStep.BLOB_WRITE
        try:
            await self._blob_store.write(
                name, content, timeout=self._config.blob_timeout
            )
        except BlobStoreError as e:
            logger.error(f"[{step.value}] 文件[{name}]写入存储失败: {str(e)}")
            raise BlobWriteFailedError() from e

        # 3.以存储中实际的字节数作为文件大小
        step = UploadStep.MEASURE
        try:
            size = await self._blob_store.size_of(
                name, timeout=self._config.blob_timeout
            )
        except BlobStoreError as e:
            logger.error(f"[{step.value}] 无法获取文件[{name}]大小: {str(e)}")
            await self._compensate(name, step)
            raise BlobWriteFailedError() from e

        now = datetime.now(timezone.utc).replace(microsecond=0)
        upload = UploadResource(
            id=upload_id,
            uri=f"{self._config.file_resource_base}{upload_id}",
            name=original_filename,
            format=detected_format,
            size=size,
            extension=extension,
            created=now,
            modified=now,
        )
        uploaded = UploadedFile(
            upload=upload,
            file=FileResource(
                id=file_id,
                uri=file_uri,
                stored_name=name,
                format=detected_format,
                size=size,
                extension=extension,
                data_source=upload.uri,
                created=now,
                modified=now,
            ),
        )

        # 4.一次原子更新同时写入上传记录与文件记录
        step = UploadStep.METADATA_WRITE
        try:
            await self._catalog.run_update(
                [insert_uploaded_file(self._config.graph, uploaded)],
                timeout=self._config.catalog_timeout,
            )
        except CatalogError as e:
            if e.outcome_unknown:
                logger.warning(
                    f"[{step.value}] 文件[{name}]元数据写入结果未知，删除文件后需要对账: {str(e)}"
                )
            else:
                logger.warning(f"[{step.value}] 文件[{name}]元数据写入失败: {str(e)}")
            await self._compensate(name, step)
            raise MetadataWriteFailedError(outcome_unknown=e.outcome_unknown) from e

        # 5.回读校验，读不到时只删除文件，不删除可能已写入的元数据
        if self._config.validate_readback:
            step = UploadStep.VALIDATION
            await self._validate(uploaded, step)

        logger.info(
            f"文件上传成功: {original_filename} (上传ID: {upload_id}, 文件: {name}, 大小: {size})"
        )
        return uploaded

    async def _validate(self, uploaded: UploadedFile, step: UploadStep) -> None:
        name = uploaded.file.stored_name
        try:
            rows = await self._catalog.run_query(
                select_file_info(self._config.graph, uploaded.file.id),
                timeout=self._config.catalog_timeout,
            )
        except CatalogError as e:
            logger.warning(f"[{step.value}] 回读文件[{name}]元数据失败: {str(e)}")
            rows = []

        if not rows:
            logger.warning(f"[{step.value}] 无法读取文件[{name}]的元数据，清理文件")
            await self._compensate(name, step)
            raise ValidationFailedError()

    async def _compensate(self, name: str, step: UploadStep) -> None:
        """补偿动作: 删除刚写入的文件，自身失败只记录日志，不改变原始错误"""
        try:
            await self._blob_store.delete(name, timeout=self._config.blob_timeout)
            logger.info(f"[{step.value}] 已删除文件[{name}]")
        except Exception:
            logger.exception(f"[{step.value}] 补偿删除文件[{name}]失败，文件成为孤儿")
