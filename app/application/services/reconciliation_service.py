import logging
from typing import Dict, List, Set

import anyio
from app.domain.external.blob_store import BlobStore
from app.domain.external.metadata_catalog import MetadataCatalog
from app.domain.models.file_service_config import FileServiceConfig
from app.domain.services.file_records import select_all_files
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ReconciliationReport(BaseModel):
    """对账结果"""

    orphan_blobs: List[str] = Field(default_factory=list)  # 没有元数据指向的文件
    dangling_records: List[str] = Field(default_factory=list)  # 文件已不存在的记录uri
    foreign_records: List[str] = Field(default_factory=list)  # 指向其他存储的记录uri
    removed_blobs: List[str] = Field(default_factory=list)


class ReconciliationService:
    """对比元数据目录与文件存储，发现两侧的分歧

    只会(可选地)删除孤儿文件，悬空的元数据只报告不修复。
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

    async def _referenced_names(self, report: ReconciliationReport) -> Dict[str, str]:
        rows = await self._catalog.run_query(
            select_all_files(self._config.graph),
            timeout=self._config.catalog_timeout,
        )
        referenced: Dict[str, str] = {}
        for row in rows:
            file_url = row["fileUrl"]
            name = self._blob_store.name_from_uri(file_url)
            if name is None:
                report.foreign_records.append(file_url)
            else:
                referenced[name] = file_url
        return referenced

    async def sweep(
        self, remove_orphans: bool = False, grace_seconds: float = 0.0
    ) -> ReconciliationReport:
        """执行一次对账

        Args:
            remove_orphans: 是否删除孤儿文件
            grace_seconds: 删除前等待的时间，等待后重新查询目录，
                避免误删正在上传中(文件已写入、元数据尚未提交)的文件
        """
        report = ReconciliationReport()

        # 1.先列出文件再查询目录，正在上传的文件最多被误报为孤儿
        names: Set[str] = set(
            await self._blob_store.list_names(timeout=self._config.blob_timeout)
        )
        referenced = await self._referenced_names(report)

        report.orphan_blobs = sorted(names - referenced.keys())
        report.dangling_records = sorted(
            url for name, url in referenced.items() if name not in names
        )
        report.foreign_records.sort()
        for url in report.dangling_records:
            logger.error(f"元数据指向的文件不存在: {url}")

        if not remove_orphans or not report.orphan_blobs:
            return report

        # 2.等待宽限期后重新确认孤儿文件仍未被引用
        if grace_seconds > 0:
            await anyio.sleep(grace_seconds)
            referenced = await self._referenced_names(ReconciliationReport())

        for name in report.orphan_blobs:
            if name in referenced:
                continue
            try:
                await self._blob_store.delete(name, timeout=self._config.blob_timeout)
                report.removed_blobs.append(name)
                logger.info(f"已删除孤儿文件: {name}")
            except Exception:
                logger.exception(f"删除孤儿文件[{name}]失败")
        return report
