import logging
from functools import lru_cache
from typing import Dict, Optional

from app.application.services.deletion_service import DeletionService
from app.application.services.reconciliation_service import ReconciliationService
from app.application.services.retrieval_service import RetrievalService
from app.application.services.status_service import StatusService
from app.application.services.upload_service import UploadService
from app.domain.external.blob_store import BlobStore
from app.domain.external.metadata_catalog import MetadataCatalog
from app.domain.models.file_service_config import FileServiceConfig
from app.infrastructure.external.blob_store.local_blob_store import LocalBlobStore
from app.infrastructure.external.blob_store.minio_blob_store import MinioBlobStore
from app.infrastructure.external.health_checker.blob_store_health_checker import (
    BlobStoreHealthChecker,
)
from app.infrastructure.external.health_checker.catalog_health_checker import (
    CatalogHealthChecker,
)
from app.infrastructure.external.metadata_catalog.sparql_catalog import (
    SparqlMetadataCatalog,
)
from app.infrastructure.storage.minio import get_minio
from app.infrastructure.storage.sparql import get_sparql
from app.interfaces.dependencies import get_forwarded_headers
from core.config import Settings, get_settings
from fastapi import Depends

logger = logging.getLogger(__name__)


@lru_cache()
def get_file_service_config() -> FileServiceConfig:
    """根据启动时的配置构建一次文件服务配置"""
    settings = get_settings()
    return FileServiceConfig(
        graph=settings.graph,
        file_resource_base=settings.file_resource_base,
        validate_readback=settings.validate_readable_metadata,
        catalog_timeout=settings.catalog_timeout_seconds,
        blob_timeout=settings.blob_timeout_seconds,
    )


def build_blob_store(settings: Settings) -> BlobStore:
    """根据配置选择文件存储后端"""
    backend = settings.storage_backend.lower()
    if backend == "minio":
        logger.info(f"使用MinIO文件存储: {settings.minio_bucket_name}")
        return MinioBlobStore(
            bucket=settings.minio_bucket_name,
            minio_store=get_minio(),
            timeout=settings.blob_timeout_seconds,
        )
    if backend != "local":
        raise ValueError(f"不支持的文件存储后端: {settings.storage_backend}")
    logger.info(f"使用本地文件存储: {settings.storage_directory}")
    return LocalBlobStore(
        root=settings.storage_directory,
        relative_path=settings.file_storage_path,
        timeout=settings.blob_timeout_seconds,
    )


@lru_cache()
def get_blob_store() -> BlobStore:
    """进程内共享的文件存储实例"""
    return build_blob_store(get_settings())


def build_metadata_catalog(
    headers: Optional[Dict[str, str]] = None,
) -> MetadataCatalog:
    """构建元数据目录，底层共享进程内的httpx连接池"""
    sparql_client = get_sparql()
    settings = sparql_client.settings
    return SparqlMetadataCatalog(
        client=sparql_client.client,
        query_endpoint=settings.sparql_endpoint,
        update_endpoint=settings.catalog_update_endpoint,
        timeout=settings.catalog_timeout_seconds,
        headers=headers,
    )


def get_metadata_catalog(
    forwarded_headers: Dict[str, str] = Depends(get_forwarded_headers),
) -> MetadataCatalog:
    """每个请求构建一个携带透传请求头的元数据目录"""
    return build_metadata_catalog(forwarded_headers)


def get_upload_service(
    blob_store: BlobStore = Depends(get_blob_store),
    catalog: MetadataCatalog = Depends(get_metadata_catalog),
    config: FileServiceConfig = Depends(get_file_service_config),
) -> UploadService:
    return UploadService(blob_store=blob_store, catalog=catalog, config=config)


def get_retrieval_service(
    blob_store: BlobStore = Depends(get_blob_store),
    catalog: MetadataCatalog = Depends(get_metadata_catalog),
    config: FileServiceConfig = Depends(get_file_service_config),
) -> RetrievalService:
    return RetrievalService(blob_store=blob_store, catalog=catalog, config=config)


def get_deletion_service(
    blob_store: BlobStore = Depends(get_blob_store),
    catalog: MetadataCatalog = Depends(get_metadata_catalog),
    config: FileServiceConfig = Depends(get_file_service_config),
) -> DeletionService:
    return DeletionService(blob_store=blob_store, catalog=catalog, config=config)


def get_reconciliation_service() -> ReconciliationService:
    """对账服务不经过HTTP请求，由脚本直接构建"""
    return ReconciliationService(
        blob_store=get_blob_store(),
        catalog=build_metadata_catalog(),
        config=get_file_service_config(),
    )


def get_status_service(
    blob_store: BlobStore = Depends(get_blob_store),
    catalog: MetadataCatalog = Depends(get_metadata_catalog),
    config: FileServiceConfig = Depends(get_file_service_config),
) -> StatusService:
    """获取状态服务"""
    settings = get_settings()
    return StatusService(
        checkers=[
            CatalogHealthChecker(catalog, graph=config.graph),
            BlobStoreHealthChecker(blob_store, service_name=settings.storage_backend),
        ],
        timeout=config.catalog_timeout,
    )
