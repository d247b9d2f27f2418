import pytest
from app.application.errors.exceptions import (
    MetadataWriteFailedError,
    NotFoundError,
    ServerRequestsError,
)
from app.application.services.deletion_service import DeletionService
from app.application.services.upload_service import UploadService
from app.domain.external.blob_store import BlobStoreError
from app.domain.external.metadata_catalog import TransientCatalogError
from app.infrastructure.external.blob_store.local_blob_store import LocalBlobStore

pytestmark = pytest.mark.anyio


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class _FailingDeleteStore(LocalBlobStore):
    async def delete(self, name, timeout=None) -> None:
        raise BlobStoreError("permission denied")


async def _upload(blob_store, catalog, config):
    service = UploadService(blob_store=blob_store, catalog=catalog, config=config)
    return await service.create("report.pdf", b"ABC", "application/pdf")


async def test_delete_removes_records_and_blob(
    blob_store, catalog, file_service_config
) -> None:
    uploaded = await _upload(blob_store, catalog, file_service_config)
    service = DeletionService(blob_store, catalog, file_service_config)

    await service.delete(uploaded.upload.id)

    assert catalog.triples(file_service_config.graph) == set()
    assert await blob_store.exists(uploaded.file.stored_name) is False
    # 两条记录在同一次更新中删除
    assert len(catalog.updates[-1]) == 2


async def test_delete_twice_is_not_found(
    blob_store, catalog, file_service_config
) -> None:
    uploaded = await _upload(blob_store, catalog, file_service_config)
    service = DeletionService(blob_store, catalog, file_service_config)
    await service.delete(uploaded.upload.id)

    with pytest.raises(NotFoundError):
        await service.delete(uploaded.upload.id)


async def test_metadata_failure_leaves_blob(
    blob_store, catalog, file_service_config
) -> None:
    uploaded = await _upload(blob_store, catalog, file_service_config)
    catalog.update_error = TransientCatalogError("catalog down")
    service = DeletionService(blob_store, catalog, file_service_config)

    with pytest.raises(MetadataWriteFailedError):
        await service.delete(uploaded.upload.id)

    assert await blob_store.exists(uploaded.file.stored_name) is True
    assert catalog.triples(file_service_config.graph)


async def test_blob_failure_after_metadata_delete_still_succeeds(
    tmp_path, catalog, file_service_config
) -> None:
    store = _FailingDeleteStore(root=str(tmp_path), relative_path="files")
    store.init()
    uploaded = await _upload(store, catalog, file_service_config)

    await DeletionService(store, catalog, file_service_config).delete(
        uploaded.upload.id
    )

    assert catalog.triples(file_service_config.graph) == set()
    assert await store.list_names() == [uploaded.file.stored_name]


async def test_query_failure_is_server_error(
    blob_store, catalog, file_service_config
) -> None:
    catalog.query_error = TransientCatalogError("down")

    with pytest.raises(ServerRequestsError):
        await DeletionService(blob_store, catalog, file_service_config).delete("any")
