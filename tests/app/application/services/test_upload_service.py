import httpx
import pytest
from app.application.errors.exceptions import (
    BlobWriteFailedError,
    MetadataWriteFailedError,
    ValidationFailedError,
)
from app.application.services.upload_service import UploadService
from app.domain.external.blob_store import BlobStoreError
from app.domain.external.metadata_catalog import (
    CatalogTimeoutError,
    TransientCatalogError,
)
from app.domain.models.statement import IRI
from app.infrastructure.external.blob_store.local_blob_store import LocalBlobStore
from app.infrastructure.external.metadata_catalog.sparql_catalog import (
    SparqlMetadataCatalog,
)

pytestmark = pytest.mark.anyio


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class _FailingWriteStore(LocalBlobStore):
    async def write(self, name, data, timeout=None) -> None:
        raise BlobStoreError("disk full")


class _FailingDeleteStore(LocalBlobStore):
    async def delete(self, name, timeout=None) -> None:
        raise BlobStoreError("permission denied")


def _service(blob_store, catalog, config) -> UploadService:
    return UploadService(blob_store=blob_store, catalog=catalog, config=config)


async def test_create_writes_blob_and_both_records(
    blob_store, catalog, file_service_config
) -> None:
    uploaded = await _service(blob_store, catalog, file_service_config).create(
        "report.pdf", b"ABC", "application/pdf"
    )

    assert uploaded.upload.name == "report.pdf"
    assert uploaded.upload.size == 3
    assert uploaded.upload.extension == "pdf"
    assert uploaded.file.stored_name == f"{uploaded.file.id}.pdf"
    assert uploaded.file.uri == f"share://files/{uploaded.file.id}.pdf"
    assert uploaded.file.data_source == uploaded.upload.uri
    assert uploaded.upload.uri.endswith(uploaded.upload.id)
    assert uploaded.upload.id != uploaded.file.id

    assert await blob_store.size_of(uploaded.file.stored_name) == 3
    # 两条记录在同一次更新中写入
    assert len(catalog.updates) == 1
    assert len(catalog.updates[0]) == 1
    subjects = {triple[0] for triple in catalog.triples(file_service_config.graph)}
    assert subjects == {IRI(uploaded.upload.uri), IRI(uploaded.file.uri)}


async def test_create_zero_byte_file(blob_store, catalog, file_service_config) -> None:
    uploaded = await _service(blob_store, catalog, file_service_config).create(
        "empty.txt", b"", "text/plain"
    )

    assert uploaded.upload.size == 0
    assert uploaded.file.size == 0


async def test_create_without_extension_uses_bare_identifier(
    blob_store, catalog, file_service_config
) -> None:
    uploaded = await _service(blob_store, catalog, file_service_config).create(
        "noext", b"x", "application/octet-stream"
    )

    assert uploaded.file.stored_name == uploaded.file.id
    assert uploaded.upload.extension == "noext"


async def test_blob_write_failure_leaves_catalog_untouched(
    tmp_path, catalog, file_service_config
) -> None:
    store = _FailingWriteStore(root=str(tmp_path))

    with pytest.raises(BlobWriteFailedError):
        await _service(store, catalog, file_service_config).create(
            "report.pdf", b"ABC", "application/pdf"
        )

    assert catalog.updates == []


async def test_metadata_failure_deletes_blob(
    blob_store, catalog, file_service_config
) -> None:
    catalog.update_error = TransientCatalogError("catalog down")

    with pytest.raises(MetadataWriteFailedError) as exc_info:
        await _service(blob_store, catalog, file_service_config).create(
            "report.pdf", b"ABC", "application/pdf"
        )

    assert exc_info.value.outcome_unknown is False
    assert exc_info.value.status_code == 500
    assert await blob_store.list_names() == []


async def test_metadata_timeout_reports_unknown_outcome(
    blob_store, catalog, file_service_config
) -> None:
    """超时后更新可能已经生效，文件依然被删除，元数据留待对账发现"""
    catalog.update_error = CatalogTimeoutError("timeout")
    catalog.apply_failed_update = True

    with pytest.raises(MetadataWriteFailedError) as exc_info:
        await _service(blob_store, catalog, file_service_config).create(
            "report.pdf", b"ABC", "application/pdf"
        )

    assert exc_info.value.outcome_unknown is True
    assert await blob_store.list_names() == []
    assert catalog.triples(file_service_config.graph)


async def test_compensation_failure_keeps_original_error(
    tmp_path, catalog, file_service_config
) -> None:
    store = _FailingDeleteStore(root=str(tmp_path))
    store.init()
    catalog.update_error = TransientCatalogError("catalog down")

    with pytest.raises(MetadataWriteFailedError):
        await _service(store, catalog, file_service_config).create(
            "report.pdf", b"ABC", "application/pdf"
        )

    # 补偿失败，文件成为孤儿
    assert len(await store.list_names()) == 1


async def test_validation_failure_deletes_blob_but_keeps_metadata(
    blob_store, catalog, file_service_config
) -> None:
    config = file_service_config.model_copy(update={"validate_readback": True})
    catalog.hide_reads = True

    with pytest.raises(ValidationFailedError) as exc_info:
        await _service(blob_store, catalog, config).create(
            "report.pdf", b"ABC", "application/pdf"
        )

    assert exc_info.value.status_code == 403
    assert await blob_store.list_names() == []
    assert catalog.triples(config.graph)


async def test_validation_passes_when_metadata_readable(
    blob_store, catalog, file_service_config
) -> None:
    config = file_service_config.model_copy(update={"validate_readback": True})

    uploaded = await _service(blob_store, catalog, config).create(
        "report.pdf", b"ABC", "application/pdf"
    )

    assert await blob_store.exists(uploaded.file.stored_name) is True
    assert len(catalog.queries) == 1


@pytest.mark.parametrize(
    "filename", ["Meeting notes v1.2 draft", 'a.p"df', "x.a|b", "y.{x}^`<>"]
)
async def test_unusual_extension_renders_valid_update(
    blob_store, file_service_config, filename
) -> None:
    """扩展名包含空格、引号等字符时，上传依然成功并提交一次更新"""
    posted = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(request.content)
        return httpx.Response(204)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        catalog = SparqlMetadataCatalog(
            client=client, query_endpoint="http://catalog.test/sparql"
        )
        uploaded = await _service(blob_store, catalog, file_service_config).create(
            filename, b"ABC", "application/octet-stream"
        )

    assert len(posted) == 1
    assert uploaded.upload.name == filename
    assert uploaded.upload.extension == filename.split(".")[-1]
    assert blob_store.name_from_uri(uploaded.file.uri) == uploaded.file.stored_name
    assert await blob_store.size_of(uploaded.file.stored_name) == 3
