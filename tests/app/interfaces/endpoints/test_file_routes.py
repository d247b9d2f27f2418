from typing import Generator

import pytest
from app.domain.external.metadata_catalog import TransientCatalogError
from app.interfaces.service_dependencies import (
    get_blob_store,
    get_file_service_config,
    get_metadata_catalog,
)
from app.main import app
from fastapi.testclient import TestClient


@pytest.fixture
def services(blob_store, catalog, file_service_config) -> Generator[tuple, None, None]:
    """将文件服务依赖替换为临时目录与内存目录"""
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_metadata_catalog] = lambda: catalog
    app.dependency_overrides[get_file_service_config] = lambda: file_service_config
    try:
        yield blob_store, catalog
    finally:
        app.dependency_overrides.clear()


def _upload(client: TestClient, name: str = "report.pdf", content: bytes = b"ABC"):
    return client.post("/files", files={"file": (name, content, "application/pdf")})


def test_upload_get_delete_scenario(client: TestClient, services) -> None:
    """上传 -> 查询 -> 删除 -> 再次删除"""
    response = _upload(client)
    assert response.status_code == 201
    assert response.headers["content-type"].startswith("application/vnd.api+json")
    body = response.json()
    file_id = body["data"]["id"]
    assert body["data"]["type"] == "files"
    assert body["data"]["attributes"] == {
        "name": "report.pdf",
        "format": "application/pdf",
        "size": 3,
        "extension": "pdf",
    }
    assert body["links"]["self"] == f"http://testserver/files/{file_id}"

    response = client.get(f"/files/{file_id}")
    assert response.status_code == 200
    assert response.json()["data"]["attributes"] == body["data"]["attributes"]
    assert response.json()["links"]["self"] == f"http://testserver/files/{file_id}"

    response = client.delete(f"/files/{file_id}")
    assert response.status_code == 204

    response = client.delete(f"/files/{file_id}")
    assert response.status_code == 404
    assert response.json()["errors"][0]["status"] == "404"

    response = client.get(f"/files/{file_id}")
    assert response.status_code == 404


def test_upload_without_file_is_bad_request(client: TestClient, services) -> None:
    response = client.post("/files", data={"name": "report.pdf"})

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/vnd.api+json")
    assert response.json()["errors"][0]["status"] == "400"


def test_upload_strips_client_directories(client: TestClient, services) -> None:
    response = _upload(client, name="dir/sub/report.pdf")

    assert response.status_code == 201
    assert response.json()["data"]["attributes"]["name"] == "report.pdf"


def test_self_link_uses_rewrite_url(client: TestClient, services) -> None:
    file_id = _upload(client).json()["data"]["id"]

    response = client.get(
        f"/files/{file_id}", headers={"X-Rewrite-URL": f"/files/{file_id}?include=x"}
    )

    assert response.json()["links"]["self"] == f"/files/{file_id}"


def test_download_as_attachment(client: TestClient, services) -> None:
    body = _upload(client).json()
    file_id = body["data"]["id"]

    response = client.get(f"/files/{file_id}/download")

    assert response.status_code == 200
    assert response.content == b"ABC"
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment; filename*=utf-8''")
    assert disposition.endswith(".pdf")


def test_download_inline_with_custom_name(client: TestClient, services) -> None:
    file_id = _upload(client).json()["data"]["id"]

    response = client.get(
        f"/files/{file_id}/download",
        params={"name": "my report.pdf", "content-disposition": "INLINE"},
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        "inline; filename*=utf-8''my%20report.pdf"
    )
    assert response.headers["content-type"] == "application/pdf"


def test_download_missing_blob_is_server_error(client: TestClient, services) -> None:
    blob_store, _ = services
    file_id = _upload(client).json()["data"]["id"]
    for name in blob_store.root.iterdir():
        name.unlink()

    response = client.get(f"/files/{file_id}/download")

    assert response.status_code == 500
    assert response.json()["errors"][0]["status"] == "500"


def test_download_unknown_file(client: TestClient, services) -> None:
    response = client.get("/files/unknown/download")

    assert response.status_code == 404


def test_upload_with_unreadable_metadata_is_forbidden(
    client: TestClient, blob_store, catalog, file_service_config
) -> None:
    """开启回读校验且读不到元数据时返回403，并删除已写入的文件"""
    config = file_service_config.model_copy(update={"validate_readback": True})
    catalog.hide_reads = True
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_metadata_catalog] = lambda: catalog
    app.dependency_overrides[get_file_service_config] = lambda: config
    try:
        response = _upload(client)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 403
    assert response.headers["content-type"].startswith("application/vnd.api+json")
    assert response.json()["errors"][0]["status"] == "403"
    assert list(blob_store.root.iterdir()) == []


def test_upload_with_catalog_failure_is_server_error(
    client: TestClient, services
) -> None:
    blob_store, catalog = services
    catalog.update_error = TransientCatalogError("catalog down")

    response = _upload(client)

    assert response.status_code == 500
    assert response.json()["errors"][0]["status"] == "500"
    assert list(blob_store.root.iterdir()) == []


def test_upload_with_unusual_extension(client: TestClient, services) -> None:
    blob_store, _ = services

    response = _upload(client, name="Meeting notes v1.2 draft")

    assert response.status_code == 201
    assert response.json()["data"]["attributes"]["extension"] == "2 draft"
    assert len(list(blob_store.root.iterdir())) == 1
