import io
import logging
import urllib.parse
from typing import BinaryIO, List, Optional

import anyio
from app.domain.external.blob_store import (
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    BlobStoreTimeoutError,
    InvalidBlobNameError,
    check_blob_name,
)
from app.infrastructure.storage.minio import MinioStore, is_missing_object
from minio.error import S3Error

logger = logging.getLogger(__name__)


class MinioBlobStore(BlobStore):
    """基于MinIO存储桶的扁平文件存储，uri形如 s3://<bucket>/<文件名>"""

    def __init__(
        self,
        bucket: str,
        minio_store: MinioStore,
        timeout: Optional[float] = None,
    ) -> None:
        """构造函数，完成MinIO文件存储扩展初始化"""
        self.bucket = bucket
        self.minio_store = minio_store
        self._timeout = timeout

    async def _call(self, coro_fn, *args, timeout: Optional[float] = None):
        effective_timeout = timeout if timeout is not None else self._timeout
        try:
            with anyio.fail_after(effective_timeout):
                return await coro_fn(*args)
        except TimeoutError as e:
            raise BlobStoreTimeoutError(f"MinIO操作超时: {args}") from e
        except S3Error as e:
            if is_missing_object(e):
                raise BlobNotFoundError(f"对象不存在: {args}") from e
            raise BlobStoreError(f"MinIO操作失败: {str(e)}") from e
        except BlobStoreError:
            raise
        except Exception as e:
            raise BlobStoreError(f"MinIO操作失败: {str(e)}") from e

    async def write(
        self, name: str, data: bytes, timeout: Optional[float] = None
    ) -> None:
        check_blob_name(name)
        await self._call(
            self.minio_store.upload_fileobj,
            self.bucket,
            name,
            io.BytesIO(data),
            len(data),
            timeout=timeout,
        )
        logger.info(f"文件已写入MinIO: {self.bucket}/{name}")

    async def size_of(self, name: str, timeout: Optional[float] = None) -> int:
        check_blob_name(name)
        size = await self._call(
            self.minio_store.stat_object, self.bucket, name, timeout=timeout
        )
        if size is None:
            raise BlobNotFoundError(f"对象不存在: {self.bucket}/{name}")
        return size

    async def exists(self, name: str, timeout: Optional[float] = None) -> bool:
        check_blob_name(name)
        size = await self._call(
            self.minio_store.stat_object, self.bucket, name, timeout=timeout
        )
        return size is not None

    async def delete(self, name: str, timeout: Optional[float] = None) -> None:
        check_blob_name(name)
        await self._call(
            self.minio_store.delete_object, self.bucket, name, timeout=timeout
        )

    async def open(self, name: str, timeout: Optional[float] = None) -> BinaryIO:
        check_blob_name(name)
        return await self._call(
            self.minio_store.download_fileobj, self.bucket, name, timeout=timeout
        )

    async def list_names(self, timeout: Optional[float] = None) -> List[str]:
        names = await self._call(
            self.minio_store.list_object_names, self.bucket, timeout=timeout
        )
        return sorted(names)

    def uri_for(self, name: str) -> str:
        check_blob_name(name)
        return f"s3://{self.bucket}/{urllib.parse.quote(name, safe='')}"

    def name_from_uri(self, uri: str) -> Optional[str]:
        prefix = f"s3://{self.bucket}/"
        if not uri.startswith(prefix):
            return None
        try:
            return check_blob_name(urllib.parse.unquote(uri[len(prefix):]))
        except InvalidBlobNameError:
            logger.warning(f"uri指向存储桶之外的位置: {uri}")
            return None

    def location_of(self, name: str) -> str:
        return self.uri_for(name)
