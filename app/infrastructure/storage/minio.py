import io
import logging
from functools import lru_cache, partial
from typing import Any, BinaryIO, List, Optional

import anyio
from core.config import Settings, get_settings
from minio import Minio
from minio.error import S3Error

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}


def is_missing_object(error: S3Error) -> bool:
    """判断S3错误是否代表对象不存在"""
    return error.code in _MISSING_OBJECT_CODES


class MinioStore:
    """MinIO（S3兼容）对象存储"""

    def __init__(self, settings: Settings):
        """构造函数：保存配置 + 初始化 client 占位"""
        self._settings = settings
        self._client: Optional[Minio] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def init(self) -> None:
        """创建 MinIO 客户端（Minio SDK 为同步客户端，但初始化本身很轻）"""
        if self._client is not None:
            logger.warning("MinIO 对象存储已初始化，无需重复操作")
            return

        try:
            self._client = Minio(
                endpoint=self._settings.minio_endpoint,  # 例如: "s3.example.com"
                access_key=self._settings.minio_access_key,
                secret_key=self._settings.minio_secret_key,
                secure=self._settings.minio_secure,  # True/False
                region=self._settings.minio_region,
            )
            logger.info("MinIO 对象存储初始化成功")
        except Exception as e:
            logger.error(f"MinIO 对象存储初始化失败: {str(e)}")
            raise

    async def shutdown(self) -> None:
        """关闭 MinIO 客户端（SDK 无显式 close，释放引用即可）"""
        if self._client is not None:
            self._client = None
            logger.info("关闭 MinIO 对象存储成功")

        get_minio.cache_clear()

    @property
    def client(self) -> Minio:
        """只读属性：返回 MinIO 客户端"""
        if self._client is None:
            raise RuntimeError("MinIO 未初始化，请调用 init() 完成初始化")
        return self._client

    async def _run_sync(self, fn, /, *args, **kwargs):
        return await anyio.to_thread.run_sync(partial(fn, *args, **kwargs))

    async def bucket_exists(self, bucket_name: str) -> bool:
        client = self.client
        return await self._run_sync(client.bucket_exists, bucket_name)

    async def ensure_bucket(self, bucket_name: str) -> None:
        """确保存储桶存在，不存在时自动创建"""
        client = self.client
        if await self.bucket_exists(bucket_name):
            return
        await self._run_sync(client.make_bucket, bucket_name)
        logger.info(f"已创建 MinIO 存储桶: {bucket_name}")

    async def upload_fileobj(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        length: int,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        client = self.client
        result = await self._run_sync(
            client.put_object,
            bucket_name,
            object_name,
            data,
            length,
            content_type=content_type or "application/octet-stream",
        )
        return {
            "bucket": bucket_name,
            "object": object_name,
            "etag": getattr(result, "etag", None),
            "version_id": getattr(result, "version_id", None),
        }

    async def stat_object(self, bucket_name: str, object_name: str) -> Optional[int]:
        """获取对象大小，对象不存在时返回None"""
        client = self.client
        try:
            stat = await self._run_sync(client.stat_object, bucket_name, object_name)
        except S3Error as e:
            if is_missing_object(e):
                return None
            raise
        return stat.size

    async def download_fileobj(
        self,
        bucket_name: str,
        object_name: str,
    ) -> BinaryIO:
        """从MinIO下载文件对象，返回文件流"""
        client = self.client

        def _download() -> BinaryIO:
            resp = client.get_object(bucket_name, object_name)
            # 将响应内容读取到BytesIO中，因为原始响应需要释放连接
            try:
                return io.BytesIO(resp.read())
            finally:
                resp.close()
                resp.release_conn()

        return await anyio.to_thread.run_sync(_download)

    async def delete_object(
        self,
        bucket_name: str,
        object_name: str,
    ) -> None:
        """从MinIO删除指定对象(对象不存在时S3语义同样返回成功)"""
        client = self.client
        await self._run_sync(client.remove_object, bucket_name, object_name)

    async def list_object_names(self, bucket_name: str) -> List[str]:
        """列出存储桶根目录下的所有对象名"""
        client = self.client

        def _list() -> List[str]:
            return [
                obj.object_name
                for obj in client.list_objects(bucket_name)
                if not obj.is_dir
            ]

        return await anyio.to_thread.run_sync(_list)


@lru_cache()
def get_minio() -> MinioStore:
    """lru_cache 单例：获取 MinIO 对象存储实例"""
    return MinioStore(get_settings())
