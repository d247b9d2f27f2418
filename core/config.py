from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用程序的配置设置，继承自Pydantic的BaseSettings。从.env或者环境变量中加载配置。"""

    # 项目基础配置
    env: str = "development"  # 应用环境，默认为'development'
    log_level: str = "INFO"  # 日志级别，默认为'INFO'

    # 文件存储配置
    storage_backend: str = "local"  # 文件存储后端: local / minio
    share_root: str = "/share"  # 本地共享目录根路径
    file_storage_path: str = Field(
        default="",
        validation_alias=AliasChoices(
            "file_storage_path", "mu_application_file_storage_path"
        ),
    )  # 共享目录下的相对存储路径
    blob_timeout_seconds: float = 30.0

    # 元数据目录(SPARQL)配置
    sparql_endpoint: str = "http://database:8890/sparql"
    sparql_update_endpoint: Optional[str] = None  # 为空时与查询端点一致
    graph: str = "http://mu.semte.ch/application"
    file_resource_base: str = "http://mu.semte.ch/services/file-service/files/"
    catalog_timeout_seconds: float = 30.0
    catalog_forward_headers: str = "mu-session-id,mu-call-id,mu-auth-allowed-groups"
    validate_readable_metadata: bool = False  # 写入后是否回读校验元数据

    # MinIO对象存储配置
    minio_endpoint: str = "s3.example.com"
    minio_access_key: str = ""
    minio_secret_key: str = ""
    minio_region: str | None = None
    minio_secure: bool = True
    minio_bucket_name: str = "files"

    # 使用pydantic v2的写法来完成环境变量信息的告知
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("file_storage_path")
    @classmethod
    def _check_relative_storage_path(cls, value: str) -> str:
        """存储路径必须是共享目录下的相对路径"""
        if value.startswith("/"):
            raise ValueError(f"文件存储路径({value})必须是相对路径")
        return value.strip("/")

    @property
    def storage_directory(self) -> str:
        """本地文件实际存储目录"""
        root = self.share_root.rstrip("/")
        if self.file_storage_path:
            return f"{root}/{self.file_storage_path}"
        return root

    @property
    def catalog_update_endpoint(self) -> str:
        return self.sparql_update_endpoint or self.sparql_endpoint

    @property
    def forwarded_headers(self) -> List[str]:
        """需要透传到元数据目录的请求头列表"""
        return [
            header.strip().lower()
            for header in self.catalog_forward_headers.split(",")
            if header.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """获取应用程序的配置设置实例，使用lru_cache进行缓存以提高性能。

    Returns:
        Settings: 应用程序的配置设置实例。
    """
    return Settings()
