from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class FileResource(BaseModel):
    """物理文件Domain模型，描述存储在文件存储中的一个真实文件"""

    id: str  # 文件id，创建后不可变
    uri: str  # 元数据目录中的资源uri，同时也是文件存储中的定位uri
    stored_name: str  # 存储名字: id + 原始扩展名
    format: str = "application/octet-stream"  # mime-type类型
    size: int = 0  # 文件大小，单位为字节，来自文件存储的实际测量
    extension: str = ""  # 扩展名
    data_source: str = ""  # 派生来源的上传资源uri
    created: datetime = Field(default_factory=_now)
    modified: datetime = Field(default_factory=_now)


class UploadResource(BaseModel):
    """逻辑上传Domain模型，描述客户端提交的原始上传"""

    id: str  # 上传id，对外暴露的文件id
    uri: str
    name: str  # 客户端上传的原始文件名
    format: str = "application/octet-stream"
    size: int = 0
    extension: str = ""
    created: datetime = Field(default_factory=_now)
    modified: datetime = Field(default_factory=_now)


class UploadedFile(BaseModel):
    """一次上传产生的两个资源: 逻辑上传 + 物理文件"""

    upload: UploadResource
    file: FileResource


class FileInfo(BaseModel):
    """从元数据目录中读取的文件基础信息"""

    id: str
    uri: str = ""
    name: str
    format: str
    size: int
    extension: str


class BlobLocation(BaseModel):
    """文件在文件存储中的物理位置"""

    uri: str  # 元数据目录中记录的文件uri
    stored_name: str  # 文件存储中的名字
    location: str  # 可读的物理位置(本地路径或s3地址)
