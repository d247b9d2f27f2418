from typing import BinaryIO, List, Optional, Protocol


class BlobStoreError(RuntimeError):
    """文件存储调用失败"""


class BlobNotFoundError(BlobStoreError):
    """文件存储中不存在指定名字的文件"""


class BlobStoreTimeoutError(BlobStoreError):
    """文件存储调用超时"""


class InvalidBlobNameError(ValueError):
    """文件名包含路径穿越或绝对路径标记"""


def check_blob_name(name: str) -> str:
    """校验文件名只能是扁平目录下的单个名字"""
    if (
        not name
        or name == "."
        or ".." in name
        or "/" in name
        or "\\" in name
        or "\x00" in name
        or name.startswith("~")
        or (len(name) > 1 and name[1] == ":")
    ):
        raise InvalidBlobNameError(f"非法的文件名: {name!r}")
    return name


class BlobStore(Protocol):
    """文件存储协议，所有操作作用于同一个扁平根目录/存储桶"""

    async def write(
        self, name: str, data: bytes, timeout: Optional[float] = None
    ) -> None:
        """将字节内容写入指定名字"""
        ...

    async def size_of(self, name: str, timeout: Optional[float] = None) -> int:
        """获取已写入文件的实际字节数"""
        ...

    async def exists(self, name: str, timeout: Optional[float] = None) -> bool:
        ...

    async def delete(self, name: str, timeout: Optional[float] = None) -> None:
        """删除文件，文件不存在时不做任何事"""
        ...

    async def open(self, name: str, timeout: Optional[float] = None) -> BinaryIO:
        """打开文件流用于下载"""
        ...

    async def list_names(self, timeout: Optional[float] = None) -> List[str]:
        """列出所有文件名，仅供对账使用"""
        ...

    def uri_for(self, name: str) -> str:
        """根据文件名生成元数据目录中使用的uri"""
        ...

    def name_from_uri(self, uri: str) -> Optional[str]:
        """根据uri反推文件名，uri不属于当前存储时返回None"""
        ...

    def location_of(self, name: str) -> str:
        """返回可读的物理位置"""
        ...
