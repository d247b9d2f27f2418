from typing import Optional

from pydantic import BaseModel


class FileServiceConfig(BaseModel):
    """文件服务配置，在进程启动时根据Settings构建一次并注入各个服务"""

    graph: str  # 文件记录所在的命名图
    file_resource_base: str  # 上传资源uri前缀
    validate_readback: bool = False  # 写入元数据后是否回读校验
    catalog_timeout: Optional[float] = None  # 单次元数据目录调用超时(秒)
    blob_timeout: Optional[float] = None  # 单次文件存储调用超时(秒)

    model_config = {"frozen": True}
