from typing import Any


class AppException(RuntimeError):
    """基础应用异常类，继承RuntimeError"""

    def __init__(
        self,
        code: int = 400,
        status_code: int = 400,
        msg: str = "应用程序异常",
        data: Any = None,
    ):
        """构造函数，完成错误数据初始化"""
        self.code = code
        self.status_code = status_code
        self.msg = msg
        self.data = data
        super().__init__(msg)


class BadRequestError(AppException):
    """客户端请求错误异常"""

    def __init__(self, msg: str = "错误的请求"):
        super().__init__(code=400, status_code=400, msg=msg)


class NotFoundError(AppException):
    """资源未找到异常"""

    def __init__(self, msg: str = "资源未找到"):
        super().__init__(code=404, status_code=404, msg=msg)


class ForbiddenError(AppException):
    """权限不足异常"""

    def __init__(self, msg: str = "无权访问"):
        super().__init__(code=403, status_code=403, msg=msg)


class ValidationFailedError(ForbiddenError):
    """写入后回读不到元数据(授权策略拒绝或一致性延迟)"""

    def __init__(self, msg: str = "无法读取文件的元数据"):
        super().__init__(msg=msg)


class ServerRequestsError(AppException):
    """服务器请求错误异常"""

    def __init__(self, msg: str = "服务器请求错误"):
        super().__init__(code=500, status_code=500, msg=msg)


class BlobWriteFailedError(ServerRequestsError):
    """文件写入存储失败，元数据尚未改动，可整体重试"""

    def __init__(self, msg: str = "文件写入存储失败"):
        super().__init__(msg=msg)


class MetadataWriteFailedError(ServerRequestsError):
    """元数据目录更新失败"""

    def __init__(self, msg: str = "文件元数据写入失败", outcome_unknown: bool = False):
        super().__init__(msg=msg)
        self.outcome_unknown = outcome_unknown


class InconsistentCatalogError(ServerRequestsError):
    """元数据目录中同一个id对应了多条记录"""

    def __init__(self, msg: str = "文件元数据不一致"):
        super().__init__(msg=msg)


class MissingBlobError(ServerRequestsError):
    """元数据存在但文件存储中找不到对应文件"""

    def __init__(
        self,
        msg: str = "在存储路径中找不到文件，请检查物理文件是否存在以及服务的挂载点是否正确",
    ):
        super().__init__(msg=msg)
