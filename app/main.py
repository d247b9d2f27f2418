import logging
from contextlib import asynccontextmanager

from app.infrastructure.external.blob_store.local_blob_store import LocalBlobStore
from app.infrastructure.logging import setup_logging
from app.infrastructure.storage.minio import get_minio
from app.infrastructure.storage.sparql import get_sparql
from app.interfaces.endpoints.routes import router as api_router
from app.interfaces.errors.exception_handlers import register_exception_handlers
from app.interfaces.service_dependencies import get_blob_store
from core.config import get_settings
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

# 加载配置信息
settings = get_settings()

# 初始化日志记录
setup_logging()
logger = logging.getLogger()

logger.info("应用程序启动中...")

# 定义FastApi路由tags标签
openapi_tags = [
    {
        "name": "文件模块",
        "description": "包含文件的 **上传/查询/下载/删除** 等API 接口，文件与元数据同时维护。",
    },
    {
        "name": "状态模块",
        "description": "包含 **状态监测** 等API 接口，用于监测系统的运行状态。",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """创建FastAPI应用生命周期上下文管理器"""
    # 1.日志打印代码已经开始执行了
    logger.info("文件服务正在初始化")

    # 2.初始化SPARQL元数据目录客户端
    logger.info("开始初始化 SPARQL 客户端")
    sparql_client = get_sparql()
    await sparql_client.init()
    logger.info("SPARQL 客户端初始化完成")

    # 3.初始化文件存储
    minio_client = None
    if settings.storage_backend.lower() == "minio":
        logger.info("开始初始化 MinIO 客户端")
        minio_client = get_minio()
        await minio_client.init()
        await minio_client.ensure_bucket(settings.minio_bucket_name)
        logger.info("MinIO 客户端初始化完成")

    blob_store = get_blob_store()
    if isinstance(blob_store, LocalBlobStore):
        blob_store.init()

    try:
        # 4.lifespan分界点
        yield
    finally:
        # 5.应用关闭前的清理工作
        logger.info("文件服务正在关闭")
        await sparql_client.shutdown()
        if minio_client is not None:
            await minio_client.shutdown()
        get_blob_store.cache_clear()
        logger.info("文件服务关闭成功")


app = FastAPI(
    title="文件服务",
    description="文件上传服务，物理文件写入共享存储，文件元数据写入SPARQL元数据目录，并保证两侧的一致性",
    lifespan=lifespan,
    openapi_tags=openapi_tags,
    version="1.0.0",
)

# 配置CORS中间件，解决跨域问题
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 允许所有来源
    allow_credentials=True,
    allow_methods=["*"],  # 允许所有方法
    allow_headers=["*"],  # 允许所有头部
)

# 注册全局异常处理器
register_exception_handlers(app)

app.include_router(api_router)

logger.info("FastAPI应用程序实例已创建。")
