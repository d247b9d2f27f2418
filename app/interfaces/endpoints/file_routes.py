import logging
import mimetypes
import urllib.parse
from typing import Optional

from app.application.errors.exceptions import BadRequestError
from app.application.services.deletion_service import DeletionService
from app.application.services.retrieval_service import RetrievalService
from app.application.services.upload_service import UploadService
from app.interfaces.dependencies import get_self_link_base
from app.interfaces.schemas import JSONAPI_MEDIA_TYPE, FileDocument
from app.interfaces.service_dependencies import (
    get_deletion_service,
    get_retrieval_service,
    get_upload_service,
)
from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask
from starlette.responses import Response as StarletteResponse
from starlette.responses import StreamingResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/files", tags=["文件模块"])

DEFAULT_FORMAT = "application/octet-stream"


def _clean_filename(filename: Optional[str]) -> str:
    """只保留上传文件名的最后一段，去掉客户端附带的目录"""
    return (filename or "").replace("\\", "/").split("/")[-1].strip()


def _detect_format(filename: str, declared: Optional[str]) -> str:
    """优先使用上传时声明的类型，缺失时根据文件名推断"""
    if declared and declared != DEFAULT_FORMAT:
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or declared or DEFAULT_FORMAT


@router.post(
    path="",
    status_code=201,
    summary="文件上传接口",
    description="上传文件，生成一条上传记录与一条物理文件记录，并将文件写入存储",
)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    self_link_base: str = Depends(get_self_link_base),
    upload_service: UploadService = Depends(get_upload_service),
) -> JSONResponse:
    """文件上传接口，传递multipart中的file字段，返回文件资源文档"""
    # 1.校验文件参数
    if file is None:
        raise BadRequestError("缺少文件参数file")
    filename = _clean_filename(file.filename)
    if not filename:
        raise BadRequestError("上传文件缺少文件名")

    # 2.读取内容并识别格式
    content = await file.read()
    detected_format = _detect_format(filename, file.content_type)

    # 3.调用服务完成文件+元数据的写入
    uploaded = await upload_service.create(
        original_filename=filename,
        content=content,
        detected_format=detected_format,
    )

    document = FileDocument.from_uploaded(
        uploaded, self_link=f"{self_link_base.rstrip('/')}/{uploaded.upload.id}"
    )
    return JSONResponse(
        status_code=201,
        content=document.to_json(),
        media_type=JSONAPI_MEDIA_TYPE,
    )


@router.get(
    path="/{file_id}",
    summary="获取文件信息接口",
    description="根据文件id获取文件的名字、格式、大小与扩展名",
)
async def get_file_info(
    file_id: str,
    self_link_base: str = Depends(get_self_link_base),
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
) -> JSONResponse:
    """获取文件元数据"""
    fileinfo = await retrieval_service.get_metadata(file_id)
    document = FileDocument.from_info(fileinfo, self_link=self_link_base)
    return JSONResponse(
        status_code=200,
        content=document.to_json(),
        media_type=JSONAPI_MEDIA_TYPE,
    )


@router.get(
    path="/{file_id}/download",
    summary="文件下载接口",
    description="下载文件内容，content-disposition=inline时在浏览器中直接展示",
)
async def download_file(
    file_id: str,
    name: Optional[str] = Query(None),
    content_disposition: Optional[str] = Query(None, alias="content-disposition"),
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
) -> StreamingResponse:
    """下载指定的文件"""
    # 1.调用服务获取文件流与物理位置
    file_data, location = await retrieval_service.open_download(file_id)

    # 2.计算下载文件名与展示方式
    filename = name or location.stored_name
    disposition = (
        "inline"
        if content_disposition and content_disposition.lower() == "inline"
        else "attachment"
    )
    encoded_filename = urllib.parse.quote(filename)
    media_type, _ = mimetypes.guess_type(filename)

    # 3.返回文件流数据，响应结束后关闭文件
    return StreamingResponse(
        content=file_data,
        media_type=media_type or DEFAULT_FORMAT,
        headers={
            "Content-Disposition": f"{disposition}; filename*=utf-8''{encoded_filename}",
        },
        background=BackgroundTask(file_data.close),
    )


@router.delete(
    path="/{file_id}",
    status_code=204,
    summary="删除文件接口",
    description="删除文件的元数据与物理文件",
)
async def delete_file(
    file_id: str,
    deletion_service: DeletionService = Depends(get_deletion_service),
) -> StarletteResponse:
    """删除指定的文件，先删元数据再删物理文件"""
    await deletion_service.delete(file_id)
    return StarletteResponse(status_code=204)
