"""上传资源与物理文件资源在元数据目录中的记录形状

一次上传对应两条 nfo:FileDataObject 记录: 逻辑上传记录与物理文件记录，
物理文件记录通过 nie:dataSource 指向逻辑上传记录。
"""
from typing import Tuple

from app.domain.external.metadata_catalog import Binding
from app.domain.models.file import FileInfo, FileResource, UploadedFile, UploadResource
from app.domain.models.statement import (
    IRI,
    DeleteWhere,
    InsertData,
    Literal,
    SelectQuery,
    Triple,
    Variable,
)
from app.domain.models.vocabulary import (
    DBPEDIA_FILE_EXTENSION,
    DCT_CREATED,
    DCT_FORMAT,
    DCT_MODIFIED,
    MU_UUID,
    NFO_FILE_DATA_OBJECT,
    NFO_FILE_NAME,
    NFO_FILE_SIZE,
    NIE_DATA_SOURCE,
    RDF_TYPE,
)


def _upload_triples(upload: UploadResource) -> Tuple[Triple, ...]:
    subject = IRI(upload.uri)
    return (
        Triple(subject, RDF_TYPE, NFO_FILE_DATA_OBJECT),
        Triple(subject, NFO_FILE_NAME, Literal(upload.name)),
        Triple(subject, MU_UUID, Literal(upload.id)),
        Triple(subject, DCT_FORMAT, Literal(upload.format)),
        Triple(subject, NFO_FILE_SIZE, Literal(upload.size)),
        Triple(subject, DBPEDIA_FILE_EXTENSION, Literal(upload.extension)),
        Triple(subject, DCT_CREATED, Literal(upload.created)),
        Triple(subject, DCT_MODIFIED, Literal(upload.modified)),
    )


def _file_triples(file: FileResource) -> Tuple[Triple, ...]:
    subject = IRI(file.uri)
    return (
        Triple(subject, RDF_TYPE, NFO_FILE_DATA_OBJECT),
        Triple(subject, NIE_DATA_SOURCE, IRI(file.data_source)),
        Triple(subject, NFO_FILE_NAME, Literal(file.stored_name)),
        Triple(subject, MU_UUID, Literal(file.id)),
        Triple(subject, DCT_FORMAT, Literal(file.format)),
        Triple(subject, NFO_FILE_SIZE, Literal(file.size)),
        Triple(subject, DBPEDIA_FILE_EXTENSION, Literal(file.extension)),
        Triple(subject, DCT_CREATED, Literal(file.created)),
        Triple(subject, DCT_MODIFIED, Literal(file.modified)),
    )


def insert_uploaded_file(graph: str, uploaded: UploadedFile) -> InsertData:
    """同时插入上传记录、文件记录以及两者之间的派生关系"""
    return InsertData(
        graph=graph,
        triples=_upload_triples(uploaded.upload) + _file_triples(uploaded.file),
    )


def select_file_info(graph: str, resource_id: str) -> SelectQuery:
    """根据id查询文件基础信息"""
    uri = Variable("uri")
    return SelectQuery(
        graph=graph,
        variables=("uri", "name", "format", "size", "extension"),
        patterns=(
            Triple(uri, MU_UUID, Literal(resource_id)),
            Triple(uri, NFO_FILE_NAME, Variable("name")),
            Triple(uri, DCT_FORMAT, Variable("format")),
            Triple(uri, DBPEDIA_FILE_EXTENSION, Variable("extension")),
            Triple(uri, NFO_FILE_SIZE, Variable("size")),
        ),
    )


def select_derived_file(graph: str, upload_id: str) -> SelectQuery:
    """根据上传id查询派生出的物理文件uri"""
    return SelectQuery(
        graph=graph,
        variables=("uri", "fileUrl"),
        patterns=(
            Triple(Variable("uri"), MU_UUID, Literal(upload_id)),
            Triple(Variable("fileUrl"), NIE_DATA_SOURCE, Variable("uri")),
        ),
    )


def select_all_files(graph: str) -> SelectQuery:
    """查询目录中所有的物理文件记录uri"""
    file_url = Variable("fileUrl")
    return SelectQuery(
        graph=graph,
        variables=("fileUrl",),
        patterns=(
            Triple(file_url, RDF_TYPE, NFO_FILE_DATA_OBJECT),
            Triple(file_url, NIE_DATA_SOURCE, Variable("uri")),
        ),
        distinct=True,
    )


def delete_upload_record(graph: str, upload_uri: str) -> DeleteWhere:
    """按上传记录的完整形状删除，字段已被并发修改时不会匹配"""
    subject = IRI(upload_uri)
    return DeleteWhere(
        graph=graph,
        patterns=(
            Triple(subject, RDF_TYPE, NFO_FILE_DATA_OBJECT),
            Triple(subject, NFO_FILE_NAME, Variable("upload_name")),
            Triple(subject, MU_UUID, Variable("upload_id")),
            Triple(subject, DCT_FORMAT, Variable("upload_format")),
            Triple(subject, DBPEDIA_FILE_EXTENSION, Variable("upload_extension")),
            Triple(subject, NFO_FILE_SIZE, Variable("upload_size")),
            Triple(subject, DCT_CREATED, Variable("upload_created")),
            Triple(subject, DCT_MODIFIED, Variable("upload_modified")),
        ),
    )


def delete_file_record(graph: str, file_uri: str, upload_uri: str) -> DeleteWhere:
    subject = IRI(file_uri)
    return DeleteWhere(
        graph=graph,
        patterns=(
            Triple(subject, RDF_TYPE, NFO_FILE_DATA_OBJECT),
            Triple(subject, NIE_DATA_SOURCE, IRI(upload_uri)),
            Triple(subject, NFO_FILE_NAME, Variable("fileName")),
            Triple(subject, MU_UUID, Variable("id")),
            Triple(subject, DCT_FORMAT, Variable("format")),
            Triple(subject, DBPEDIA_FILE_EXTENSION, Variable("extension")),
            Triple(subject, NFO_FILE_SIZE, Variable("size")),
            Triple(subject, DCT_CREATED, Variable("created")),
            Triple(subject, DCT_MODIFIED, Variable("modified")),
        ),
    )


def file_info_from_binding(resource_id: str, binding: Binding) -> FileInfo:
    """将查询结果的一行转换为文件信息"""
    return FileInfo(
        id=resource_id,
        uri=binding.get("uri", ""),
        name=binding["name"],
        format=binding["format"],
        size=int(binding["size"]),
        extension=binding["extension"],
    )
