from pydantic import BaseModel, ConfigDict, Field

from app.domain.models.file import FileInfo, UploadedFile


class FileAttributes(BaseModel):
    """对外暴露的文件属性"""

    name: str
    format: str
    size: int
    extension: str


class FileData(BaseModel):
    type: str = "files"
    id: str
    attributes: FileAttributes


class FileLinks(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    self_link: str = Field(alias="self")


class FileDocument(BaseModel):
    """JSON:API文件资源文档"""

    data: FileData
    links: FileLinks

    @staticmethod
    def from_uploaded(uploaded: UploadedFile, self_link: str) -> "FileDocument":
        """根据上传结果构建文档，对外id与文件名使用上传记录"""
        upload = uploaded.upload
        return FileDocument(
            data=FileData(
                id=upload.id,
                attributes=FileAttributes(
                    name=upload.name,
                    format=upload.format,
                    size=upload.size,
                    extension=upload.extension,
                ),
            ),
            links=FileLinks(self_link=self_link),
        )

    @staticmethod
    def from_info(info: FileInfo, self_link: str) -> "FileDocument":
        return FileDocument(
            data=FileData(
                id=info.id,
                attributes=FileAttributes(
                    name=info.name,
                    format=info.format,
                    size=info.size,
                    extension=info.extension,
                ),
            ),
            links=FileLinks(self_link=self_link),
        )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
