from .base import JSONAPI_MEDIA_TYPE, ErrorDocument, ErrorObject, Response
from .file import FileAttributes, FileData, FileDocument, FileLinks

__all__ = [
    "JSONAPI_MEDIA_TYPE",
    "Response",
    "ErrorDocument",
    "ErrorObject",
    "FileAttributes",
    "FileData",
    "FileDocument",
    "FileLinks",
]
