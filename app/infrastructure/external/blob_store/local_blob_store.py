import logging
import os
import urllib.parse
from functools import partial
from pathlib import Path
from typing import BinaryIO, List, Optional

import anyio
from app.domain.external.blob_store import (
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    BlobStoreTimeoutError,
    InvalidBlobNameError,
    check_blob_name,
)

logger = logging.getLogger(__name__)

SHARE_SCHEME = "share://"


class LocalBlobStore(BlobStore):
    """基于本地共享目录的扁平文件存储，uri形如 share://<相对路径>/<文件名>"""

    def __init__(
        self,
        root: str,
        relative_path: str = "",
        timeout: Optional[float] = None,
    ) -> None:
        """构造函数，root为实际存储目录，relative_path为其在共享目录下的相对路径"""
        self._root = Path(root)
        self._relative_path = relative_path.strip("/")
        self._timeout = timeout

    @property
    def root(self) -> Path:
        return self._root

    def init(self) -> None:
        """确保存储目录存在"""
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info(f"本地文件存储目录已就绪: {self._root}")

    def _path(self, name: str) -> Path:
        check_blob_name(name)
        path = self._root / name
        if path.parent != self._root:
            raise InvalidBlobNameError(f"非法的文件名: {name!r}")
        return path

    async def _run(self, fn, *args, timeout: Optional[float] = None):
        effective_timeout = timeout if timeout is not None else self._timeout
        try:
            with anyio.fail_after(effective_timeout):
                return await anyio.to_thread.run_sync(partial(fn, *args))
        except TimeoutError as e:
            raise BlobStoreTimeoutError("本地文件存储操作超时") from e
        except FileNotFoundError as e:
            raise BlobNotFoundError(str(e)) from e
        except OSError as e:
            raise BlobStoreError(str(e)) from e

    async def write(
        self, name: str, data: bytes, timeout: Optional[float] = None
    ) -> None:
        path = self._path(name)

        def _write() -> None:
            with open(path, "wb") as f:
                f.write(data)

        await self._run(_write, timeout=timeout)

    async def size_of(self, name: str, timeout: Optional[float] = None) -> int:
        return await self._run(os.path.getsize, self._path(name), timeout=timeout)

    async def exists(self, name: str, timeout: Optional[float] = None) -> bool:
        return await self._run(self._path(name).is_file, timeout=timeout)

    async def delete(self, name: str, timeout: Optional[float] = None) -> None:
        path = self._path(name)
        await self._run(partial(path.unlink, missing_ok=True), timeout=timeout)

    async def open(self, name: str, timeout: Optional[float] = None) -> BinaryIO:
        return await self._run(open, self._path(name), "rb", timeout=timeout)

    async def list_names(self, timeout: Optional[float] = None) -> List[str]:
        def _list() -> List[str]:
            return sorted(p.name for p in self._root.iterdir() if p.is_file())

        return await self._run(_list, timeout=timeout)

    def _uri_prefix(self) -> str:
        if self._relative_path:
            return f"{SHARE_SCHEME}{urllib.parse.quote(self._relative_path, safe='/')}/"
        return SHARE_SCHEME

    def uri_for(self, name: str) -> str:
        """文件名经过百分号编码，扩展名中的空格、引号等字符不会进入uri"""
        check_blob_name(name)
        return f"{self._uri_prefix()}{urllib.parse.quote(name, safe='')}"

    def name_from_uri(self, uri: str) -> Optional[str]:
        prefix = self._uri_prefix()
        if not uri.startswith(prefix):
            return None
        try:
            return check_blob_name(urllib.parse.unquote(uri[len(prefix):]))
        except InvalidBlobNameError:
            logger.warning(f"uri指向存储目录之外的位置: {uri}")
            return None

    def location_of(self, name: str) -> str:
        return str(self._path(name))
