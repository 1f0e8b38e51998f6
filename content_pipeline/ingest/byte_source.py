"""
Byte sources for uploads and certificate loading.

The runtime environment decides how local references turn into bytes. A
ByteSourceFactory is picked once, when the client is constructed, instead of
checking the environment on every call.
"""

import os
from abc import ABC, abstractmethod
import aiofiles

from ..errors import UnsupportedEnvironmentError


class ByteSource(ABC):
    """Produces the bytes of one upload."""

    filename: str = "file"

    @abstractmethod
    async def read(self) -> bytes:
        pass


class FileByteSource(ByteSource):
    """Reads a file from the local filesystem."""

    def __init__(self, path: str):
        self.path = path
        self.filename = os.path.basename(path) or "file"

    async def read(self) -> bytes:
        async with aiofiles.open(self.path, "rb") as f:
            return await f.read()


class InMemoryByteSource(ByteSource):
    """Bytes already held in memory."""

    def __init__(self, data: bytes, filename: str = "file"):
        self.data = data
        self.filename = filename

    @classmethod
    def from_text(cls, text: str, filename: str = "document.txt") -> "InMemoryByteSource":
        return cls(text.encode("utf-8"), filename)

    async def read(self) -> bytes:
        return self.data


class ByteSourceFactory(ABC):
    """Turns local references into byte sources for one environment."""

    filesystem_access: bool = False

    @abstractmethod
    def from_path(self, path: str) -> ByteSource:
        pass

    def resolve(self, source) -> ByteSource:
        """Accept a ByteSource as-is, or a path string via from_path."""
        if isinstance(source, ByteSource):
            return source
        if isinstance(source, (str, os.PathLike)):
            return self.from_path(os.fspath(source))
        raise TypeError(f"Expected a ByteSource or a path, got {type(source).__name__}")


class LocalFilesystem(ByteSourceFactory):
    filesystem_access = True

    def from_path(self, path: str) -> ByteSource:
        return FileByteSource(path)


class InMemoryOnly(ByteSourceFactory):
    """An environment without filesystem access; only in-memory sources work."""

    def from_path(self, path: str) -> ByteSource:
        raise UnsupportedEnvironmentError(
            f"Cannot read '{path}': filesystem access is not available in this environment"
        )
