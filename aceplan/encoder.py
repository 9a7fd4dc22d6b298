"""
Binary encoder: blobs to data URLs and back.

The key-value store only holds strings, so file content is kept as
`data:<mime>;base64,<bytes>`. Base64 keeps arbitrary bytes (null bytes,
invalid UTF-8) intact, whatever the MIME label says.
"""

import base64
import mimetypes
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, Tuple, Union

import aiofiles

from .errors import ReadError

DEFAULT_MIME_TYPE = "application/octet-stream"


def _now_ms() -> int:
    return int(time.time() * 1000)


class Blob(Protocol):
    name: str
    type: str
    size: int
    last_modified: int

    async def read(self) -> bytes: ...


@dataclass
class MemoryBlob:
    name: str
    data: bytes
    type: str = ""
    last_modified: int = field(default_factory=_now_ms)

    @property
    def size(self) -> int:
        return len(self.data)

    async def read(self) -> bytes:
        return self.data


class FileBlob:
    """A file on disk, read without blocking the event loop."""

    def __init__(self, path: Union[str, Path], type: Optional[str] = None, name: Optional[str] = None):
        self.path = Path(path)
        self.name = name or self.path.name
        if type is None:
            type, _ = mimetypes.guess_type(self.name)
        self.type = type or ""

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    @property
    def last_modified(self) -> int:
        return int(os.path.getmtime(self.path) * 1000)

    async def read(self) -> bytes:
        async with aiofiles.open(self.path, "rb") as f:
            return await f.read()


async def encode(blob: Blob) -> str:
    """Reads the whole blob and returns it as a base64 data URL."""
    try:
        data = await blob.read()
    except OSError as e:
        raise ReadError(blob.name, e) from e
    mime_type = blob.type or DEFAULT_MIME_TYPE
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode(payload: str) -> Tuple[str, bytes]:
    """
    Splits a data URL into its MIME type and raw bytes.

    Only the base64 form produced by `encode` is understood; anything else
    raises ValueError. A blob encoded with an empty type comes back as
    application/octet-stream, the same as a browser FileReader.
    """
    # The MIME type may hold commas, base64 never does
    header, sep, body = payload.rpartition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URL")
    mime_type = header[len("data:"):-len(";base64")] or DEFAULT_MIME_TYPE
    # binascii.Error is a ValueError
    return mime_type, base64.b64decode(body, validate=True)
