from __future__ import annotations

import logging
import mmap
import os
from pathlib import Path

from sentishard.errors import SourceUnavailableError

LOG = logging.getLogger(__name__)


class MappedFile:
    """Read-only memory-mapped view of one file.

    Only byte-range reads and separator searches are exposed. The mapping is
    owned by whoever opened it and released on :meth:`close`. Empty files are
    not mapped (``mmap`` refuses zero-length maps) and behave as a view of size 0.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.size = 0
        self._handle = None
        self._map = None

    def open(self) -> "MappedFile":
        if self._handle is not None:
            return self
        try:
            handle = open(self.path, "rb")
        except OSError as exc:
            raise SourceUnavailableError("cannot open input file", self.path, exc) from exc
        try:
            size = os.fstat(handle.fileno()).st_size
            mapped = mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) if size else None
        except (OSError, ValueError) as exc:
            handle.close()
            raise SourceUnavailableError("cannot map input file", self.path, exc) from exc
        self._handle = handle
        self._map = mapped
        self.size = int(size)
        if LOG.isEnabledFor(logging.DEBUG):
            LOG.debug("mapped path=%s size=%d", self.path, self.size)
        return self

    @property
    def closed(self) -> bool:
        return self._handle is None

    def find(self, sub: bytes, start: int, end: int | None = None) -> int:
        if self._map is None:
            return -1
        stop = self.size if end is None else min(int(end), self.size)
        return self._map.find(sub, int(start), stop)

    def read(self, start: int, end: int) -> bytes:
        if self._map is None:
            return b""
        return self._map[int(start):int(end)]

    def close(self) -> None:
        mapped, handle = self._map, self._handle
        self._map = None
        self._handle = None
        try:
            if mapped is not None:
                mapped.close()
        finally:
            if handle is not None:
                handle.close()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def file_size(path) -> int:
    try:
        return int(os.stat(path).st_size)
    except OSError as exc:
        raise SourceUnavailableError("cannot stat input file", path, exc) from exc
