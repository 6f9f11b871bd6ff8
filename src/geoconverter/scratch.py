"""Per-operation scratch namespace in GDAL's in-memory filesystem (/vsimem/)."""

from __future__ import annotations

import logging
import posixpath
import uuid

from osgeo import gdal

from .config import get_settings
from .errors import InputMaterializationError

logger = logging.getLogger(__name__)


class ScratchArena:
    """A uniquely prefixed /vsimem/ directory removed as a whole on exit.

    Use as a context manager; every file created under :attr:`prefix`
    (including sidecar files written by GDAL drivers) is unlinked when the
    block exits, whether or not it raised.
    """

    def __init__(self, root: str | None = None):
        root = (root or get_settings().scratch_root).rstrip("/")
        self.prefix = f"{root}/{uuid.uuid4().hex}"

    def __enter__(self) -> ScratchArena:
        gdal.MkdirRecursive(self.prefix, 0o755)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def path(self, *parts: str) -> str:
        return posixpath.join(self.prefix, *parts)

    def mkdir(self, name: str) -> str:
        path = self.path(name)
        gdal.MkdirRecursive(path, 0o755)
        return path

    def write_bytes(self, name: str, data: bytes) -> str:
        path = self.path(name)
        try:
            status = gdal.FileFromMemBuffer(path, data)
        except RuntimeError as exc:
            raise InputMaterializationError(f"Could not write {path}: {exc}") from exc
        if status not in (0, None):
            raise InputMaterializationError(f"Could not write {path}")
        return path

    def read_bytes(self, path: str) -> bytes:
        stat = gdal.VSIStatL(path)
        if stat is None or stat.size == 0:
            return b""
        handle = gdal.VSIFOpenL(path, "rb")
        if handle is None:
            return b""
        try:
            return gdal.VSIFReadL(1, stat.size, handle) or b""
        finally:
            gdal.VSIFCloseL(handle)

    def remove(self, path: str) -> None:
        if gdal.VSIStatL(path) is not None:
            gdal.Unlink(path)

    def list_entries(self, directory: str) -> list[str]:
        """Relative names of all files below ``directory`` (archives included)."""
        entries = gdal.ReadDirRecursive(directory) or []
        return sorted(e for e in entries if not e.endswith("/"))

    def cleanup(self) -> None:
        entries = gdal.ReadDirRecursive(self.prefix) or []
        # Deepest paths first so directories are empty when removed.
        for entry in sorted(entries, key=len, reverse=True):
            path = self.path(entry.rstrip("/"))
            if entry.endswith("/"):
                gdal.Rmdir(path)
            else:
                gdal.Unlink(path)
        if gdal.VSIStatL(self.prefix) is not None:
            gdal.Rmdir(self.prefix)
        logger.debug("Released scratch arena %s (%d entries)", self.prefix, len(entries))


def archive_path(archive: str, member: str = "") -> str:
    """Address a member inside a ZIP stored in the scratch store."""
    base = f"/vsizip/{archive}"
    return f"{base}/{member}" if member else base
