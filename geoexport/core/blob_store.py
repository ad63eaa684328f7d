"""Blob storage used for the input archive and the published export."""
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from geoexport.core.exceptions import BlobNotFoundError
from geoexport.utils.logging import log_structured


class BlobStore(ABC):
    """Base class for blob stores scoped to one bucket."""

    @abstractmethod
    def get(self, name: str) -> bytes:
        """
        Read a blob.

        Args:
            name: Blob name within the bucket

        Returns:
            Blob contents

        Raises:
            BlobNotFoundError: if the blob does not exist
        """
        pass

    @abstractmethod
    def put(self, name: str, data: bytes) -> None:
        """Write a blob, replacing any existing one."""
        pass

    @abstractmethod
    def copy(self, source: str, dest_bucket: str, dest_name: str) -> None:
        """Copy a blob of this bucket to another bucket."""
        pass

    @abstractmethod
    def exists(self, name: str) -> bool:
        pass


class LocalDiskBlobStore(BlobStore):
    """Blob store backed by a folder per bucket under ``base_folder``."""

    def __init__(self, base_folder: Path, bucket: str):
        self.base_folder = Path(base_folder)
        self.bucket = bucket

    def _path(self, name: str, bucket: str = None) -> Path:
        return self.base_folder / (bucket or self.bucket) / name

    def get(self, name: str) -> bytes:
        path = self._path(name)
        if not path.is_file():
            raise BlobNotFoundError(f"Blob not found: {self.bucket}/{name}")
        return path.read_bytes()

    def put(self, name: str, data: bytes) -> None:
        _write_atomically(self._path(name), lambda tmp: tmp.write_bytes(data))
        log_structured("info", "Blob written", bucket=self.bucket, blob=name, size=len(data))

    def copy(self, source: str, dest_bucket: str, dest_name: str) -> None:
        source_path = self._path(source)
        if not source_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {self.bucket}/{source}")
        _write_atomically(self._path(dest_name, dest_bucket), lambda tmp: shutil.copyfile(source_path, tmp))
        log_structured("info", "Blob copied", source=f"{self.bucket}/{source}", dest=f"{dest_bucket}/{dest_name}")

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()


def _write_atomically(path: Path, write: Callable[[Path], object]) -> None:
    """Write through a temporary sibling so readers never see a partial blob."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        write(tmp_path)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)
