"""Blob store: raw file bytes under a root directory, one file per blob."""

import logging
import os
import uuid
from pathlib import Path
from typing import Union

log = logging.getLogger(__name__)


class BlobStore:
    """Write-once blobs addressed by generated names under ``root``.

    Writes go to a temporary name in the same directory and are renamed into
    place, so readers never see a partially written blob. Paths that resolve
    outside ``root`` (e.g. a tampered local_path) are treated as missing.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _ensure_root(self) -> None:
        # Idempotent; concurrent creators are fine
        self.root.mkdir(parents=True, exist_ok=True)

    def _inside_root(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self.root.resolve())
        except ValueError:
            return False
        return True

    def _atomic_write(self, target: Path, data: bytes) -> None:
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError:
            if tmp.exists():
                tmp.unlink()
            raise

    def write(self, data: bytes) -> str:
        """Store data under a new unique name and return its local path."""
        self._ensure_root()
        target = self.root / str(uuid.uuid4())
        self._atomic_write(target, data)
        log.debug("blob written path=%s size=%d", target, len(data))
        return str(target)

    def write_derived(self, local_path: str, suffix: str, data: bytes) -> str:
        """Store a variant of an existing blob at ``local_path + "_" + suffix``."""
        target = Path(f"{local_path}_{suffix}")
        if not self._inside_root(target):
            raise ValueError(f"Derived path outside blob root: {target}")
        self._ensure_root()
        self._atomic_write(target, data)
        return str(target)

    def exists(self, local_path: str) -> bool:
        path = Path(local_path)
        return self._inside_root(path) and path.is_file()

    def read(self, local_path: str) -> bytes:
        """Return blob bytes. Raises FileNotFoundError if missing or outside root."""
        if not self.exists(local_path):
            raise FileNotFoundError(f"Blob not found: {local_path}")
        return Path(local_path).read_bytes()
