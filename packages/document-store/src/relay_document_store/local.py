"""Filesystem-backed document store for local development and tests."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from relay_document_store.base import DocumentStoreClient

logger = logging.getLogger(__name__)


class LocalDocumentStore(DocumentStoreClient):
    """Stores each document as one file under `<root>/<prefix>/`.

    The file name is the percent-encoded key with dots escaped too, so
    `42/0/status` is stored as `42%2F0%2Fstatus`. Distinct keys always get
    distinct files, and a key can never name a directory or climb out of the
    prefix. Encoded names never start with a dot, so temp files can't clash.
    Keys whose encoded name exceeds the filesystem's name limit are rejected
    by the OS.
    """

    def __init__(self, root: Path, prefix: str | PurePosixPath) -> None:
        super().__init__(prefix)
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        name = quote(self._check_key(key), safe="").replace(".", "%2E")
        return self.root / str(self.prefix).lstrip("/") / name

    def write(self, key: str, document: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so concurrent readers never see a partial document.
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(document)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {len(document)} bytes to {path}")

    def read(self, key: str) -> bytes | None:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return False
        return True
