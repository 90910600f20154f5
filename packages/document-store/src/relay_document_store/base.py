"""Backend-agnostic document store interface.

Backends only guarantee key-addressed reads and writes under their prefix,
with per-key last-write-wins. Anything needing ordering has to encode it in
the key or the document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePosixPath


class DocumentStoreClient(ABC):
    """Reads and writes opaque documents by key under a fixed prefix."""

    def __init__(self, prefix: str | PurePosixPath) -> None:
        self.prefix = PurePosixPath("/") / PurePosixPath(prefix)

    def _check_key(self, key: str) -> str:
        """Keys are opaque: any non-empty string, compared byte for byte.

        Backends must map distinct keys to distinct documents, so no key is
        normalized (`a//b`, `a/b/`, `./a` are all different keys).
        """
        if not key:
            raise ValueError("Document key must not be empty")
        return key

    @abstractmethod
    def write(self, key: str, document: bytes) -> None:
        """Store a document, replacing any existing one under the same key."""

    @abstractmethod
    def read(self, key: str) -> bytes | None:
        """Return the document for a key, or None if nothing was written."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a document. Returns whether one existed."""

    def put(self, key: str, document: bytes) -> None:
        self.write(key, document)

    def get(self, key: str) -> bytes | None:
        return self.read(key)
