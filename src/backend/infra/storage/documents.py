from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from src.backend.config import settings


class DocumentStorageBackend(ABC):
    @abstractmethod
    def save_file(self, content: bytes, *, name: str) -> str:
        """Persist document bytes and return a URL/path reference."""

    @abstractmethod
    def delete_file(self, dest: str) -> None:
        """Best-effort deletion of a previously saved file."""

    @abstractmethod
    def owns(self, dest: str) -> bool:
        """Return True if ``dest`` refers to a file managed by this backend.

        Documents registered with a placeholder URL are never touched.
        """


class LocalDocumentStorageBackend(DocumentStorageBackend):
    def __init__(self, base: Path | None = None) -> None:
        self._base: Path = base or settings.document_upload_dir

    def save_file(self, content: bytes, *, name: str) -> str:
        self._base.mkdir(parents=True, exist_ok=True)
        dest_path = self._base / name
        dest_path.write_bytes(content)
        return str(dest_path)

    def delete_file(self, dest: str) -> None:
        path = Path(dest)
        if path.exists():
            try:
                path.unlink()
            except OSError:
                pass

    def owns(self, dest: str) -> bool:
        try:
            return Path(dest).resolve().is_relative_to(self._base.resolve())
        except (OSError, ValueError):
            return False


document_storage_backend: DocumentStorageBackend = LocalDocumentStorageBackend()
