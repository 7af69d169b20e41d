from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from src.backend.config import settings
from src.backend.domain.models.document import Document
from src.backend.infra.storage.documents import DocumentStorageBackend, document_storage_backend

# Sample library handed to every user on their first listing.
_DEMO_DOCUMENTS = (
    ("Blood Test Results.pdf", "PDF Document", "/mock-documents/blood-test.pdf", "2025-01-15T10:30:00Z"),
    ("MRI Scan Report.pdf", "PDF Document", "/mock-documents/mri-scan.pdf", "2025-02-03T14:45:00Z"),
    ("Doctor Referral.docx", "Word Document", "/mock-documents/referral.docx", "2025-02-10T09:15:00Z"),
    ("Medication List.xlsx", "Excel Spreadsheet", "/mock-documents/medications.xlsx", "2025-02-18T16:20:00Z"),
    ("Allergy Report.pdf", "PDF Document", "/mock-documents/allergy.pdf", "2025-03-01T11:10:00Z"),
)

_TYPE_BY_SUFFIX = {
    ".pdf": "PDF Document",
    ".doc": "Word Document",
    ".docx": "Word Document",
    ".xls": "Excel Spreadsheet",
    ".xlsx": "Excel Spreadsheet",
    ".png": "Image",
    ".jpg": "Image",
    ".jpeg": "Image",
}


def describe_file_type(filename: str) -> str:
    return _TYPE_BY_SUFFIX.get(Path(filename).suffix.lower(), "Document")


class InMemoryDocumentService:
    """In-memory registry of patient documents.

    Uploaded bytes go to the document storage backend; documents registered
    by metadata only keep their placeholder URL.
    """

    def __init__(self, *, storage: Optional[DocumentStorageBackend] = None, seed: bool = False) -> None:
        self._documents: Dict[str, Document] = {}
        self._seeded_users: set[str] = set()
        # Ids of documents whose file this service wrote; only their files are deleted.
        self._uploaded_ids: set[str] = set()
        self._storage = storage or document_storage_backend
        self._seed = seed

    def _seed_for_user(self, user_id: str) -> None:
        if not self._seed or user_id in self._seeded_users:
            return
        self._seeded_users.add(user_id)
        for index, (name, type_, url, uploaded_at) in enumerate(_DEMO_DOCUMENTS, start=1):
            doc = Document.model_validate(
                dict(id=f"{user_id}_d{index}", name=name, type=type_, url=url, uploaded_at=uploaded_at, user_id=user_id)
            )
            self._documents[doc.id] = doc

    def list_documents(self, user_id: str) -> List[Document]:
        self._seed_for_user(user_id)
        docs = [d for d in self._documents.values() if d.user_id == user_id]
        return sorted(docs, key=lambda d: d.uploaded_at)

    def get_document(self, document_id: str) -> Optional[Document]:
        return self._documents.get(document_id)

    def owns_all(self, user_id: str, document_ids: Iterable[str]) -> bool:
        self._seed_for_user(user_id)
        for document_id in document_ids:
            doc = self._documents.get(document_id)
            if doc is None or doc.user_id != user_id:
                return False
        return True

    def create_document(self, *, user_id: str, name: str, type: str, url: str) -> Document:
        self._seed_for_user(user_id)
        doc = Document(
            id=f"d{uuid4().hex[:12]}",
            name=name,
            type=type,
            url=url,
            uploaded_at=datetime.now(timezone.utc),
            user_id=user_id,
        )
        self._documents[doc.id] = doc
        return doc

    def upload_document(self, *, user_id: str, filename: str, content: bytes) -> Document:
        """Persist uploaded bytes and register them as a document."""

        document_id = f"d{uuid4().hex[:12]}"
        suffix = Path(filename).suffix
        dest_ref = self._storage.save_file(content, name=f"{document_id}{suffix}")
        self._seed_for_user(user_id)
        doc = Document(
            id=document_id,
            name=filename,
            type=describe_file_type(filename),
            url=dest_ref,
            uploaded_at=datetime.now(timezone.utc),
            user_id=user_id,
        )
        self._uploaded_ids.add(doc.id)
        self._documents[doc.id] = doc
        return doc

    def delete_document(self, document_id: str) -> Optional[Document]:
        doc = self._documents.pop(document_id, None)
        if doc is None:
            return None
        if document_id in self._uploaded_ids:
            self._uploaded_ids.discard(document_id)
            if self._storage.owns(doc.url):
                self._storage.delete_file(doc.url)
        return doc


document_service = InMemoryDocumentService(seed=settings.seed_demo_data)
