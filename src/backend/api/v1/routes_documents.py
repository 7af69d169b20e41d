from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from src.backend.config import settings
from src.backend.domain.models.document import Document
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import get_current_user
from src.backend.services.audit.service import audit_service
from src.backend.services.documents.service import document_service


router = APIRouter(
    prefix="/documents",
    tags=["documents"],
    dependencies=[Depends(latency_dependency)],
)


class DocumentCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    url: str = "/mock-documents/new-document.pdf"


@router.get("/", response_model=List[Document])
async def list_documents(current_user: User = Depends(get_current_user)) -> List[Document]:
    return document_service.list_documents(current_user.id)


@router.post("/", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(
    payload: DocumentCreateRequest,
    current_user: User = Depends(get_current_user),
) -> Document:
    document = document_service.create_document(
        user_id=current_user.id,
        name=payload.name,
        type=payload.type,
        url=payload.url,
    )

    audit_service.log_event(
        action="create_document",
        resource_type="document",
        resource_id=document.id,
    )

    return document


@router.post("/upload", response_model=Document, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
) -> Document:
    """Store an uploaded file and register it as a document.

    The bytes are written through the document storage backend; the stored
    path becomes the document's ``url``.
    """

    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing file name.")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file too large.",
        )

    document = document_service.upload_document(
        user_id=current_user.id,
        filename=file.filename,
        content=content,
    )

    audit_service.log_event(
        action="upload_document",
        resource_type="document",
        resource_id=document.id,
        extra={"size_bytes": len(content), "type": document.type},
    )

    return document


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    current_user: User = Depends(get_current_user),
) -> None:
    document = document_service.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    if document.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this document")

    document_service.delete_document(document_id)

    audit_service.log_event(
        action="delete_document",
        resource_type="document",
        resource_id=document_id,
    )
