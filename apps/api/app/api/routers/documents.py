"""Document register endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from apps.api.app.core.auth import require_current_user, require_roles
from apps.api.app.core.config import get_settings
from apps.api.app.core.enums import (
    MANAGEMENT_ROLES,
    DocumentStatus,
    DocumentType,
    StorageLocation,
    UserRole,
)
from apps.api.app.db.models import Document, User
from apps.api.app.db.session import get_db_session
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.document_conversion import (
    DocumentConversionError,
    convert_to_pdf,
    is_convertible,
)

router = APIRouter(prefix="/api/documents", tags=["documents"])

require_document_managers = require_roles(UserRole.ADMIN, UserRole.EDITOR)


class DocumentOwner(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    email: str


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    document_type: str
    storage_location: str
    version: str
    status: str
    owner_user_id: str
    owner: DocumentOwner
    requires_acknowledgement: bool
    last_review_date: datetime | None
    next_review_date: datetime | None
    last_changed_date: datetime | None
    document_url: str | None
    sharepoint_site_id: str | None
    sharepoint_drive_id: str | None
    sharepoint_item_id: str | None
    confluence_space_key: str | None
    confluence_page_id: str | None
    created_at: datetime
    updated_at: datetime


class DocumentCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    document_type: DocumentType
    storage_location: StorageLocation = StorageLocation.SHAREPOINT
    version: str = Field(min_length=1, max_length=32)
    status: DocumentStatus = DocumentStatus.DRAFT
    owner_user_id: str | None = None
    requires_acknowledgement: bool = False
    last_review_date: datetime | None = None
    next_review_date: datetime | None = None
    document_url: str | None = None
    sharepoint_site_id: str | None = None
    sharepoint_drive_id: str | None = None
    sharepoint_item_id: str | None = None
    confluence_space_key: str | None = None
    confluence_page_id: str | None = None


class DocumentUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    status: DocumentStatus | None = None
    version: str | None = Field(default=None, min_length=1, max_length=32)
    requires_acknowledgement: bool | None = None
    last_review_date: datetime | None = None
    next_review_date: datetime | None = None
    document_url: str | None = None


def _load_visible_document(db: Session, document_id: str, user: User) -> Document:
    document = db.get(Document, document_id)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="document not found")
    if user.role not in MANAGEMENT_ROLES and document.status != DocumentStatus.APPROVED.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="document not found")
    return document


@router.get("", response_model=list[DocumentResponse])
def list_documents(
    status_filter: DocumentStatus | None = Query(default=None, alias="status"),
    user: User = Depends(require_current_user),
    db: Session = Depends(get_db_session),
) -> list[Document]:
    statement = select(Document)
    if user.role not in MANAGEMENT_ROLES:
        statement = statement.where(Document.status == DocumentStatus.APPROVED.value)
    if status_filter is not None:
        statement = statement.where(Document.status == status_filter.value)
    statement = statement.order_by(Document.title.asc(), Document.id.asc())
    return list(db.scalars(statement).unique().all())


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: DocumentCreateRequest,
    user: User = Depends(require_document_managers),
    db: Session = Depends(get_db_session),
) -> Document:
    owner_user_id = payload.owner_user_id or user.id
    if db.get(User, owner_user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="owner not found")

    values = payload.model_dump(exclude={"owner_user_id"})
    for key in ("document_type", "storage_location", "status"):
        values[key] = values[key].value
    document = Document(owner_user_id=owner_user_id, **values)
    db.add(document)
    db.commit()
    db.refresh(document)
    log_structured_event(
        "document_created",
        document_id=document.id,
        actor_user_id=user.id,
        status=document.status,
        version=document.version,
    )
    return document


@router.post("/convert")
async def convert_document(
    file: UploadFile | None = File(default=None),
    user: User = Depends(require_document_managers),
) -> Response:
    """Convert an uploaded office document to PDF."""
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "invalid_upload_request",
                "errors": [{"field": "file", "message": "field required"}],
            },
        )
    filename = file.filename or ""
    if not is_convertible(filename):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="unsupported file type",
        )

    settings = get_settings()
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty file")
    if len(content) > settings.conversion_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="file too large",
        )

    try:
        pdf_bytes = await run_in_threadpool(convert_to_pdf, content, filename, settings=settings)
    except DocumentConversionError as exc:
        log_structured_event(
            "document_conversion_failed", filename=filename, actor_user_id=user.id, error=str(exc)
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    log_structured_event(
        "document_converted", filename=filename, actor_user_id=user.id, size_bytes=len(pdf_bytes)
    )
    stem = filename.rsplit(".", 1)[0] or "document"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{stem}.pdf"'},
    )


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    user: User = Depends(require_current_user),
    db: Session = Depends(get_db_session),
) -> Document:
    return _load_visible_document(db, document_id, user)


@router.patch("/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: str,
    payload: DocumentUpdateRequest,
    user: User = Depends(require_document_managers),
    db: Session = Depends(get_db_session),
) -> Document:
    document = _load_visible_document(db, document_id, user)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = changes["status"].value
    if "version" in changes and changes["version"] is not None:
        if changes["version"] != document.version:
            document.last_changed_date = datetime.utcnow()
    for key, value in changes.items():
        if value is None and key in {"title", "status", "version", "requires_acknowledgement"}:
            continue
        setattr(document, key, value)
    db.commit()
    db.refresh(document)
    log_structured_event(
        "document_updated",
        document_id=document.id,
        actor_user_id=user.id,
        fields=sorted(changes),
    )
    return document
