"""Acknowledgement endpoints for the signed-in user."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from apps.api.app.core.auth import require_current_user
from apps.api.app.db.models import Document, User
from apps.api.app.db.session import get_db_session
from apps.api.app.services.acknowledgments import acknowledge_documents, pending_documents
from apps.api.app.services.audit import log_structured_event

router = APIRouter(prefix="/api/acknowledgments", tags=["acknowledgments"])


class PendingDocument(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    document_type: str
    version: str
    document_url: str | None
    last_changed_date: datetime | None


class AcknowledgmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    document_id: str
    document_version: str
    acknowledged_at: datetime


class BulkAcknowledgeRequest(BaseModel):
    document_ids: list[str] | None = None


class BulkAcknowledgeResponse(BaseModel):
    acknowledged: int
    acknowledgments: list[AcknowledgmentResponse]


@router.get("/pending", response_model=list[PendingDocument])
def list_pending(
    user: User = Depends(require_current_user),
    db: Session = Depends(get_db_session),
) -> list[Document]:
    return pending_documents(db, user)


@router.post("/bulk", response_model=BulkAcknowledgeResponse)
def acknowledge_bulk(
    payload: BulkAcknowledgeRequest | None = None,
    user: User = Depends(require_current_user),
    db: Session = Depends(get_db_session),
) -> BulkAcknowledgeResponse:
    """Acknowledge the listed pending documents, or all of them when none are listed."""
    document_ids = payload.document_ids if payload is not None else None
    created = acknowledge_documents(db, user, document_ids)
    log_structured_event(
        "documents_acknowledged",
        user_id=user.id,
        document_ids=[item.document_id for item in created],
    )
    return BulkAcknowledgeResponse(
        acknowledged=len(created),
        acknowledgments=[AcknowledgmentResponse.model_validate(item) for item in created],
    )
