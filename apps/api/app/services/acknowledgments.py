"""Document acknowledgement tracking."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from apps.api.app.core.enums import DocumentStatus
from apps.api.app.db.models import Acknowledgment, Document, User


def pending_documents(db: Session, user: User) -> list[Document]:
    """APPROVED documents needing acknowledgement that the user has not acknowledged
    at their current version."""
    acknowledged_current = (
        select(Acknowledgment.id)
        .where(
            and_(
                Acknowledgment.user_id == user.id,
                Acknowledgment.document_id == Document.id,
                Acknowledgment.document_version == Document.version,
            )
        )
        .exists()
    )
    statement = (
        select(Document)
        .where(
            Document.status == DocumentStatus.APPROVED.value,
            Document.requires_acknowledgement.is_(True),
            ~acknowledged_current,
        )
        .order_by(Document.title.asc(), Document.id.asc())
    )
    return list(db.scalars(statement).unique().all())


def acknowledge_documents(
    db: Session, user: User, document_ids: Iterable[str] | None = None
) -> list[Acknowledgment]:
    pending = pending_documents(db, user)
    if document_ids is not None:
        wanted = set(document_ids)
        pending = [document for document in pending if document.id in wanted]

    created: list[Acknowledgment] = []
    for document in pending:
        acknowledgment = Acknowledgment(
            user_id=user.id,
            document_id=document.id,
            document_version=document.version,
        )
        db.add(acknowledgment)
        created.append(acknowledgment)
    db.commit()
    for acknowledgment in created:
        db.refresh(acknowledgment)
    return created
