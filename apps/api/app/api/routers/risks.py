"""Risk register endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.auth import require_roles
from apps.api.app.core.enums import Department, RiskStatus, UserRole
from apps.api.app.db.models import Control, InterestedParty, Risk, RiskControl, User
from apps.api.app.db.session import get_db_session
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.risk_scoring import apply_scores, parse_control_codes, risk_level

router = APIRouter(prefix="/api/risks", tags=["risks"])

require_risk_users = require_roles(UserRole.ADMIN, UserRole.EDITOR, UserRole.CONTRIBUTOR)

TreatmentCategory = Literal["RETAIN", "MODIFY", "SHARE", "AVOID"]


class RiskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    date_added: datetime
    risk_category: str | None
    risk_nature: str | None
    owner_user_id: str | None
    department: str | None
    status: str
    interested_party_id: str
    threat_description: str | None
    archived: bool
    confidentiality_score: int
    integrity_score: int
    availability_score: int
    likelihood: int
    risk_score: int | None
    calculated_score: int
    mitigated_confidentiality_score: int | None
    mitigated_integrity_score: int | None
    mitigated_availability_score: int | None
    mitigated_likelihood: int | None
    mitigated_score: int | None
    mitigation_implemented: bool
    initial_risk_treatment_category: str | None
    residual_risk_treatment_category: str | None
    annex_a_controls_raw: str | None
    risk_level: str
    mitigated_risk_level: str | None


class RiskCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    interested_party_id: str
    department: Department | None = None
    status: RiskStatus = RiskStatus.DRAFT
    owner_user_id: str | None = None
    date_added: datetime | None = None
    risk_category: str | None = None
    risk_nature: str | None = None
    threat_description: str | None = None
    confidentiality_score: int = Field(ge=1, le=5)
    integrity_score: int = Field(ge=1, le=5)
    availability_score: int = Field(ge=1, le=5)
    likelihood: int = Field(ge=1, le=5)
    risk_score: int | None = Field(default=None, ge=1)
    initial_risk_treatment_category: TreatmentCategory | None = None
    mitigated_confidentiality_score: int | None = Field(default=None, ge=1, le=5)
    mitigated_integrity_score: int | None = Field(default=None, ge=1, le=5)
    mitigated_availability_score: int | None = Field(default=None, ge=1, le=5)
    mitigated_likelihood: int | None = Field(default=None, ge=1, le=5)
    mitigation_implemented: bool = False
    mitigation_description: str | None = None
    residual_risk_treatment_category: TreatmentCategory | None = None
    annex_a_controls_raw: str | None = None


def _to_response(risk: Risk) -> RiskResponse:
    values = {
        name: getattr(risk, name)
        for name in RiskResponse.model_fields
        if name not in {"risk_level", "mitigated_risk_level"}
    }
    return RiskResponse(
        **values,
        risk_level=risk_level(risk.calculated_score),
        mitigated_risk_level=(
            risk_level(risk.mitigated_score) if risk.mitigated_score is not None else None
        ),
    )


def _contributor_department(user: User) -> str | None:
    if user.role != UserRole.CONTRIBUTOR.value:
        return None
    if not user.department:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="contributor has no department",
        )
    return user.department


@router.get("", response_model=list[RiskResponse])
def list_risks(
    status_filter: RiskStatus | None = Query(default=None, alias="status"),
    include_archived: bool = False,
    user: User = Depends(require_risk_users),
    db: Session = Depends(get_db_session),
) -> list[RiskResponse]:
    statement = select(Risk)
    department = _contributor_department(user)
    if department is not None:
        statement = statement.where(Risk.department == department)
    if status_filter is not None:
        statement = statement.where(Risk.status == status_filter.value)
    if not include_archived:
        statement = statement.where(Risk.archived.is_(False))
    statement = statement.order_by(Risk.calculated_score.desc(), Risk.title.asc(), Risk.id.asc())
    return [_to_response(risk) for risk in db.scalars(statement).all()]


@router.post("", response_model=RiskResponse, status_code=status.HTTP_201_CREATED)
def create_risk(
    payload: RiskCreateRequest,
    user: User = Depends(require_risk_users),
    db: Session = Depends(get_db_session),
) -> RiskResponse:
    if db.get(InterestedParty, payload.interested_party_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="interested party not found"
        )

    values = payload.model_dump(exclude_none=True)
    values["status"] = payload.status.value
    if payload.department is not None:
        values["department"] = payload.department.value

    department = _contributor_department(user)
    if department is not None:
        values["department"] = department
        values["status"] = RiskStatus.PROPOSED.value
        values.setdefault("owner_user_id", user.id)

    risk = Risk(**values)
    apply_scores(risk)
    db.add(risk)
    db.flush()

    codes = parse_control_codes(payload.annex_a_controls_raw)
    if codes:
        controls = db.scalars(select(Control).where(Control.code.in_(codes))).all()
        for control in controls:
            db.add(RiskControl(risk_id=risk.id, control_id=control.id))
    db.commit()
    db.refresh(risk)

    log_structured_event(
        "risk_created",
        risk_id=risk.id,
        actor_user_id=user.id,
        department=risk.department,
        status=risk.status,
        calculated_score=risk.calculated_score,
    )
    return _to_response(risk)
