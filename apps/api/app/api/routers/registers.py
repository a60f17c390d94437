"""Read-only ISMS registers: controls, legislation, interested parties and assets."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.auth import require_roles
from apps.api.app.core.enums import UserRole
from apps.api.app.db.models import Asset, Control, InterestedParty, Legislation, User
from apps.api.app.db.session import get_db_session

router = APIRouter(prefix="/api", tags=["registers"])

require_register_readers = require_roles(UserRole.ADMIN, UserRole.EDITOR)


class ControlResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    title: str
    description: str | None
    category: str | None
    is_standard_control: bool
    implemented: bool
    selected_for_risk_assessment: bool
    selected_for_contractual_obligation: bool
    selected_for_legal_requirement: bool
    selected_for_business_requirement: bool
    justification: str | None


class LegislationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    act_regulation_requirement: str
    date_added: datetime | None
    interested_party: str | None
    description: str | None
    risk_of_non_compliance: str | None
    how_compliance_achieved: str | None


class InterestedPartyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    group_name: str | None
    description: str | None
    date_added: datetime | None
    requirements: str | None
    addressed_through_isms: bool | None


class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    asset_date: datetime
    asset_category_id: str
    asset_sub_category: str | None
    owner: str
    primary_user: str | None
    location: str | None
    manufacturer: str | None
    model: str | None
    name_serial_no: str | None
    cde_impacting: bool
    classification_id: str
    purpose: str | None
    notes: str | None
    cost: str | None


@router.get("/controls", response_model=list[ControlResponse])
def list_controls(
    _: User = Depends(require_register_readers),
    db: Session = Depends(get_db_session),
) -> list[Control]:
    return list(db.scalars(select(Control).order_by(Control.code.asc())).all())


@router.get("/legislation", response_model=list[LegislationResponse])
def list_legislation(
    _: User = Depends(require_register_readers),
    db: Session = Depends(get_db_session),
) -> list[Legislation]:
    statement = select(Legislation).order_by(
        Legislation.act_regulation_requirement.asc(), Legislation.id.asc()
    )
    return list(db.scalars(statement).all())


@router.get("/interested-parties", response_model=list[InterestedPartyResponse])
def list_interested_parties(
    _: User = Depends(require_register_readers),
    db: Session = Depends(get_db_session),
) -> list[InterestedParty]:
    return list(db.scalars(select(InterestedParty).order_by(InterestedParty.name.asc())).all())


@router.get("/assets", response_model=list[AssetResponse])
def list_assets(
    _: User = Depends(require_register_readers),
    db: Session = Depends(get_db_session),
) -> list[Asset]:
    return list(db.scalars(select(Asset).order_by(Asset.asset_date.desc(), Asset.id.asc())).all())
