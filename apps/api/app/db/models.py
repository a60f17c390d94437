"""ORM models for the ISMS system-of-record tables.

Table and column names keep the legacy camelCase spelling so that rows copied
from the original SQLite database line up column for column.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from apps.api.app.db.base import Base


def _new_id() -> str:
    return str(uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt", DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(TimestampMixin, Base):
    __tablename__ = "User"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    display_name: Mapped[str] = mapped_column("displayName", Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    entra_object_id: Mapped[str] = mapped_column("entraObjectId", Text, nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="STAFF")
    department: Mapped[str | None] = mapped_column(String(64), nullable=True)


class AssetCategory(TimestampMixin, Base):
    __tablename__ = "AssetCategory"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Classification(TimestampMixin, Base):
    __tablename__ = "Classification"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class InterestedParty(TimestampMixin, Base):
    __tablename__ = "InterestedParty"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    group_name: Mapped[str | None] = mapped_column("group", Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_added: Mapped[datetime | None] = mapped_column("dateAdded", DateTime, nullable=True)
    requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    addressed_through_isms: Mapped[bool | None] = mapped_column(
        "addressedThroughISMS", Boolean, nullable=True
    )
    how_addressed_through_isms: Mapped[str | None] = mapped_column(
        "howAddressedThroughISMS", Text, nullable=True
    )
    source_link: Mapped[str | None] = mapped_column("sourceLink", Text, nullable=True)
    key_products_services: Mapped[str | None] = mapped_column(
        "keyProductsServices", Text, nullable=True
    )
    our_obligations: Mapped[str | None] = mapped_column("ourObligations", Text, nullable=True)
    their_obligations: Mapped[str | None] = mapped_column("theirObligations", Text, nullable=True)


class Legislation(TimestampMixin, Base):
    __tablename__ = "Legislation"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    date_added: Mapped[datetime | None] = mapped_column("dateAdded", DateTime, nullable=True)
    interested_party: Mapped[str | None] = mapped_column("interestedParty", Text, nullable=True)
    act_regulation_requirement: Mapped[str] = mapped_column(
        "actRegulationRequirement", Text, nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_of_non_compliance: Mapped[str | None] = mapped_column(
        "riskOfNonCompliance", Text, nullable=True
    )
    how_compliance_achieved: Mapped[str | None] = mapped_column(
        "howComplianceAchieved", Text, nullable=True
    )


class Control(TimestampMixin, Base):
    __tablename__ = "Control"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    selected_for_risk_assessment: Mapped[bool] = mapped_column(
        "selectedForRiskAssessment", Boolean, nullable=False, default=False
    )
    selected_for_contractual_obligation: Mapped[bool] = mapped_column(
        "selectedForContractualObligation", Boolean, nullable=False, default=False
    )
    selected_for_legal_requirement: Mapped[bool] = mapped_column(
        "selectedForLegalRequirement", Boolean, nullable=False, default=False
    )
    selected_for_business_requirement: Mapped[bool] = mapped_column(
        "selectedForBusinessRequirement", Boolean, nullable=False, default=False
    )
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    control_text: Mapped[str | None] = mapped_column("controlText", Text, nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    guidance: Mapped[str | None] = mapped_column(Text, nullable=True)
    other_information: Mapped[str | None] = mapped_column("otherInformation", Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_standard_control: Mapped[bool] = mapped_column(
        "isStandardControl", Boolean, nullable=False, default=False
    )
    implemented: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Asset(TimestampMixin, Base):
    __tablename__ = "Asset"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    asset_date: Mapped[datetime] = mapped_column("date", DateTime, nullable=False)
    asset_category_id: Mapped[str] = mapped_column(
        "assetCategoryId", ForeignKey("AssetCategory.id"), nullable=False, index=True
    )
    asset_sub_category: Mapped[str | None] = mapped_column("assetSubCategory", Text, nullable=True)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    primary_user: Mapped[str | None] = mapped_column("primaryUser", Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    manufacturer: Mapped[str | None] = mapped_column(Text, nullable=True)
    model: Mapped[str | None] = mapped_column(Text, nullable=True)
    name_serial_no: Mapped[str | None] = mapped_column("nameSerialNo", Text, nullable=True)
    cde_impacting: Mapped[bool] = mapped_column(
        "cdeImpacting", Boolean, nullable=False, default=False
    )
    classification_id: Mapped[str] = mapped_column(
        "classificationId", ForeignKey("Classification.id"), nullable=False, index=True
    )
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost: Mapped[str | None] = mapped_column(Text, nullable=True)


class Risk(TimestampMixin, Base):
    __tablename__ = "Risk"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_added: Mapped[datetime] = mapped_column(
        "dateAdded", DateTime, nullable=False, default=datetime.utcnow
    )
    risk_category: Mapped[str | None] = mapped_column("riskCategory", Text, nullable=True)
    risk_nature: Mapped[str | None] = mapped_column("riskNature", Text, nullable=True)
    owner_user_id: Mapped[str | None] = mapped_column(
        "ownerUserId", ForeignKey("User.id"), nullable=True, index=True
    )
    department: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="DRAFT")
    wizard_data: Mapped[str | None] = mapped_column("wizardData", Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column("rejectionReason", Text, nullable=True)
    merged_into_risk_id: Mapped[str | None] = mapped_column(
        "mergedIntoRiskId", String(36), nullable=True
    )
    asset_category: Mapped[str | None] = mapped_column("assetCategory", Text, nullable=True)
    asset_id: Mapped[str | None] = mapped_column(
        "assetId", ForeignKey("Asset.id"), nullable=True
    )
    asset_category_id: Mapped[str | None] = mapped_column(
        "assetCategoryId", ForeignKey("AssetCategory.id"), nullable=True
    )
    interested_party_id: Mapped[str] = mapped_column(
        "interestedPartyId", ForeignKey("InterestedParty.id"), nullable=False, index=True
    )
    threat_description: Mapped[str | None] = mapped_column(
        "threatDescription", Text, nullable=True
    )
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expiry_date: Mapped[datetime | None] = mapped_column("expiryDate", DateTime, nullable=True)
    last_review_date: Mapped[datetime | None] = mapped_column(
        "lastReviewDate", DateTime, nullable=True
    )
    next_review_date: Mapped[datetime | None] = mapped_column(
        "nextReviewDate", DateTime, nullable=True
    )
    confidentiality_score: Mapped[int] = mapped_column(
        "confidentialityScore", Integer, nullable=False, default=1
    )
    integrity_score: Mapped[int] = mapped_column(
        "integrityScore", Integer, nullable=False, default=1
    )
    availability_score: Mapped[int] = mapped_column(
        "availabilityScore", Integer, nullable=False, default=1
    )
    risk_score: Mapped[int | None] = mapped_column("riskScore", Integer, nullable=True)
    likelihood: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    calculated_score: Mapped[int] = mapped_column("calculatedScore", Integer, nullable=False)
    initial_risk_treatment_category: Mapped[str | None] = mapped_column(
        "initialRiskTreatmentCategory", Text, nullable=True
    )
    mitigated_confidentiality_score: Mapped[int | None] = mapped_column(
        "mitigatedConfidentialityScore", Integer, nullable=True
    )
    mitigated_integrity_score: Mapped[int | None] = mapped_column(
        "mitigatedIntegrityScore", Integer, nullable=True
    )
    mitigated_availability_score: Mapped[int | None] = mapped_column(
        "mitigatedAvailabilityScore", Integer, nullable=True
    )
    mitigated_risk_score: Mapped[int | None] = mapped_column(
        "mitigatedRiskScore", Integer, nullable=True
    )
    mitigated_likelihood: Mapped[int | None] = mapped_column(
        "mitigatedLikelihood", Integer, nullable=True
    )
    mitigated_score: Mapped[int | None] = mapped_column("mitigatedScore", Integer, nullable=True)
    mitigation_implemented: Mapped[bool] = mapped_column(
        "mitigationImplemented", Boolean, nullable=False, default=False
    )
    mitigation_description: Mapped[str | None] = mapped_column(
        "mitigationDescription", Text, nullable=True
    )
    residual_risk_treatment_category: Mapped[str | None] = mapped_column(
        "residualRiskTreatmentCategory", Text, nullable=True
    )
    annex_a_controls_raw: Mapped[str | None] = mapped_column(
        "annexAControlsRaw", Text, nullable=True
    )


class Document(TimestampMixin, Base):
    __tablename__ = "Document"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    document_type: Mapped[str] = mapped_column("type", String(32), nullable=False)
    storage_location: Mapped[str] = mapped_column(
        "storageLocation", String(32), nullable=False, default="SHAREPOINT"
    )
    sharepoint_site_id: Mapped[str | None] = mapped_column("sharePointSiteId", Text, nullable=True)
    sharepoint_drive_id: Mapped[str | None] = mapped_column(
        "sharePointDriveId", Text, nullable=True
    )
    sharepoint_item_id: Mapped[str | None] = mapped_column("sharePointItemId", Text, nullable=True)
    confluence_space_key: Mapped[str | None] = mapped_column(
        "confluenceSpaceKey", Text, nullable=True
    )
    confluence_page_id: Mapped[str | None] = mapped_column("confluencePageId", Text, nullable=True)
    version: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    owner_user_id: Mapped[str] = mapped_column(
        "ownerUserId", ForeignKey("User.id"), nullable=False, index=True
    )
    last_review_date: Mapped[datetime | None] = mapped_column(
        "lastReviewDate", DateTime, nullable=True
    )
    next_review_date: Mapped[datetime | None] = mapped_column(
        "nextReviewDate", DateTime, nullable=True
    )
    requires_acknowledgement: Mapped[bool] = mapped_column(
        "requiresAcknowledgement", Boolean, nullable=False, default=False
    )
    last_changed_date: Mapped[datetime | None] = mapped_column(
        "lastChangedDate", DateTime, nullable=True
    )
    document_url: Mapped[str | None] = mapped_column("documentUrl", Text, nullable=True)

    owner: Mapped[User] = relationship(lazy="joined")


class RiskControl(Base):
    __tablename__ = "RiskControl"

    risk_id: Mapped[str] = mapped_column(
        "riskId", ForeignKey("Risk.id", ondelete="CASCADE"), primary_key=True
    )
    control_id: Mapped[str] = mapped_column(
        "controlId", ForeignKey("Control.id", ondelete="CASCADE"), primary_key=True
    )


class DocumentRisk(Base):
    __tablename__ = "DocumentRisk"

    document_id: Mapped[str] = mapped_column(
        "documentId", ForeignKey("Document.id", ondelete="CASCADE"), primary_key=True
    )
    risk_id: Mapped[str] = mapped_column(
        "riskId", ForeignKey("Risk.id", ondelete="CASCADE"), primary_key=True
    )


class DocumentControl(Base):
    __tablename__ = "DocumentControl"

    document_id: Mapped[str] = mapped_column(
        "documentId", ForeignKey("Document.id", ondelete="CASCADE"), primary_key=True
    )
    control_id: Mapped[str] = mapped_column(
        "controlId", ForeignKey("Control.id", ondelete="CASCADE"), primary_key=True
    )


class LegislationRisk(Base):
    __tablename__ = "LegislationRisk"

    legislation_id: Mapped[str] = mapped_column(
        "legislationId", ForeignKey("Legislation.id", ondelete="CASCADE"), primary_key=True
    )
    risk_id: Mapped[str] = mapped_column(
        "riskId", ForeignKey("Risk.id", ondelete="CASCADE"), primary_key=True
    )


class Acknowledgment(Base):
    __tablename__ = "Acknowledgment"
    __table_args__ = (
        UniqueConstraint(
            "userId",
            "documentId",
            "documentVersion",
            name="Acknowledgment_userId_documentId_documentVersion_key",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        "userId", ForeignKey("User.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_id: Mapped[str] = mapped_column(
        "documentId", ForeignKey("Document.id", ondelete="CASCADE"), nullable=False, index=True
    )
    document_version: Mapped[str] = mapped_column("documentVersion", String(32), nullable=False)
    acknowledged_at: Mapped[datetime] = mapped_column(
        "acknowledgedAt", DateTime, nullable=False, default=datetime.utcnow
    )


class ReviewTask(TimestampMixin, Base):
    __tablename__ = "ReviewTask"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    document_id: Mapped[str] = mapped_column(
        "documentId", ForeignKey("Document.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reviewer_user_id: Mapped[str] = mapped_column(
        "reviewerUserId", ForeignKey("User.id"), nullable=False, index=True
    )
    due_date: Mapped[datetime] = mapped_column("dueDate", DateTime, nullable=False)
    completed_date: Mapped[datetime | None] = mapped_column(
        "completedDate", DateTime, nullable=True
    )
    change_notes: Mapped[str | None] = mapped_column("changeNotes", Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="PENDING")
