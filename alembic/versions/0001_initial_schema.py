"""Initial ISMS register schema.

Revision ID: 0001_initial
Revises:
Create Date: 2025-12-02
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("createdAt", sa.DateTime(), nullable=False),
        sa.Column("updatedAt", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "User",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("displayName", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("entraObjectId", sa.Text(), nullable=False, unique=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="STAFF"),
        sa.Column("department", sa.String(length=64), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "AssetCategory",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "Classification",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "InterestedParty",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("group", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("dateAdded", sa.DateTime(), nullable=True),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("addressedThroughISMS", sa.Boolean(), nullable=True),
        sa.Column("howAddressedThroughISMS", sa.Text(), nullable=True),
        sa.Column("sourceLink", sa.Text(), nullable=True),
        sa.Column("keyProductsServices", sa.Text(), nullable=True),
        sa.Column("ourObligations", sa.Text(), nullable=True),
        sa.Column("theirObligations", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "Legislation",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("dateAdded", sa.DateTime(), nullable=True),
        sa.Column("interestedParty", sa.Text(), nullable=True),
        sa.Column("actRegulationRequirement", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("riskOfNonCompliance", sa.Text(), nullable=True),
        sa.Column("howComplianceAchieved", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "Control",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code", sa.String(length=32), nullable=False, unique=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "selectedForRiskAssessment", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "selectedForContractualObligation",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "selectedForLegalRequirement", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "selectedForBusinessRequirement",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("controlText", sa.Text(), nullable=True),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("guidance", sa.Text(), nullable=True),
        sa.Column("otherInformation", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("isStandardControl", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("implemented", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "Asset",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column(
            "assetCategoryId",
            sa.String(length=36),
            sa.ForeignKey("AssetCategory.id"),
            nullable=False,
        ),
        sa.Column("assetSubCategory", sa.Text(), nullable=True),
        sa.Column("owner", sa.Text(), nullable=False),
        sa.Column("primaryUser", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("manufacturer", sa.Text(), nullable=True),
        sa.Column("model", sa.Text(), nullable=True),
        sa.Column("nameSerialNo", sa.Text(), nullable=True),
        sa.Column("cdeImpacting", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "classificationId",
            sa.String(length=36),
            sa.ForeignKey("Classification.id"),
            nullable=False,
        ),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cost", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_Asset_assetCategoryId", "Asset", ["assetCategoryId"])
    op.create_index("ix_Asset_classificationId", "Asset", ["classificationId"])

    op.create_table(
        "Risk",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("dateAdded", sa.DateTime(), nullable=False),
        sa.Column("riskCategory", sa.Text(), nullable=True),
        sa.Column("riskNature", sa.Text(), nullable=True),
        sa.Column(
            "ownerUserId", sa.String(length=36), sa.ForeignKey("User.id"), nullable=True
        ),
        sa.Column("department", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="DRAFT"),
        sa.Column("wizardData", sa.Text(), nullable=True),
        sa.Column("rejectionReason", sa.Text(), nullable=True),
        sa.Column("mergedIntoRiskId", sa.String(length=36), nullable=True),
        sa.Column("assetCategory", sa.Text(), nullable=True),
        sa.Column("assetId", sa.String(length=36), sa.ForeignKey("Asset.id"), nullable=True),
        sa.Column(
            "assetCategoryId",
            sa.String(length=36),
            sa.ForeignKey("AssetCategory.id"),
            nullable=True,
        ),
        sa.Column(
            "interestedPartyId",
            sa.String(length=36),
            sa.ForeignKey("InterestedParty.id"),
            nullable=False,
        ),
        sa.Column("threatDescription", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expiryDate", sa.DateTime(), nullable=True),
        sa.Column("lastReviewDate", sa.DateTime(), nullable=True),
        sa.Column("nextReviewDate", sa.DateTime(), nullable=True),
        sa.Column("confidentialityScore", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("integrityScore", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("availabilityScore", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("riskScore", sa.Integer(), nullable=True),
        sa.Column("likelihood", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("calculatedScore", sa.Integer(), nullable=False),
        sa.Column("initialRiskTreatmentCategory", sa.Text(), nullable=True),
        sa.Column("mitigatedConfidentialityScore", sa.Integer(), nullable=True),
        sa.Column("mitigatedIntegrityScore", sa.Integer(), nullable=True),
        sa.Column("mitigatedAvailabilityScore", sa.Integer(), nullable=True),
        sa.Column("mitigatedRiskScore", sa.Integer(), nullable=True),
        sa.Column("mitigatedLikelihood", sa.Integer(), nullable=True),
        sa.Column("mitigatedScore", sa.Integer(), nullable=True),
        sa.Column(
            "mitigationImplemented", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("mitigationDescription", sa.Text(), nullable=True),
        sa.Column("residualRiskTreatmentCategory", sa.Text(), nullable=True),
        sa.Column("annexAControlsRaw", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_Risk_ownerUserId", "Risk", ["ownerUserId"])
    op.create_index("ix_Risk_department", "Risk", ["department"])
    op.create_index("ix_Risk_interestedPartyId", "Risk", ["interestedPartyId"])

    op.create_table(
        "Document",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("storageLocation", sa.String(length=32), nullable=False),
        sa.Column("sharePointSiteId", sa.Text(), nullable=True),
        sa.Column("sharePointDriveId", sa.Text(), nullable=True),
        sa.Column("sharePointItemId", sa.Text(), nullable=True),
        sa.Column("confluenceSpaceKey", sa.Text(), nullable=True),
        sa.Column("confluencePageId", sa.Text(), nullable=True),
        sa.Column("version", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column(
            "ownerUserId", sa.String(length=36), sa.ForeignKey("User.id"), nullable=False
        ),
        sa.Column("lastReviewDate", sa.DateTime(), nullable=True),
        sa.Column("nextReviewDate", sa.DateTime(), nullable=True),
        sa.Column(
            "requiresAcknowledgement", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("lastChangedDate", sa.DateTime(), nullable=True),
        sa.Column("documentUrl", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_Document_ownerUserId", "Document", ["ownerUserId"])

    op.create_table(
        "RiskControl",
        sa.Column(
            "riskId",
            sa.String(length=36),
            sa.ForeignKey("Risk.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "controlId",
            sa.String(length=36),
            sa.ForeignKey("Control.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "DocumentRisk",
        sa.Column(
            "documentId",
            sa.String(length=36),
            sa.ForeignKey("Document.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "riskId",
            sa.String(length=36),
            sa.ForeignKey("Risk.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "DocumentControl",
        sa.Column(
            "documentId",
            sa.String(length=36),
            sa.ForeignKey("Document.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "controlId",
            sa.String(length=36),
            sa.ForeignKey("Control.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "LegislationRisk",
        sa.Column(
            "legislationId",
            sa.String(length=36),
            sa.ForeignKey("Legislation.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "riskId",
            sa.String(length=36),
            sa.ForeignKey("Risk.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("LegislationRisk")
    op.drop_table("DocumentControl")
    op.drop_table("DocumentRisk")
    op.drop_table("RiskControl")

    op.drop_index("ix_Document_ownerUserId", table_name="Document")
    op.drop_table("Document")

    op.drop_index("ix_Risk_interestedPartyId", table_name="Risk")
    op.drop_index("ix_Risk_department", table_name="Risk")
    op.drop_index("ix_Risk_ownerUserId", table_name="Risk")
    op.drop_table("Risk")

    op.drop_index("ix_Asset_classificationId", table_name="Asset")
    op.drop_index("ix_Asset_assetCategoryId", table_name="Asset")
    op.drop_table("Asset")

    op.drop_table("Control")
    op.drop_table("Legislation")
    op.drop_table("InterestedParty")
    op.drop_table("Classification")
    op.drop_table("AssetCategory")
    op.drop_table("User")
