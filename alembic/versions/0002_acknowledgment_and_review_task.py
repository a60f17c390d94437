"""Add document acknowledgment and review task tables.

Revision ID: 0002_acknowledgment_review
Revises: 0001_initial
Create Date: 2025-12-08
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0002_acknowledgment_review"
down_revision: str | None = "0001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "Acknowledgment",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "userId",
            sa.String(length=36),
            sa.ForeignKey("User.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "documentId",
            sa.String(length=36),
            sa.ForeignKey("Document.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("documentVersion", sa.String(length=32), nullable=False),
        sa.Column("acknowledgedAt", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "userId",
            "documentId",
            "documentVersion",
            name="Acknowledgment_userId_documentId_documentVersion_key",
        ),
    )
    op.create_index("ix_Acknowledgment_userId", "Acknowledgment", ["userId"])
    op.create_index("ix_Acknowledgment_documentId", "Acknowledgment", ["documentId"])

    op.create_table(
        "ReviewTask",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "documentId",
            sa.String(length=36),
            sa.ForeignKey("Document.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reviewerUserId", sa.String(length=36), sa.ForeignKey("User.id"), nullable=False
        ),
        sa.Column("dueDate", sa.DateTime(), nullable=False),
        sa.Column("completedDate", sa.DateTime(), nullable=True),
        sa.Column("changeNotes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("createdAt", sa.DateTime(), nullable=False),
        sa.Column("updatedAt", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_ReviewTask_documentId", "ReviewTask", ["documentId"])
    op.create_index("ix_ReviewTask_reviewerUserId", "ReviewTask", ["reviewerUserId"])


def downgrade() -> None:
    op.drop_index("ix_ReviewTask_reviewerUserId", table_name="ReviewTask")
    op.drop_index("ix_ReviewTask_documentId", table_name="ReviewTask")
    op.drop_table("ReviewTask")

    op.drop_index("ix_Acknowledgment_documentId", table_name="Acknowledgment")
    op.drop_index("ix_Acknowledgment_userId", table_name="Acknowledgment")
    op.drop_table("Acknowledgment")
