"""sow_engine_tables

Creates the proposal engine tables:
  - assessments         — live graded assessments, one per (customer, type)
  - proposals           — SOW documents with frozen assessment snapshot
  - proposal_sections   — scoped units of work, unique sort order per proposal
  - proposal_versions   — append-only export history, unique number per proposal

Tables created conditionally (IF NOT EXISTS semantics) to support idempotent
execution against databases that already received these tables via db.create_all()
in a development environment.

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-19 09:12:44.318205
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '7c1e4a9b2d30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Assessment ────────────────────────────────────────────────────────
    if "assessments" not in existing:
        op.create_table(
            "assessments",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("customer_id", sa.String(length=64), nullable=False),
            sa.Column(
                "assessment_type", sa.String(length=20), nullable=False,
                comment="gtm | clay | cpq",
            ),
            sa.Column(
                "processes", sa.JSON(), nullable=False,
                comment="[{name, function, status, outcome, addToEngagement}]",
            ),
            sa.Column("assessed_by", sa.String(length=150), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("customer_id", "assessment_type", name="uq_assessment_customer_type"),
        )
        op.create_index("ix_assessments_customer_id", "assessments", ["customer_id"])

    # ── Proposal ──────────────────────────────────────────────────────────
    if "proposals" not in existing:
        op.create_table(
            "proposals",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("customer_id", sa.String(length=64), nullable=True),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column(
                "proposal_type", sa.String(length=20), nullable=False,
                server_default="custom",
                comment="clay | q2c | embedded | custom",
            ),
            sa.Column(
                "status", sa.String(length=20), nullable=False,
                server_default="draft",
                comment="draft | review | sent | accepted | rejected",
            ),
            sa.Column("linked_assessment_ids", sa.JSON(), nullable=False),
            sa.Column(
                "snapshot", sa.JSON(), nullable=True,
                comment="{processes: [{name, status, addToEngagement}], snapshotAt}",
            ),
            sa.Column(
                "overall_rating", sa.String(length=20), nullable=True,
                comment="healthy | moderate | warning | critical",
            ),
            sa.Column("total_hours", sa.Float(), nullable=False, server_default="0"),
            sa.Column("total_investment", sa.Float(), nullable=False, server_default="0"),
            sa.Column("current_version", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("external_project_id", sa.String(length=64), nullable=True),
            sa.Column("external_project_url", sa.String(length=500), nullable=True),
            sa.Column("content", sa.JSON(), nullable=False),
            sa.Column("created_by", sa.String(length=150), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_proposals_customer_id", "proposals", ["customer_id"])

    # ── ProposalSection ───────────────────────────────────────────────────
    if "proposal_sections" not in existing:
        op.create_table(
            "proposal_sections",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("proposal_id", sa.String(length=36), nullable=False),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("deliverables", sa.JSON(), nullable=False),
            sa.Column("hours", sa.Float(), nullable=True),
            sa.Column("rate", sa.Float(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column(
                "addressed_process_names", sa.JSON(), nullable=False,
                comment="Process names from the snapshot at creation time; not repaired when stale",
            ),
            sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("external_milestone_id", sa.String(length=64), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["proposal_id"], ["proposals.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("proposal_id", "sort_order", name="uq_section_proposal_sort"),
        )
        op.create_index("ix_proposal_sections_proposal_id", "proposal_sections", ["proposal_id"])

    # ── ProposalVersion ───────────────────────────────────────────────────
    if "proposal_versions" not in existing:
        op.create_table(
            "proposal_versions",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("proposal_id", sa.String(length=36), nullable=False),
            sa.Column("version_number", sa.Integer(), nullable=False),
            sa.Column("content_snapshot", sa.JSON(), nullable=False),
            sa.Column("sections_snapshot", sa.JSON(), nullable=False),
            sa.Column("exported_by", sa.String(length=150), nullable=True),
            sa.Column("exported_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("artifact_url", sa.String(length=500), nullable=True),
            sa.ForeignKeyConstraint(["proposal_id"], ["proposals.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("proposal_id", "version_number", name="uq_version_proposal_number"),
        )
        op.create_index("ix_proposal_versions_proposal_id", "proposal_versions", ["proposal_id"])


def downgrade():
    op.drop_index("ix_proposal_versions_proposal_id", table_name="proposal_versions")
    op.drop_table("proposal_versions")
    op.drop_index("ix_proposal_sections_proposal_id", table_name="proposal_sections")
    op.drop_table("proposal_sections")
    op.drop_index("ix_proposals_customer_id", table_name="proposals")
    op.drop_table("proposals")
    op.drop_index("ix_assessments_customer_id", table_name="assessments")
    op.drop_table("assessments")
