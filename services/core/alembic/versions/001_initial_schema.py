"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the RedLead tables:
- campaigns
- leads (unique per post and campaign, cascades with its campaign)
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Campaigns table
    op.create_table(
        "campaigns",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("website_url", sa.String(512), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("keywords", sa.JSON, nullable=False),
        sa.Column("target_subreddits", sa.JSON, nullable=False),
        sa.Column("negative_keywords", sa.JSON, nullable=False),
        sa.Column("subreddit_blacklist", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_manual_discovery_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_targeted_discovery_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_campaign_owner", "campaigns", ["owner_id", "created_at"])
    op.create_index("idx_campaign_active", "campaigns", ["is_active"])

    # Leads table
    op.create_table(
        "leads",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "campaign_id",
            sa.String(32),
            sa.ForeignKey("campaigns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("external_post_id", sa.String(32), nullable=False),
        sa.Column("title", sa.String(512), nullable=False, server_default=""),
        sa.Column("author", sa.String(128), nullable=False, server_default=""),
        sa.Column("subreddit_name", sa.String(128), nullable=False, server_default=""),
        sa.Column("url", sa.String(512), nullable=False, server_default=""),
        sa.Column("body_text", sa.Text, nullable=False),
        sa.Column("posted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("opportunity_score", sa.Integer, nullable=False, server_default="50"),
        sa.Column("intent", sa.String(50), nullable=False, server_default="unclassified"),
        sa.Column(
            "status",
            sa.Enum("new", "replied", "saved", "ignored", name="lead_status_enum"),
            nullable=False,
            server_default="new",
        ),
        sa.Column("num_comments", sa.Integer, nullable=False, server_default="0"),
        sa.Column("upvote_ratio", sa.Float, nullable=False, server_default="0"),
        sa.Column(
            "discovered_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("external_post_id", "campaign_id", name="uq_lead_post_campaign"),
    )
    op.create_index("idx_lead_campaign_score", "leads", ["campaign_id", "opportunity_score"])
    op.create_index("idx_lead_status", "leads", ["status"])


def downgrade() -> None:
    op.drop_index("idx_lead_status", table_name="leads")
    op.drop_index("idx_lead_campaign_score", table_name="leads")
    op.drop_table("leads")
    op.drop_index("idx_campaign_active", table_name="campaigns")
    op.drop_index("idx_campaign_owner", table_name="campaigns")
    op.drop_table("campaigns")
    sa.Enum(name="lead_status_enum").drop(op.get_bind(), checkfirst=True)
