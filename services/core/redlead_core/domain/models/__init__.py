"""Domain models for RedLead.

SQLAlchemy ORM models for campaigns and the leads discovered for them.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================


class LeadStatus(str):
    """Lead status values."""

    NEW = "new"
    REPLIED = "replied"
    SAVED = "saved"
    IGNORED = "ignored"


class LeadIntent(str):
    """Intent classification values assigned by the opportunity scorer."""

    BUYING = "Buying"
    SEEKING_ADVICE = "Seeking Advice"
    DISCUSSING = "Discussing"
    SELLING = "Selling"
    UNRELATED = "Unrelated"
    UNCLASSIFIED = "unclassified"


class DiscoveryMode(str):
    """Discovery run modes."""

    MANUAL = "manual"
    TARGETED = "targeted"


VALID_LEAD_STATUSES = (
    LeadStatus.NEW,
    LeadStatus.REPLIED,
    LeadStatus.SAVED,
    LeadStatus.IGNORED,
)

VALID_DISCOVERY_MODES = (DiscoveryMode.MANUAL, DiscoveryMode.TARGETED)


# =============================================================================
# MODELS
# =============================================================================


class Campaign(Base):
    """Discovery configuration owned by one user."""

    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Ordered lists; keywords[0] is the primary keyword
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    target_subreddits: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    negative_keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    subreddit_blacklist: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    last_manual_discovery_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_targeted_discovery_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("idx_campaign_owner", "owner_id", "created_at"),
        Index("idx_campaign_active", "is_active"),
    )

    leads: Mapped[list["Lead"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Lead(Base):
    """A discovered Reddit post, scored and tracked through replies."""

    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    campaign_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    external_post_id: Mapped[str] = mapped_column(String(32), nullable=False)

    title: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    author: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    subreddit_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    url: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    body_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    posted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    opportunity_score: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    intent: Mapped[str] = mapped_column(
        String(50), nullable=False, default=LeadIntent.UNCLASSIFIED
    )
    status: Mapped[str] = mapped_column(
        Enum("new", "replied", "saved", "ignored", name="lead_status_enum"),
        nullable=False,
        default=LeadStatus.NEW,
    )

    num_comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upvote_ratio: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    discovered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("external_post_id", "campaign_id", name="uq_lead_post_campaign"),
        Index("idx_lead_campaign_score", "campaign_id", "opportunity_score"),
        Index("idx_lead_status", "status"),
    )

    campaign: Mapped["Campaign"] = relationship(back_populates="leads")


__all__ = [
    "Base",
    "Campaign",
    "Lead",
    "LeadStatus",
    "LeadIntent",
    "DiscoveryMode",
    "VALID_LEAD_STATUSES",
    "VALID_DISCOVERY_MODES",
]
