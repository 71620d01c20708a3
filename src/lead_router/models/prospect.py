"""
Prospects (inbound leads) and their append-only activity log
"""
from enum import Enum

from sqlalchemy import Column, String, Integer, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship

from lead_router.models.base import BaseModel


class LeadSource(str, Enum):
    QR_CODE = "qr_code"
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social_media"
    ADVERTISEMENT = "advertisement"
    DIRECT = "direct"
    OTHER = "other"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL_SENT = "proposal_sent"
    NEGOTIATING = "negotiating"
    WON = "won"
    LOST = "lost"
    NURTURING = "nurturing"


class ActivityType(str, Enum):
    CREATED = "created"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    UPDATED = "updated"


class Prospect(BaseModel):
    """
    An inbound lead. ``assigned_agent_id`` is set once by the routing rule and
    afterwards only changes through manual assignment or agent removal.
    """
    __tablename__ = "prospects"

    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=True)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    lead_source = Column(String(30), nullable=False)
    lead_status = Column(String(30), nullable=False, default=LeadStatus.NEW.value)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=True)
    qr_tag_id = Column(String(64), nullable=True)
    assigned_agent_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    assigned_agent = relationship("User", back_populates="assigned_prospects")
    campaign = relationship("Campaign")
    activities = relationship(
        "ProspectActivity",
        back_populates="prospect",
        order_by="ProspectActivity.id",
    )

    __table_args__ = (
        Index("idx_prospects_agent_campaign", "assigned_agent_id", "campaign_id"),
        Index("idx_prospects_campaign_phone", "campaign_id", "phone"),
    )


class ProspectActivity(BaseModel):
    """Audit entry for a prospect. Rows are inserted, never updated."""
    __tablename__ = "prospect_activities"

    prospect_id = Column(Integer, ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)
    actor_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    description = Column(String(255), nullable=False)
    details = Column("metadata", JSON, nullable=False, default=dict)

    prospect = relationship("Prospect", back_populates="activities")
