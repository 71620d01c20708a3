"""
Lead package templates and their per-agent assignments (the credit ledger)
"""
from enum import Enum

from sqlalchemy import (
    Column, String, Text, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from lead_router.models.base import BaseModel
from lead_router.utils.helpers import utcnow


class LeadPackageStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    DEPLETED = "depleted"
    ARCHIVED = "archived"


class LeadPackage(BaseModel):
    """A purchasable bundle of lead credits"""
    __tablename__ = "lead_packages"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    lead_count = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=LeadPackageStatus.ACTIVE.value)

    assignments = relationship("LeadPackageAssignment", back_populates="lead_package")

    __table_args__ = (
        CheckConstraint("lead_count >= 1", name="ck_lead_packages_lead_count_min"),
    )


class LeadPackageAssignment(BaseModel):
    """
    Credits granted to one agent from one package.

    ``leads_remaining`` starts at ``leads_total`` and only goes down, one unit
    per routed prospect. The decrement is a conditional UPDATE issued by
    ``CreditLedger``; nothing else writes this column.
    """
    __tablename__ = "lead_package_assignments"

    agent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    lead_package_id = Column(Integer, ForeignKey("lead_packages.id"), nullable=False)
    status = Column(String(20), nullable=False, default=AssignmentStatus.ACTIVE.value)
    leads_total = Column(Integer, nullable=False)
    leads_remaining = Column(Integer, nullable=False)
    price_snapshot = Column(Numeric(10, 2), nullable=False, default=0)
    purchase_date = Column(DateTime, nullable=False, default=utcnow)

    agent = relationship("User", back_populates="package_assignments")
    lead_package = relationship("LeadPackage", back_populates="assignments")

    __table_args__ = (
        CheckConstraint("leads_remaining >= 0", name="ck_lpa_remaining_nonneg"),
        CheckConstraint("leads_remaining <= leads_total", name="ck_lpa_remaining_le_total"),
        Index("idx_lpa_agent_status", "agent_id", "status"),
    )
