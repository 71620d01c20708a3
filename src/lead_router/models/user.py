"""
User accounts: admins, agents and the System Agent sentinel
"""
from enum import Enum

from sqlalchemy import Column, String, Boolean, Integer, CheckConstraint
from sqlalchemy.orm import relationship

from lead_router.models.base import BaseModel
from lead_router.utils.helpers import display_name


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"
    CUSTOMER = "customer"


class User(BaseModel):
    """
    A platform user. Agents receive routed prospects; ``owed_leads_count``
    is the manual credit counter used when no lead package has credit left.
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.AGENT.value, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    owed_leads_count = Column(Integer, nullable=False, default=0)

    package_assignments = relationship(
        "LeadPackageAssignment",
        back_populates="agent",
        cascade="all, delete-orphan",
        order_by="LeadPackageAssignment.purchase_date",
    )
    assigned_prospects = relationship(
        "Prospect",
        back_populates="assigned_agent",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("owed_leads_count >= 0", name="ck_users_owed_leads_nonneg"),
    )

    @property
    def full_name(self) -> str:
        return display_name(self.first_name, self.last_name, fallback=self.email or "")

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT.value

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"
