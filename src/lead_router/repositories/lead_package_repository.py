"""
Lead package and assignment queries, including the credit decrements
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select, update

from lead_router.models import (
    AssignmentStatus,
    LeadPackageAssignment,
    User,
)
from lead_router.repositories.base_repository import BaseRepository


class LeadPackageAssignmentRepository(BaseRepository[LeadPackageAssignment]):
    model = LeadPackageAssignment

    def for_agent(self, agent_id: int) -> List[LeadPackageAssignment]:
        return (
            self.db.query(LeadPackageAssignment)
            .filter(LeadPackageAssignment.agent_id == agent_id)
            .order_by(LeadPackageAssignment.purchase_date, LeadPackageAssignment.id)
            .all()
        )

    def package_credit(self, agent_ids: Iterable[int]) -> Dict[int, int]:
        """Sum of ``leads_remaining`` over active assignments, per agent"""
        agent_ids = list(agent_ids)
        if not agent_ids:
            return {}
        stmt = (
            select(
                LeadPackageAssignment.agent_id,
                func.coalesce(func.sum(LeadPackageAssignment.leads_remaining), 0),
            )
            .where(
                LeadPackageAssignment.agent_id.in_(agent_ids),
                LeadPackageAssignment.status == AssignmentStatus.ACTIVE.value,
            )
            .group_by(LeadPackageAssignment.agent_id)
        )
        return {agent_id: int(total) for agent_id, total in self.db.execute(stmt)}

    def spendable_ids(self, agent_id: int) -> List[int]:
        """Active assignments with credit left, oldest purchase first"""
        stmt = (
            select(LeadPackageAssignment.id)
            .where(
                LeadPackageAssignment.agent_id == agent_id,
                LeadPackageAssignment.status == AssignmentStatus.ACTIVE.value,
                LeadPackageAssignment.leads_remaining > 0,
            )
            .order_by(LeadPackageAssignment.purchase_date, LeadPackageAssignment.id)
        )
        return list(self.db.execute(stmt).scalars())

    def decrement(self, assignment_id: int) -> bool:
        """
        Take one credit from an assignment if it still has one.
        Returns False when a concurrent writer got there first.
        """
        result = self.db.execute(
            update(LeadPackageAssignment)
            .where(
                LeadPackageAssignment.id == assignment_id,
                LeadPackageAssignment.status == AssignmentStatus.ACTIVE.value,
                LeadPackageAssignment.leads_remaining > 0,
            )
            .values(leads_remaining=LeadPackageAssignment.leads_remaining - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self.db.execute(
            update(LeadPackageAssignment)
            .where(
                LeadPackageAssignment.id == assignment_id,
                LeadPackageAssignment.leads_remaining == 0,
            )
            .values(status=AssignmentStatus.DEPLETED.value)
            .execution_options(synchronize_session=False)
        )
        self._expire(LeadPackageAssignment, assignment_id)
        return True

    def decrement_owed(self, agent_id: int) -> bool:
        """Take one unit from the manual ``owed_leads_count`` counter"""
        result = self.db.execute(
            update(User)
            .where(User.id == agent_id, User.owed_leads_count > 0)
            .values(owed_leads_count=User.owed_leads_count - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self._expire(User, agent_id)
        return True

    def _expire(self, model, pk: int) -> None:
        # Identity-mapped copies would otherwise keep the pre-update values
        instance: Optional[object] = self.db.identity_map.get(self.db.identity_key(model, pk))
        if instance is not None:
            self.db.expire(instance)
