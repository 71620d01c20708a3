"""
Agent credit ledger

Credit is the sum of ``leads_remaining`` over an agent's active package
assignments plus the manual ``owed_leads_count`` counter. Packages are spent
first, oldest purchase first; the manual counter only pays for a lead when no
active assignment has credit left.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from lead_router.models import AssignmentStatus, LeadPackage, LeadPackageAssignment, User
from lead_router.repositories.lead_package_repository import LeadPackageAssignmentRepository
from lead_router.utils.helpers import utcnow
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)

PACKAGE = "package"
MANUAL = "manual"


@dataclass
class AgentCredit:
    agent_id: int
    package_credit: int
    manual_credit: int

    @property
    def total(self) -> int:
        return self.package_credit + self.manual_credit


class CreditLedger:
    def __init__(self, db: Session):
        self.db = db
        self.assignments = LeadPackageAssignmentRepository(db)

    def balances(self, agents: Iterable[User]) -> Dict[int, AgentCredit]:
        agents = list(agents)
        package_credit = self.assignments.package_credit(a.id for a in agents)
        return {
            agent.id: AgentCredit(
                agent_id=agent.id,
                package_credit=package_credit.get(agent.id, 0),
                manual_credit=max(agent.owed_leads_count or 0, 0),
            )
            for agent in agents
        }

    def with_credit(self, agents: Iterable[User]) -> List[User]:
        """Keep only agents holding at least one unit of credit"""
        agents = list(agents)
        balances = self.balances(agents)
        return [agent for agent in agents if balances[agent.id].total > 0]

    def consume(self, agent_id: int) -> Optional[str]:
        """
        Spend one credit for ``agent_id`` inside the caller's transaction.

        Each attempt is a conditional UPDATE, so two requests can never spend
        the same unit. Returns the source that paid (``"package"`` or
        ``"manual"``), or None when the agent had nothing left.
        """
        for assignment_id in self.assignments.spendable_ids(agent_id):
            if self.assignments.decrement(assignment_id):
                logger.debug(f"[dim]Agent {agent_id}: spent 1 credit from package assignment {assignment_id}[/dim]")
                return PACKAGE
            logger.debug(f"[dim]Assignment {assignment_id} drained concurrently; trying next[/dim]")

        if self.assignments.decrement_owed(agent_id):
            logger.debug(f"[dim]Agent {agent_id}: spent 1 manual credit[/dim]")
            return MANUAL

        return None

    def grant_package(self, agent: User, package: LeadPackage) -> LeadPackageAssignment:
        """Snapshot a package onto an agent as a fresh active assignment"""
        assignment = self.assignments.create(
            agent_id=agent.id,
            lead_package_id=package.id,
            status=AssignmentStatus.ACTIVE.value,
            leads_total=package.lead_count,
            leads_remaining=package.lead_count,
            price_snapshot=package.price or 0,
            purchase_date=utcnow(),
        )
        logger.info(
            f"[green]Granted package[/green] [cyan]{package.name}[/cyan] "
            f"({package.lead_count} leads) to {agent.full_name}"
        )
        return assignment
