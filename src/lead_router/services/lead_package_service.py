"""
Lead package templates and granting them to agents
"""
from typing import List

from sqlalchemy.orm import Session

from lead_router.models import LeadPackage, LeadPackageAssignment, LeadPackageStatus
from lead_router.repositories.lead_package_repository import LeadPackageAssignmentRepository
from lead_router.repositories.user_repository import UserRepository
from lead_router.schemas.lead_packages import LeadPackageCreate
from lead_router.services.base_service import BaseService
from lead_router.services.credit_ledger import CreditLedger
from lead_router.services.system_agent import SystemAgentGuard
from lead_router.utils.exceptions import NotFoundError, ValidationError


class LeadPackageService(BaseService[LeadPackage]):
    model = LeadPackage

    def __init__(self, db: Session):
        super().__init__(db)
        self.users = UserRepository(db)
        self.assignments = LeadPackageAssignmentRepository(db)
        self.ledger = CreditLedger(db)
        self.guard = SystemAgentGuard(db)

    def create_package(self, data: LeadPackageCreate) -> LeadPackage:
        return self.create(
            name=data.name,
            description=data.description,
            lead_count=data.lead_count,
            price=data.price,
            status=data.status.value,
        )

    def assign(self, agent_id: int, package_id: int) -> LeadPackageAssignment:
        agent = self.users.find_by_id(agent_id)
        if agent is None:
            raise NotFoundError(f"Agent {agent_id} not found")
        if not agent.is_agent or not agent.is_active:
            raise ValidationError("Lead packages can only be assigned to active agents")
        if self.guard.is_system_agent(agent):
            raise ValidationError("Lead packages cannot be assigned to the System Agent")

        package = self.get(package_id)
        if package is None:
            raise NotFoundError(f"Lead package {package_id} not found")
        if package.status != LeadPackageStatus.ACTIVE.value:
            raise ValidationError(f"Lead package {package_id} is {package.status}")

        return self.ledger.grant_package(agent, package)

    def assignments_for(self, agent_id: int) -> List[LeadPackageAssignment]:
        if self.users.find_by_id(agent_id) is None:
            raise NotFoundError(f"Agent {agent_id} not found")
        return self.assignments.for_agent(agent_id)
