"""
System Agent sentinel: lookup, startup provisioning and mutation guard
"""
from typing import Optional

from sqlalchemy.orm import Session

from lead_router.core.config import settings
from lead_router.models import User, UserRole
from lead_router.repositories.user_repository import UserRepository
from lead_router.utils.exceptions import DatabaseError, SystemAgentProtectedError
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)


def system_agent_email() -> str:
    return settings.routing.system_agent_email.lower()


def ensure_system_agent(db: Session) -> User:
    """
    Find or create the System Agent by its well-known email, repairing its
    role and active flag if someone changed them out of band.
    Called once at process start.
    """
    users = UserRepository(db)
    agent = users.find_by_email(system_agent_email())

    if agent is None:
        agent = users.create(
            email=system_agent_email(),
            first_name=settings.routing.system_agent_first_name,
            last_name=settings.routing.system_agent_last_name,
            role=UserRole.AGENT.value,
            is_active=True,
            owed_leads_count=0,
        )
        logger.info(f"[green]Created System Agent[/green] [cyan]{agent.email}[/cyan] (id={agent.id})")
    elif agent.role != UserRole.AGENT.value or not agent.is_active:
        logger.warning(
            f"[yellow]System Agent {agent.email} was role={agent.role} active={agent.is_active}; restoring[/yellow]"
        )
        agent = users.update(agent, role=UserRole.AGENT.value, is_active=True)

    return agent


class SystemAgentGuard:
    """Answers "is this the System Agent?" and refuses mutations against it"""

    def __init__(self, db: Session):
        self.users = UserRepository(db)

    def get(self) -> Optional[User]:
        return self.users.find_by_email(system_agent_email())

    def require(self) -> User:
        """The System Agent, or a 500 when it was never provisioned"""
        agent = self.get()
        if agent is None:
            logger.error("[bold red]System Agent is missing; run startup provisioning[/bold red]")
            raise DatabaseError("System Agent is not configured")
        return agent

    @staticmethod
    def is_system_agent(user: Optional[User]) -> bool:
        return user is not None and (user.email or "").lower() == system_agent_email()

    def ensure_mutable(self, user: User, action: str) -> None:
        """Raise ``SystemAgentProtectedError`` when ``user`` is the sentinel"""
        if self.is_system_agent(user):
            logger.warning(f"[yellow]Refused to {action} the System Agent (id={user.id})[/yellow]")
            raise SystemAgentProtectedError(action)
