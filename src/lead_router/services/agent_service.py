"""
Agent lifecycle: creation, updates, deactivation and deletion

Removing an agent (soft or permanent) unassigns every prospect that points at
it. The unassignment and the removal commit together; the per-prospect audit
entries are written afterwards in their own transaction, so a failure there is
logged without undoing the removal.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from lead_router.models import ActivityType, User, UserRole
from lead_router.repositories.prospect_repository import (
    ProspectActivityRepository,
    ProspectRepository,
)
from lead_router.repositories.user_repository import UserRepository
from lead_router.schemas.users import UserCreate, UserUpdate
from lead_router.services.base_service import BaseService
from lead_router.services.credit_ledger import AgentCredit, CreditLedger
from lead_router.services.system_agent import SystemAgentGuard
from lead_router.utils.exceptions import ConflictError, NotFoundError, ValidationError
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)

DELETED = "deleted"
DEACTIVATED = "deactivated"


@dataclass
class RemovalOutcome:
    user_id: int
    agent_name: str
    unassigned_prospect_ids: List[int] = field(default_factory=list)
    activity_log_written: bool = True


class AgentService(BaseService[User]):
    """User management with the System Agent guard and the unassignment cascade"""

    model = User

    def __init__(self, db: Session):
        super().__init__(db)
        self.users = UserRepository(db)
        self.prospects = ProspectRepository(db)
        self.activities = ProspectActivityRepository(db)
        self.guard = SystemAgentGuard(db)

    def get_or_404(self, user_id: int) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        include_system: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        exclude_id = None
        if not include_system:
            system_agent = self.guard.get()
            exclude_id = system_agent.id if system_agent else None
        return self.users.search(role=role, is_active=is_active, exclude_id=exclude_id, skip=skip, limit=limit)

    def create_user(self, data: UserCreate) -> User:
        if self.users.find_by_email(data.email):
            raise ConflictError("User with this email already exists")
        user = self.create(
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=data.role.value,
            is_active=data.is_active,
            owed_leads_count=data.owed_leads_count,
        )
        logger.info(f"[green]Created {user.role}[/green] [cyan]{user.full_name}[/cyan] (id={user.id})")
        return user

    def update_user(self, user_id: int, data: UserUpdate, actor_id: Optional[int] = None) -> User:
        user = self.get_or_404(user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        # All checks run before anything is written
        role = changes.pop("role", None)
        if role is not None and role.value != user.role:
            self.guard.ensure_mutable(user, "change the role of")
            changes["role"] = role.value
        new_email = changes.get("email")
        if new_email and new_email != user.email:
            self.guard.ensure_mutable(user, "change the email of")
            if self.users.find_by_email(new_email):
                raise ConflictError("User with this email already exists")
        is_active = changes.pop("is_active", None)
        if is_active is not None and is_active != user.is_active:
            self.guard.ensure_mutable(user, "change the status of")
            if not is_active:
                self._refuse_self(user, actor_id, "deactivate")

        if changes:
            user = self.users.update(user, **changes)
        if is_active is False and user.is_active:
            # Deactivation through the generic update takes the cascading path
            self.deactivate(user_id, actor_id=actor_id)
            user = self.get_or_404(user_id)
        elif is_active and not user.is_active:
            user = self.users.update(user, is_active=True)
        return user

    def credit(self, user_id: int) -> AgentCredit:
        user = self.get_or_404(user_id)
        return CreditLedger(self.db).balances([user])[user.id]

    def deactivate(self, user_id: int, actor_id: Optional[int] = None) -> RemovalOutcome:
        """Soft delete: mark inactive and unassign the agent's prospects"""
        user = self.get_or_404(user_id)
        self.guard.ensure_mutable(user, "deactivate")
        self._refuse_self(user, actor_id, "deactivate")

        try:
            prospect_ids = self.prospects.unassign_all(user.id)
            user.is_active = False
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        outcome = RemovalOutcome(user_id=user.id, agent_name=user.full_name, unassigned_prospect_ids=prospect_ids)
        logger.info(
            f"[yellow]Deactivated[/yellow] [cyan]{outcome.agent_name}[/cyan] (id={user.id}); "
            f"unassigned {len(prospect_ids)} prospect(s)"
        )
        outcome.activity_log_written = self._log_unassignments([outcome], DEACTIVATED, actor_id)
        return outcome

    def set_status(self, user_id: int, is_active: bool, actor_id: Optional[int] = None) -> Tuple[User, Optional[RemovalOutcome]]:
        """Activate or deactivate; deactivation cascades like a soft delete"""
        user = self.get_or_404(user_id)
        self.guard.ensure_mutable(user, "change the status of")
        if not is_active:
            outcome = self.deactivate(user_id, actor_id=actor_id)
            return self.get_or_404(user_id), outcome
        user = self.users.update(user, is_active=True)
        logger.info(f"[green]Activated[/green] [cyan]{user.full_name}[/cyan] (id={user.id})")
        return user, None

    def delete_permanently(self, user_id: int, actor_id: Optional[int] = None) -> RemovalOutcome:
        """Hard delete of an agent account"""
        user = self.get_or_404(user_id)
        self._check_deletable(user, actor_id)
        outcomes = self._delete_agents([user])
        outcome = outcomes[0]
        outcome.activity_log_written = self._log_unassignments(outcomes, DELETED, actor_id)
        return outcome

    def bulk_delete(self, user_ids: List[int], actor_id: Optional[int] = None) -> Tuple[List[RemovalOutcome], List[int]]:
        """
        Hard delete several agents. Every target is checked before anything
        is touched; one protected or non-agent id rejects the whole batch.
        Returns the outcomes and the ids that did not exist.
        """
        unique_ids = list(dict.fromkeys(user_ids))
        found = {user.id: user for user in self.users.find_many(unique_ids)}
        not_found = [user_id for user_id in unique_ids if user_id not in found]
        targets = [found[user_id] for user_id in unique_ids if user_id in found]

        for user in targets:
            self._check_deletable(user, actor_id)

        outcomes = self._delete_agents(targets) if targets else []
        if outcomes:
            written = self._log_unassignments(outcomes, DELETED, actor_id)
            for outcome in outcomes:
                outcome.activity_log_written = written
        return outcomes, not_found

    def _check_deletable(self, user: User, actor_id: Optional[int]) -> None:
        self.guard.ensure_mutable(user, "delete")
        self._refuse_self(user, actor_id, "delete")
        if user.role != UserRole.AGENT.value:
            raise ValidationError(f"Only agent accounts can be permanently deleted (user {user.id} is {user.role})")

    @staticmethod
    def _refuse_self(user: User, actor_id: Optional[int], action: str) -> None:
        if actor_id is not None and actor_id == user.id:
            raise ValidationError(f"Cannot {action} your own account")

    def _delete_agents(self, users: List[User]) -> List[RemovalOutcome]:
        """Unassign and delete in one transaction"""
        outcomes = []
        try:
            for user in users:
                prospect_ids = self.prospects.unassign_all(user.id)
                outcomes.append(
                    RemovalOutcome(user_id=user.id, agent_name=user.full_name, unassigned_prospect_ids=prospect_ids)
                )
                self.db.delete(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for outcome in outcomes:
            logger.info(
                f"[red]Deleted agent[/red] [cyan]{outcome.agent_name}[/cyan] (id={outcome.user_id}); "
                f"unassigned {len(outcome.unassigned_prospect_ids)} prospect(s)"
            )
        return outcomes

    def _log_unassignments(self, outcomes: List[RemovalOutcome], reason: str, actor_id: Optional[int]) -> bool:
        """
        One ``unassigned`` activity per affected prospect. Runs after the
        removal committed; failures are rolled back and logged, not raised.
        """
        if not any(outcome.unassigned_prospect_ids for outcome in outcomes):
            return True
        try:
            for outcome in outcomes:
                for prospect_id in outcome.unassigned_prospect_ids:
                    self.activities.record(
                        prospect_id=prospect_id,
                        type=ActivityType.UNASSIGNED.value,
                        actor_user_id=actor_id if actor_id != outcome.user_id else None,
                        description=f"Lead unassigned because agent {outcome.agent_name} was {reason}",
                        details={"previousAgentId": outcome.user_id, "reason": reason},
                    )
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            affected = sum(len(outcome.unassigned_prospect_ids) for outcome in outcomes)
            logger.error(
                f"[bold red]Failed to write unassignment log for {affected} prospect(s)[/bold red] "
                f"after agent(s) {[o.user_id for o in outcomes]} were {reason}: {e}"
            )
            return False
