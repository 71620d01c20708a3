"""
User and agent queries
"""
from typing import Iterable, List, Optional

from sqlalchemy import func, select

from lead_router.models import User, UserRole
from lead_router.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def find_many(self, ids: Iterable[int]) -> List[User]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(User).filter(User.id.in_(ids)).order_by(User.id).all()

    def lock(self, user_id: int) -> Optional[User]:
        """Load a user row with FOR UPDATE (no-op lock on SQLite)"""
        return self.db.execute(
            select(User).where(User.id == user_id).with_for_update()
        ).scalar_one_or_none()

    def active_agents(self, ids: Optional[Iterable[int]] = None, exclude_id: Optional[int] = None) -> List[User]:
        """
        Active users with role agent, ordered by creation. Restricted to
        ``ids`` when given; ``exclude_id`` drops one id (the System Agent).
        """
        query = self.db.query(User).filter(
            User.role == UserRole.AGENT.value,
            User.is_active.is_(True),
        )
        if ids is not None:
            ids = list(ids)
            if not ids:
                return []
            query = query.filter(User.id.in_(ids))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.order_by(User.created_at, User.id).all()

    def search(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        exclude_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()
