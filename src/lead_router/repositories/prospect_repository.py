"""
Prospect and prospect activity queries
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select, update

from lead_router.models import Prospect, ProspectActivity
from lead_router.repositories.base_repository import BaseRepository


class ProspectRepository(BaseRepository[Prospect]):
    model = Prospect

    def search(
        self,
        campaign_id: Optional[int] = None,
        assigned_agent_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[int, List[Prospect]]:
        query = self.db.query(Prospect)
        if campaign_id is not None:
            query = query.filter(Prospect.campaign_id == campaign_id)
        if assigned_agent_id is not None:
            query = query.filter(Prospect.assigned_agent_id == assigned_agent_id)
        total = query.count()
        rows = query.order_by(Prospect.id.desc()).offset(skip).limit(limit).all()
        return total, rows

    def find_many(self, ids: Iterable[int]) -> List[Prospect]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(Prospect).filter(Prospect.id.in_(ids)).order_by(Prospect.id).all()

    def phone_taken(self, campaign_id: int, phone: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Prospect).filter(Prospect.campaign_id == campaign_id, Prospect.phone == phone)
        if exclude_id is not None:
            query = query.filter(Prospect.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def assignment_stats(
        self, agent_ids: Iterable[int], campaign_id: Optional[int] = None
    ) -> Dict[int, Tuple[int, Optional[datetime]]]:
        """
        Per agent: how many prospects currently point at it, and when the
        most recent of them was created. Scoped to one campaign when given.
        """
        agent_ids = list(agent_ids)
        if not agent_ids:
            return {}
        stmt = (
            select(
                Prospect.assigned_agent_id,
                func.count(Prospect.id),
                func.max(Prospect.created_at),
            )
            .where(Prospect.assigned_agent_id.in_(agent_ids))
            .group_by(Prospect.assigned_agent_id)
        )
        if campaign_id is not None:
            stmt = stmt.where(Prospect.campaign_id == campaign_id)
        return {agent_id: (count, last) for agent_id, count, last in self.db.execute(stmt)}

    def ids_assigned_to(self, agent_id: int) -> List[int]:
        return list(
            self.db.execute(
                select(Prospect.id).where(Prospect.assigned_agent_id == agent_id).order_by(Prospect.id)
            ).scalars()
        )

    def unassign_all(self, agent_id: int) -> List[int]:
        """Null ``assigned_agent_id`` on every prospect of an agent; returns the affected ids"""
        prospect_ids = self.ids_assigned_to(agent_id)
        if prospect_ids:
            self.db.execute(
                update(Prospect)
                .where(Prospect.id.in_(prospect_ids))
                .values(assigned_agent_id=None)
                .execution_options(synchronize_session="fetch")
            )
        return prospect_ids


class ProspectActivityRepository(BaseRepository[ProspectActivity]):
    model = ProspectActivity

    def record(
        self,
        prospect_id: int,
        type: str,
        description: str,
        actor_user_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> ProspectActivity:
        """Stage an activity row; the caller owns the transaction"""
        return self.add(
            prospect_id=prospect_id,
            type=type,
            actor_user_id=actor_user_id,
            description=description[:255],
            details=details or {},
        )
