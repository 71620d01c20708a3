"""Tests for agent removal, the unassignment cascade and the System Agent guard."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from lead_router.models import LeadPackageAssignment, Prospect, ProspectActivity, User
from lead_router.schemas.users import UserCreate, UserUpdate
from lead_router.services.agent_service import AgentService
from lead_router.services.system_agent import SystemAgentGuard, ensure_system_agent
from lead_router.utils.exceptions import ConflictError, SystemAgentProtectedError, ValidationError


def unassign_entries(db, prospect_id):
    return db.query(ProspectActivity).filter_by(prospect_id=prospect_id, type="unassigned").all()


class TestSystemAgentProvisioning:
    def test_created_once(self, db):
        first = ensure_system_agent(db)
        second = ensure_system_agent(db)
        assert first.id == second.id
        assert first.email == "system@mktr.local"
        assert first.full_name == "System Agent"
        assert db.query(User).count() == 1

    def test_repairs_role_and_status(self, db, system_agent):
        system_agent.role = "admin"
        system_agent.is_active = False
        db.commit()

        repaired = ensure_system_agent(db)
        assert repaired.id == system_agent.id
        assert repaired.role == "agent"
        assert repaired.is_active is True

    def test_guard_identifies_by_email(self, db, system_agent, make_user):
        assert SystemAgentGuard.is_system_agent(system_agent)
        assert not SystemAgentGuard.is_system_agent(make_user("A"))
        assert not SystemAgentGuard.is_system_agent(None)


class TestSentinelInvariant:
    """Every removal path refuses the System Agent and leaves it untouched."""

    @pytest.mark.parametrize("action", ["deactivate", "delete_permanently", "bulk_delete", "status"])
    def test_removal_is_refused(self, db, system_agent, action):
        service = AgentService(db)
        with pytest.raises(SystemAgentProtectedError) as exc:
            if action == "deactivate":
                service.deactivate(system_agent.id)
            elif action == "delete_permanently":
                service.delete_permanently(system_agent.id)
            elif action == "bulk_delete":
                service.bulk_delete([system_agent.id])
            else:
                service.set_status(system_agent.id, False)

        assert exc.value.status_code == 400
        assert "System Agent" in exc.value.detail
        db.expire_all()
        agent = db.get(User, system_agent.id)
        assert agent is not None
        assert agent.is_active is True

    def test_bulk_delete_with_sentinel_touches_nobody(self, db, system_agent, make_user):
        a = make_user("A")
        with pytest.raises(SystemAgentProtectedError):
            AgentService(db).bulk_delete([a.id, system_agent.id])

        assert db.get(User, a.id) is not None

    @pytest.mark.parametrize("change", [{"role": "admin"}, {"email": "other@test.com"}, {"is_active": False}])
    def test_update_is_refused(self, db, system_agent, change):
        with pytest.raises(SystemAgentProtectedError):
            AgentService(db).update_user(system_agent.id, UserUpdate(**change))

        db.expire_all()
        agent = db.get(User, system_agent.id)
        assert agent.role == "agent"
        assert agent.email == "system@mktr.local"
        assert agent.is_active is True

    def test_name_change_is_allowed(self, db, system_agent):
        updated = AgentService(db).update_user(system_agent.id, UserUpdate(first_name="Overflow"))
        assert updated.first_name == "Overflow"


class TestUnassignmentCascade:
    def test_permanent_delete_unassigns_every_prospect(self, db, system_agent, make_user, grant, route):
        a = make_user("Dana", last_name="Lee", owed_leads_count=3)
        agent_id = a.id
        grant(a, 1)
        prospect_ids = [route().prospect.id for _ in range(3)]

        outcome = AgentService(db).delete_permanently(agent_id)

        assert sorted(outcome.unassigned_prospect_ids) == sorted(prospect_ids)
        assert outcome.activity_log_written
        assert db.get(User, agent_id) is None
        assert db.query(LeadPackageAssignment).filter_by(agent_id=agent_id).count() == 0
        for prospect_id in prospect_ids:
            assert db.get(Prospect, prospect_id).assigned_agent_id is None
            entries = unassign_entries(db, prospect_id)
            assert len(entries) == 1
            assert entries[0].description == "Lead unassigned because agent Dana Lee was deleted"
            assert entries[0].details["previousAgentId"] == agent_id

    def test_deactivate_unassigns_and_keeps_the_account(self, db, system_agent, make_user, route):
        a = make_user("Sam", last_name="Ray", owed_leads_count=2)
        prospect_ids = [route().prospect.id for _ in range(2)]

        outcome = AgentService(db).deactivate(a.id)

        db.expire_all()
        assert db.get(User, a.id).is_active is False
        assert sorted(outcome.unassigned_prospect_ids) == sorted(prospect_ids)
        for prospect_id in prospect_ids:
            assert db.get(Prospect, prospect_id).assigned_agent_id is None
            assert unassign_entries(db, prospect_id)[0].description == (
                "Lead unassigned because agent Sam Ray was deactivated"
            )

    def test_status_update_cascades(self, db, system_agent, make_user, route):
        a = make_user("A", owed_leads_count=1)
        prospect = route().prospect

        user, outcome = AgentService(db).set_status(a.id, False)
        assert user.is_active is False
        assert outcome.unassigned_prospect_ids == [prospect.id]

        user, outcome = AgentService(db).set_status(a.id, True)
        assert user.is_active is True
        assert outcome is None

    def test_update_with_is_active_false_cascades(self, db, system_agent, make_user, route):
        a = make_user("A", owed_leads_count=1)
        prospect = route().prospect

        user = AgentService(db).update_user(a.id, UserUpdate(is_active=False, first_name="Alex"))
        assert user.is_active is False
        assert user.first_name == "Alex"
        db.expire_all()
        assert db.get(Prospect, prospect.id).assigned_agent_id is None

    def test_bulk_delete(self, db, system_agent, make_user, route):
        a = make_user("A", owed_leads_count=1)
        b = make_user("B", owed_leads_count=1)
        p1 = route().prospect.id
        p2 = route().prospect.id
        ids = [a.id, b.id]

        outcomes, not_found = AgentService(db).bulk_delete(ids + [4040])

        assert [o.user_id for o in outcomes] == ids
        assert not_found == [4040]
        assert db.query(Prospect).filter(Prospect.id.in_([p1, p2]), Prospect.assigned_agent_id.isnot(None)).count() == 0
        assert len(unassign_entries(db, p1)) == 1
        assert len(unassign_entries(db, p2)) == 1

    def test_bulk_delete_refuses_non_agents(self, db, system_agent, make_user):
        a = make_user("A")
        admin = make_user("Root", role="admin")

        with pytest.raises(ValidationError):
            AgentService(db).bulk_delete([a.id, admin.id])
        assert db.get(User, a.id) is not None

    def test_self_delete_is_refused(self, db, system_agent, make_user):
        a = make_user("A")
        with pytest.raises(ValidationError):
            AgentService(db).delete_permanently(a.id, actor_id=a.id)

    def test_agent_without_prospects(self, db, system_agent, make_user):
        a = make_user("A")
        outcome = AgentService(db).delete_permanently(a.id)
        assert outcome.unassigned_prospect_ids == []
        assert outcome.activity_log_written

    @pytest.mark.parametrize("error", [SQLAlchemyError("disk full"), ValueError("details are not serialisable")])
    def test_log_failure_keeps_the_deletion(self, db, system_agent, make_user, route, monkeypatch, error):
        a = make_user("A", owed_leads_count=1)
        agent_id = a.id
        prospect = route().prospect
        service = AgentService(db)

        def broken_record(**kwargs):
            raise error

        monkeypatch.setattr(service.activities, "record", broken_record)
        outcome = service.delete_permanently(agent_id)

        assert outcome.activity_log_written is False
        db.expire_all()
        assert db.get(User, agent_id) is None
        assert db.get(Prospect, prospect.id).assigned_agent_id is None
        assert unassign_entries(db, prospect.id) == []


class TestUserManagement:
    def test_duplicate_email_conflicts(self, db, system_agent):
        service = AgentService(db)
        service.create_user(UserCreate(email="Agent@Test.com", first_name="A"))
        with pytest.raises(ConflictError):
            service.create_user(UserCreate(email="agent@test.com", first_name="B"))

    def test_listing_hides_the_system_agent(self, db, system_agent, make_user):
        a = make_user("A")
        service = AgentService(db)

        assert [u.id for u in service.list_users()] == [a.id]
        assert {u.id for u in service.list_users(include_system=True)} == {a.id, system_agent.id}

    def test_credit_breakdown(self, db, system_agent, make_user, grant):
        a = make_user("A", owed_leads_count=2)
        grant(a, 3)
        grant(a, 4)

        credit = AgentService(db).credit(a.id)
        assert credit.package_credit == 7
        assert credit.manual_credit == 2
        assert credit.total == 9
