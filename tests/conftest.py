"""Shared fixtures: an in-memory database, model factories and an API client."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lead_router.core.config import settings
from lead_router.core.dependencies import get_db
from lead_router.main import app
from lead_router.models import Base, Campaign, LeadPackage, User
from lead_router.schemas.prospects import ProspectCreate
from lead_router.services.credit_ledger import CreditLedger
from lead_router.services.lead_routing_service import LeadRoutingService
from lead_router.services.system_agent import ensure_system_agent


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def system_agent(db):
    return ensure_system_agent(db)


@pytest.fixture
def make_user(db):
    """Create a user; agents by default."""
    counter = {"n": 0}

    def _make(first_name="Agent", last_name=None, role="agent", is_active=True, owed_leads_count=0, email=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@test.com",
            first_name=first_name,
            last_name=last_name if last_name is not None else str(counter["n"]),
            role=role,
            is_active=is_active,
            owed_leads_count=owed_leads_count,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def grant(db):
    """Give an agent a fresh lead package of ``count`` credits."""

    def _grant(agent, count):
        package = LeadPackage(name=f"{count} leads", lead_count=count, price=Decimal("10.00"), status="active")
        db.add(package)
        db.commit()
        return CreditLedger(db).grant_package(agent, package)

    return _grant


@pytest.fixture
def make_campaign(db):
    def _make(agents=(), name="Spring Campaign"):
        campaign = Campaign(
            name=name,
            type="lead_generation",
            status="active",
            assigned_agent_ids=[agent.id for agent in agents],
            metrics={"leads": 0},
        )
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
        return campaign

    return _make


@pytest.fixture
def route(db):
    """Submit a prospect through the routing service."""
    counter = {"n": 0}

    def _route(campaign=None, **overrides):
        counter["n"] += 1
        data = {
            "first_name": "Lead",
            "last_name": str(counter["n"]),
            "email": f"lead{counter['n']}@example.com",
            "phone": f"555000{counter['n']:04d}",
            "lead_source": "qr_code",
            "campaign_id": campaign.id if campaign is not None else None,
        }
        data.update(overrides)
        return LeadRoutingService(db).create_prospect(ProspectCreate(**data))

    return _route


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-API-Key": settings.security.admin_api_key}
