"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from pg_gateway.api.dependencies import get_approval_gateways
from pg_gateway.api.main import create_app
from pg_gateway.infrastructure.clients.base import ApprovalGateway
from pg_gateway.infrastructure.clients.mock import MockApprovalGateway
from pg_gateway.infrastructure.clients.simulator import SimulatedApprovalGateway
from pg_gateway.infrastructure.database.models import Base, FeePolicyRecord, PartnerRecord
from pg_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

POLICY_START = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def partners(db: Session) -> Session:
    """
    Partners used across API tests:
    - 1: active, odd id (mock gateway), 2.35% + 100
    - 2: active, even id (simulator), 3% + 100
    - 3: inactive
    - 4: active, even id, no fee policy
    """
    db.add_all(
        [
            PartnerRecord(id=1, code="MOCK1", name="Mock Partner 1", active=True),
            PartnerRecord(id=2, code="TESTPAY1", name="Test Provider Partner", active=True),
            PartnerRecord(id=3, code="MOCK3", name="Suspended Partner", active=False),
            PartnerRecord(id=4, code="NOPOLICY", name="Unpriced Partner", active=True),
        ]
    )
    db.flush()
    db.add_all(
        [
            FeePolicyRecord(
                partner_id=1, effective_from=POLICY_START, percentage=Decimal("0.0235"), fixed_fee=Decimal("100")
            ),
            FeePolicyRecord(
                partner_id=2, effective_from=POLICY_START, percentage=Decimal("0.0300"), fixed_fee=Decimal("100")
            ),
            FeePolicyRecord(
                partner_id=3, effective_from=POLICY_START, percentage=Decimal("0.0235"), fixed_fee=Decimal("0")
            ),
        ]
    )
    db.commit()
    return db


@pytest.fixture
def gateways() -> List[ApprovalGateway]:
    """Offline gateway wiring: simulator for even partners, mock for odd"""
    return [SimulatedApprovalGateway(), MockApprovalGateway()]


@pytest.fixture
def client(db: Session, gateways: List[ApprovalGateway]) -> TestClient:
    """Create FastAPI test client with test database and offline gateways"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_approval_gateways] = lambda: gateways
    return TestClient(app)
