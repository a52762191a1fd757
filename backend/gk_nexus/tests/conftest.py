"""
Pytest configuration and fixtures for backend testing.

Every test gets a fresh in-memory SQLite database, two independent
organizations with an admin each, and a FastAPI test client whose database
dependency points at the same session.
"""
from types import SimpleNamespace
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from ..api.main import app
from ..database.connection import TEST_DATABASE_URL, build_engine, create_tables, drop_tables, get_db
from ..tenancy.repository import TenantScopedRepository
from .test_base import bearer, create_member, create_organization


@pytest.fixture(scope="function")
def engine():
    """Create an isolated database engine for one test."""
    test_engine = build_engine(TEST_DATABASE_URL)
    create_tables(test_engine)
    yield test_engine
    drop_tables(test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with database dependency override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def repository(db_session) -> TenantScopedRepository:
    return TenantScopedRepository(db_session)


@pytest.fixture
def tenant_a(db_session) -> SimpleNamespace:
    """Organization A with its admin."""
    organization = create_organization(db_session, "Alpha Accounting")
    user, context = create_member(db_session, organization, "alice@alpha.example.com")
    return SimpleNamespace(organization=organization, user=user, context=context)


@pytest.fixture
def tenant_b(db_session) -> SimpleNamespace:
    """Organization B with its admin."""
    organization = create_organization(db_session, "Beta Tax Services")
    user, context = create_member(db_session, organization, "bob@beta.example.com")
    return SimpleNamespace(organization=organization, user=user, context=context)


@pytest.fixture
def auth_headers_a(tenant_a) -> Dict[str, str]:
    return bearer(tenant_a.user, tenant_a.organization)


@pytest.fixture
def auth_headers_b(tenant_b) -> Dict[str, str]:
    return bearer(tenant_b.user, tenant_b.organization)


@pytest.fixture
def sample_client_data() -> Dict:
    """Sample client data for testing."""
    return {
        "name": "Demerara Traders Ltd",
        "entity_type": "COMPANY",
        "email": "accounts@demeraratraders.example.com",
        "phone_number": "+592-225-0000",
        "address": "12 Water Street, Georgetown",
        "tin_number": "010203040",
        "status": "active",
    }
