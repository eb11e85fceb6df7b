"""
Pytest configuration and shared fixtures
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.context import RequestContext
from app.core.dependencies import get_db
from app.db.base import Base
from app.db.session import make_engine
from app.main import app
from app.models.enums import UserRole
from app.services.service_orders import ServiceOrderService

from factories import bearer, make_orchestrator, no_sleep, seed_hotel


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database sharing one connection"""
    engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def hotel(db_session):
    return seed_hotel(db_session)


# ============== Request contexts ==============

@pytest.fixture
def guest_ctx(hotel):
    return RequestContext(user_id=hotel.guest.id, role=UserRole.CUSTOMER)


@pytest.fixture
def other_guest_ctx(hotel):
    return RequestContext(user_id=hotel.other_guest.id, role=UserRole.CUSTOMER)


@pytest.fixture
def staff_ctx(hotel):
    return RequestContext(user_id=hotel.receptionist.id, role=UserRole.RECEPTIONIST)


# ============== Services under test ==============

@pytest.fixture
def orchestrator(db_session, hotel):
    return make_orchestrator(db_session)


@pytest.fixture
def service_orders(db_session, hotel):
    return ServiceOrderService(db_session, sleep=no_sleep)


# ============== HTTP client ==============

@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def guest_headers(hotel):
    return bearer(hotel.guest)


@pytest.fixture
def other_guest_headers(hotel):
    return bearer(hotel.other_guest)


@pytest.fixture
def staff_headers(hotel):
    return bearer(hotel.receptionist)
