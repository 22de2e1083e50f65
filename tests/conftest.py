"""
Test configuration and fixtures
"""
import os

# Must be set before the app (and its settings) are imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.models.models import User, Installer, Booking, SupportTicket
from app.client.booking_client import BookingServiceClient


# Create an in-memory SQLite database for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with overridden database dependency"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app=app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_customer(db):
    """Create a test customer"""
    user = User(
        email="aoife@example.ie",
        full_name="Aoife Murphy",
        phone="+353871234567",
        is_admin=0
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_customer(db):
    user = User(
        email="sean@example.ie",
        full_name="Sean Byrne",
        is_admin=0
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_admin_user(db):
    """Create a test admin user"""
    user = User(
        email="admin@tradesbook.ie",
        full_name="Test Admin",
        is_admin=1
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_installer(db):
    """Create a test installer"""
    installer = Installer(
        email="installer@example.ie",
        business_name="Wall Mount Pros",
        contact_name="Ciaran Kelly",
        phone="+353861234567"
    )
    db.add(installer)
    db.commit()
    db.refresh(installer)
    return installer


@pytest.fixture
def other_installer(db):
    installer = Installer(
        email="other-installer@example.ie",
        business_name="Mount Masters"
    )
    db.add(installer)
    db.commit()
    db.refresh(installer)
    return installer


@pytest.fixture
def test_booking(db, test_customer, test_installer):
    """Create an assigned two-TV booking"""
    booking = Booking(
        customer_id=test_customer.id,
        installer_id=test_installer.id,
        contact_name="Aoife Murphy",
        contact_email="aoife@example.ie",
        address="12 Main Street, Dublin",
        tv_count=2,
        status="assigned"
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def unassigned_booking(db, test_customer):
    booking = Booking(
        customer_id=test_customer.id,
        installer_id=None,
        contact_name="Aoife Murphy",
        contact_email="aoife@example.ie",
        tv_count=1,
        status="pending"
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def test_ticket(db, test_customer):
    """Create an open support ticket"""
    ticket = SupportTicket(
        user_id=test_customer.id,
        subject="Installer running late",
        message="My installer has not arrived yet",
        category="booking",
        priority="high",
        status="open"
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    return ticket


def make_token(actor_id: int, role: str) -> str:
    return create_access_token(data={"sub": str(actor_id), "role": role})


@pytest.fixture
def customer_token(test_customer):
    return make_token(test_customer.id, "customer")


@pytest.fixture
def installer_token(test_installer):
    return make_token(test_installer.id, "installer")


@pytest.fixture
def admin_token(test_admin_user):
    return make_token(test_admin_user.id, "admin")


@pytest.fixture
def customer_headers(customer_token):
    """Get authorization headers for customer"""
    return {"Authorization": f"Bearer {customer_token}"}


@pytest.fixture
def installer_headers(installer_token):
    """Get authorization headers for installer"""
    return {"Authorization": f"Bearer {installer_token}"}


@pytest.fixture
def admin_headers(admin_token):
    """Get authorization headers for admin"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def other_customer_headers(other_customer):
    return {"Authorization": f"Bearer {make_token(other_customer.id, 'customer')}"}


@pytest.fixture
def other_installer_headers(other_installer):
    return {"Authorization": f"Bearer {make_token(other_installer.id, 'installer')}"}


@pytest.fixture
def customer_api(client, customer_token):
    """Booking service client talking to the app in-process as the customer"""
    return BookingServiceClient(token=customer_token, http_client=client)


@pytest.fixture
def installer_api(client, installer_token):
    return BookingServiceClient(token=installer_token, http_client=client)


@pytest.fixture
def admin_api(client, admin_token):
    return BookingServiceClient(token=admin_token, http_client=client)
