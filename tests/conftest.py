"""
Pytest configuration and fixtures for TidyUp backend tests
"""
import pytest
import os
from datetime import datetime, timedelta, timezone

from server import create_app
from models import (
    db, User, CleaningRequest, CleanerApplication,
    ROLE_USER, ROLE_CLEANER, ROLE_ADMIN, utcnow,
)
from auth_routes import generate_token
from lifecycle import PENDING, ACCEPTED

PASSWORD = 'CleanPass123'


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing with a fresh database"""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails instead of queueing them"""
    import notifications
    sent = []

    def fake_send_email(to_email, subject, html_content):
        sent.append({'to': to_email, 'subject': subject, 'html': html_content})

    monkeypatch.setattr(notifications, 'send_email', fake_send_email)
    return sent


@pytest.fixture
def make_user(app):
    """Factory creating users directly in the database"""
    def _make_user(email, full_name='Test User', role=ROLE_USER, verified=True, **kwargs):
        user = User(
            full_name=full_name,
            email=email,
            role=role,
            status='active' if verified else 'unverified',
            email_verified_at=utcnow() if verified else None,
            custom_claims={'admin': True} if role == ROLE_ADMIN else {},
            **kwargs
        )
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user('customer@example.com', full_name='Casey Customer')


@pytest.fixture
def other_customer(make_user):
    return make_user('other@example.com', full_name='Olive Other')


@pytest.fixture
def cleaner(make_user):
    return make_user('cleaner@example.com', full_name='Chris Cleaner', role=ROLE_CLEANER)


@pytest.fixture
def second_cleaner(make_user):
    return make_user('cleaner2@example.com', full_name='Dana Duster', role=ROLE_CLEANER)


@pytest.fixture
def admin(make_user):
    return make_user('admin@example.com', full_name='Avery Admin', role=ROLE_ADMIN)


def headers_for(user):
    """Authorization headers carrying a fresh session token"""
    return {
        'Authorization': f'Bearer {generate_token(user)}',
        'Content-Type': 'application/json',
    }


@pytest.fixture
def customer_headers(customer):
    return headers_for(customer)


@pytest.fixture
def cleaner_headers(cleaner):
    return headers_for(cleaner)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


def future_date(days=1):
    return (datetime.now(timezone.utc) + timedelta(days=days)).strftime('%Y-%m-%d')


def past_date(days=1):
    return (datetime.now(timezone.utc) - timedelta(days=days)).strftime('%Y-%m-%d')


@pytest.fixture
def make_request(app):
    """Factory creating cleaning requests directly in the database"""
    def _make_request(owner, status=PENDING, cleaner=None, **kwargs):
        values = dict(
            user_id=owner.id,
            user_email=owner.email,
            location='12 Harbor Street',
            date=future_date(),
            time='10:00 AM',
            status=status,
        )
        if cleaner is not None:
            values.update(cleaner_id=cleaner.id, cleaner_email=cleaner.email)
        values.update(kwargs)
        cleaning_request = CleaningRequest(**values)
        db.session.add(cleaning_request)
        db.session.commit()
        return cleaning_request
    return _make_request


@pytest.fixture
def pending_request(customer, make_request):
    return make_request(customer)


@pytest.fixture
def accepted_request(customer, cleaner, make_request):
    return make_request(customer, status=ACCEPTED, cleaner=cleaner)


@pytest.fixture
def pending_application(customer):
    application = CleanerApplication(
        user_id=customer.id,
        email=customer.email,
        full_name=customer.full_name,
    )
    db.session.add(application)
    db.session.commit()
    return application


def reload(obj):
    """Re-read a model instance after the API changed it"""
    db.session.expire_all()
    return db.session.get(type(obj), obj.id)
