"""
Shared test fixtures.

The app runs against a temporary SQLite file with a recording mail
transport, so nothing leaves the process. ``clock`` replaces the OTP
manager's notion of "now" so cooldowns can be crossed without sleeping.
"""

import re
from datetime import datetime, timedelta

import pytest

from otp_auth.app_factory import create_app
from otp_auth.config import Config
from otp_auth.errors import MailDeliveryError
from otp_auth.init_db import db
from otp_auth.mail import MailTransport


class RecordingTransport(MailTransport):
    """Keeps every message instead of sending it; can be told to fail."""

    name = 'recording'

    def __init__(self):
        super().__init__(settings=None)
        self.sent = []
        self.fail_with = None

    def send(self, to, subject, body):
        if self.fail_with is not None:
            raise MailDeliveryError(self.fail_with, transport=self.name)
        self.sent.append((to, subject, body))

    def last_code(self):
        return re.search(r'\d+', self.sent[-1][2]).group()


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = 'test-secret'
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        JWT_SECRET = 'test-jwt-secret'
        # Keep hashing cheap in tests
        PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
        OTP_LENGTH = 6
        OTP_COOLDOWN_SECONDS = 60
        OTP_TTL_SECONDS = 60
        MAIL_TRANSPORT = 'console'
        GOOGLE_CLIENT_ID = None

    app = create_app(TestConfig)
    app.extensions['mail_transport'] = RecordingTransport()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def mailbox(app):
    return app.extensions['mail_transport']


@pytest.fixture()
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr('otp_auth.authentication.views._utcnow', fake)
    return fake


@pytest.fixture()
def registered_user(client, mailbox, clock):
    """A verified local user: test@example.com / S3cret!pass."""
    client.post('/register', json={'email': 'test@example.com', 'password': 'S3cret!pass'})
    client.post('/otp/verify', json={'email': 'test@example.com', 'otp': mailbox.last_code()})
    return 'test@example.com', 'S3cret!pass'
