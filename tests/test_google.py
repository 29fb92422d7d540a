"""Tests for POST /api/auth/google (no network: ID-token verification is stubbed)."""

import jwt
import pytest

from otp_auth.authentication import views
from otp_auth.authentication.models import User

CLAIMS = {
    'iss': 'https://accounts.google.com',
    'aud': 'client-id',
    'sub': 'google-sub-1',
    'email': 'g@example.com',
    'email_verified': True,
}


@pytest.fixture()
def google_app(app):
    app.config['GOOGLE_CLIENT_ID'] = 'client-id'
    return app


@pytest.fixture()
def id_token_claims(monkeypatch):
    """Claims the stubbed verifier returns; mutate before posting."""
    claims = dict(CLAIMS)

    def verify(credential, request, audience):
        if credential != 'good-token' or audience != 'client-id':
            raise ValueError('Wrong number of segments in token')
        return claims

    monkeypatch.setattr(views.google_id_token, 'verify_oauth2_token', verify)
    return claims


def _google(client, token='good-token'):
    return client.post('/api/auth/google', json={'token': token})


def test_not_configured(client, id_token_claims):
    resp = _google(client)
    assert resp.status_code == 500
    assert resp.get_json()['error'] == views.GOOGLE_NOT_CONFIGURED


def test_token_is_required(google_app):
    resp = google_app.test_client().post('/api/auth/google', json={})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'token required.'


def test_invalid_token(google_app, id_token_claims):
    resp = _google(google_app.test_client(), token='garbage')

    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid Google token.'
    with google_app.app_context():
        assert User.query.count() == 0


def test_token_checked_against_client_id(google_app, id_token_claims):
    google_app.config['GOOGLE_CLIENT_ID'] = 'other-client'
    assert _google(google_app.test_client()).status_code == 400


def test_creates_google_user(google_app, id_token_claims):
    resp = _google(google_app.test_client())

    assert resp.status_code == 200
    data = resp.get_json()
    assert data['email'] == 'g@example.com'
    assert data['username'] is None
    claims = jwt.decode(data['token'], google_app.config['JWT_SECRET'], algorithms=['HS256'])
    assert claims['sub'] == 'g@example.com'
    assert claims['provider'] == 'google'
    with google_app.app_context():
        assert User.query.filter_by(email='g@example.com').one().provider == 'google'


def test_reuses_existing_user(google_app, id_token_claims):
    client = google_app.test_client()

    _google(client)
    _google(client)

    with google_app.app_context():
        assert User.query.filter_by(email='g@example.com').count() == 1


def test_rejects_unverified_email(google_app, id_token_claims):
    id_token_claims['email_verified'] = False

    resp = _google(google_app.test_client())

    assert resp.status_code == 400
    with google_app.app_context():
        assert User.query.count() == 0


def test_email_is_normalized(google_app, id_token_claims, mailbox, clock):
    id_token_claims['email'] = ' Mixed@Example.COM'
    client = google_app.test_client()

    resp = _google(client)

    assert resp.get_json()['email'] == 'mixed@example.com'
    with google_app.app_context():
        assert User.query.filter_by(email='mixed@example.com').count() == 1
    # The same address cannot be registered again with a password
    resp = client.post('/register', json={'email': 'mixed@example.com', 'password': 'S3cret!pass'})
    assert resp.status_code == 409
    assert mailbox.sent == []
