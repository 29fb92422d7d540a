# otp_auth/authentication/models.py
from flask_login import UserMixin
from otp_auth.init_db import db

LOCAL_PROVIDER = 'local'
GOOGLE_PROVIDER = 'google'
AUTH_PROVIDERS = (LOCAL_PROVIDER, GOOGLE_PROVIDER)


class User(UserMixin, db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    # Set from the profile page; None until the user completes it
    username = db.Column(db.String(50), nullable=True)
    provider = db.Column(db.String(20), nullable=False, default=LOCAL_PROVIDER)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp(), nullable=False)


class Otp(db.Model):
    """Pending registration: the last code sent to an email that is not yet a user."""
    __tablename__ = 'otps'
    id = db.Column(db.Integer, primary_key=True)
    # One outstanding code per email
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    provider = db.Column(db.String(20), nullable=False, default=LOCAL_PROVIDER)
    code = db.Column(db.String(255), nullable=False)
    sent_at = db.Column(db.DateTime, nullable=False)
