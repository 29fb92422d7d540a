# otp_auth/authentication/views.py
import math
import secrets
import jwt
from datetime import datetime, timedelta, timezone
from flask import current_app
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash
from otp_auth.init_db import db
from otp_auth.authentication.models import User, Otp, LOCAL_PROVIDER, GOOGLE_PROVIDER
from otp_auth.errors import UserAlreadyExistsError
from otp_auth.logging_config import setup_logging

logger = setup_logging()

GOOGLE_NOT_CONFIGURED = "Google login not configured on server."


def _utcnow():
    # Naive UTC, matching what SQLite hands back for DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_secret(value):
    method = current_app.config.get('PASSWORD_HASH_METHOD', 'pbkdf2:sha256')
    return generate_password_hash(str(value), method=method)


def normalize_email(value):
    return str(value or '').strip().lower()


def find_user(email):
    return User.query.filter_by(email=email).first()


# ---------------------------------------------------------------------------
# OTP
# ---------------------------------------------------------------------------

def generate_otp(length=None):
    """Return a numeric code of ``OTP_LENGTH`` digits, each drawn uniformly from 0-9."""
    if length is None:
        length = current_app.config.get('OTP_LENGTH', 6)
    return ''.join(str(secrets.randbelow(10)) for _ in range(length))


def _last_sent_at(email):
    return db.session.query(Otp.sent_at).filter(Otp.email == email).scalar()


def _remaining_wait(last_sent_at, now, cooldown):
    remaining = cooldown - (now - last_sent_at).total_seconds()
    return max(1, min(cooldown, math.ceil(remaining)))


def save_otp(email, password, provider, otp):
    """Persist a fresh code for ``email`` unless one was sent within the cooldown.

    Returns None when the code was stored, otherwise the number of seconds the
    caller still has to wait. ``password`` must already be hashed.
    """
    now = _utcnow()
    cooldown = current_app.config.get('OTP_COOLDOWN_SECONDS', 60)
    values = {
        'password': password,
        'provider': provider,
        'code': hash_secret(otp),
        'sent_at': now,
    }

    # Conditional overwrite on sent_at so two requests cannot both pass the cooldown
    updated = Otp.query.filter(
        Otp.email == email,
        Otp.sent_at <= now - timedelta(seconds=cooldown)
    ).update(values, synchronize_session=False)
    if updated:
        db.session.commit()
        return None

    last_sent_at = _last_sent_at(email)
    if last_sent_at is None:
        db.session.add(Otp(email=email, **values))
        try:
            db.session.commit()
            return None
        except IntegrityError:
            # A parallel request stored the first code for this email
            db.session.rollback()
            last_sent_at = _last_sent_at(email) or now
    else:
        db.session.rollback()

    wait_seconds = _remaining_wait(last_sent_at, now, cooldown)
    logger.info(f"OTP for {email} requested during cooldown, {wait_seconds}s left")
    return wait_seconds


def discard_otp(email):
    Otp.query.filter_by(email=email).delete(synchronize_session=False)
    db.session.commit()


def _is_expired(pending, now):
    ttl = current_app.config.get('OTP_TTL_SECONDS', 60)
    return now - pending.sent_at >= timedelta(seconds=ttl)


def _purge_if_stale(pending, now):
    """Delete an expired record, but never while it still holds a cooldown."""
    cooldown = current_app.config.get('OTP_COOLDOWN_SECONDS', 60)
    if _is_expired(pending, now) and now - pending.sent_at >= timedelta(seconds=cooldown):
        email = pending.email
        db.session.delete(pending)
        db.session.commit()
        logger.info(f"Expired OTP for {email} deleted.")


def otp_timer(email):
    pending = Otp.query.filter_by(email=email).first()
    if not pending:
        return None

    now = _utcnow()
    ttl = current_app.config.get('OTP_TTL_SECONDS', 60)
    expires_at = pending.sent_at + timedelta(seconds=ttl)
    seconds_left = max(0, math.ceil((expires_at - now).total_seconds()))
    timer = {
        'createdAt': int(pending.sent_at.replace(tzinfo=timezone.utc).timestamp() * 1000),
        'expiresIn': seconds_left,
        'isExpired': seconds_left == 0,
    }
    if timer['isExpired']:
        _purge_if_stale(pending, now)
    return timer


def verify_otp(email, otp):
    """Turn a pending registration into a user when ``otp`` matches and is still fresh."""
    pending = Otp.query.filter_by(email=email).first()
    if not pending:
        return None

    now = _utcnow()
    if _is_expired(pending, now):
        _purge_if_stale(pending, now)
        return None

    if not check_password_hash(pending.code, str(otp)):
        return None

    if find_user(email):
        raise UserAlreadyExistsError(email)

    user = User(email=pending.email, password=pending.password, provider=pending.provider)
    db.session.add(user)
    db.session.delete(pending)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise UserAlreadyExistsError(email)

    logger.info(f"Email {email} verified, user created.")
    return user


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def create_token(user):
    now = datetime.now(timezone.utc)
    payload = {
        'sub': user.email,
        'provider': user.provider,
        'iat': now,
        'exp': now + timedelta(minutes=current_app.config.get('JWT_EXPIRY_MINUTES', 60)),
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256')
    )


def load_user_from_token(token):
    try:
        payload = jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')]
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected session token: {e}")
        return None
    return find_user(payload.get('sub'))


def verify_credentials(email, password):
    """Return a signed session token for a local user with a matching password, else None."""
    user = User.query.filter_by(email=email, provider=LOCAL_PROVIDER).first()
    if not user or not check_password_hash(user.password, password):
        return None
    return create_token(user)


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------

def verify_google_id_token(credential):
    """Return the claims of a Google ID token issued to our client, or None."""
    try:
        return google_id_token.verify_oauth2_token(
            credential,
            google_requests.Request(),
            current_app.config['GOOGLE_CLIENT_ID'],
        )
    except (ValueError, google_exceptions.GoogleAuthError) as e:
        logger.warning(f"Rejected Google ID token: {e}")
        return None


def login_with_google(credential):
    """Resolve a Google ID token to a user, creating a ``google`` user on first sight.

    Returns ``(user, error)``; exactly one of them is None.
    """
    if not current_app.config.get('GOOGLE_CLIENT_ID'):
        return None, GOOGLE_NOT_CONFIGURED

    idinfo = verify_google_id_token(credential)
    if idinfo is None:
        return None, "Invalid Google token."

    users_email = normalize_email(idinfo.get("email"))
    if not users_email or not idinfo.get("email_verified"):
        return None, "User email not available or not verified by Google."

    user = find_user(users_email)
    if not user:
        # Google users never log in with a password; the hash only fills the column
        user = User(email=users_email, password=hash_secret(idinfo.get("sub")), provider=GOOGLE_PROVIDER)
        db.session.add(user)
        db.session.commit()
        logger.info(f"Created Google user {users_email}.")

    return user, None


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

def user_status(user):
    return 'new' if not user.username else 'existing'


def update_profile(user, username):
    user.username = username
    db.session.commit()
    logger.info(f"Profile updated for {user.email}.")
    return user
