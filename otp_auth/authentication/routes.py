# otp_auth/authentication/routes.py
import re
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from otp_auth.logging_config import setup_logging
from otp_auth.errors import MailDeliveryError, UserAlreadyExistsError
from otp_auth.authentication.models import AUTH_PROVIDERS, LOCAL_PROVIDER
from otp_auth.authentication.views import (
    normalize_email, find_user, hash_secret, generate_otp, save_otp, discard_otp, otp_timer, verify_otp,
    verify_credentials, create_token, login_with_google, user_status, update_profile, GOOGLE_NOT_CONFIGURED
)


auth_bp = Blueprint('auth', __name__)

# Setup logging
logger = setup_logging()

EMAIL_PATTERN = re.compile(r"[^@]+@[^@]+\.[^@]+")

# /register, /login and /api/user/status answer with bare strings, not JSON
TEXT = {'Content-Type': 'text/plain; charset=utf-8'}

USERNAME_MAX_LENGTH = 50


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get('email'))
    password = data.get('password')
    provider = data.get('provider') or LOCAL_PROVIDER

    if not email or not password:
        logger.warning("Registration attempt with missing fields.")
        return 'Email and password are required.', 400, TEXT

    if not EMAIL_PATTERN.fullmatch(email):
        logger.warning("Invalid email format during registration.")
        return 'Invalid email address.', 400, TEXT

    if provider not in AUTH_PROVIDERS:
        return f'Unknown provider: {provider}', 400, TEXT

    if find_user(email):
        raise UserAlreadyExistsError(email)

    otp = generate_otp()
    wait_seconds = save_otp(email, hash_secret(password), provider, otp)
    if wait_seconds is not None:
        return (
            f'Please wait {wait_seconds} seconds before requesting a new OTP',
            400,
            {**TEXT, 'Retry-After': str(wait_seconds)},
        )

    logger.info(f"OTP generated for email: {email}")

    transport = current_app.extensions['mail_transport']
    try:
        transport.send(email, 'Your OTP Code', f'Your OTP is: {otp}')
    except MailDeliveryError:
        logger.exception(f"Failed to send OTP email to {email}")
        # Nothing reached the user, so do not hold them to the cooldown
        discard_otp(email)
        return 'Failed to send OTP email', 502, TEXT

    logger.info(f"OTP email sent successfully to: {email}")
    return 'otp sent', 200, TEXT


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get('email'))
    password = str(data.get('password') or '')

    token = verify_credentials(email, password)
    if token is None:
        logger.warning(f"Failed login attempt for email: {email}")
        return 'Invalid credentials', 400, TEXT

    logger.info(f"User {email} logged in successfully.")
    return token, 200, TEXT


@auth_bp.route('/otp/timer/<path:email>', methods=['GET'])
def get_otp_timer(email):
    timer = otp_timer(normalize_email(email))
    if timer is None:
        return jsonify({'error': 'No OTP found', 'isExpired': True}), 404
    return jsonify(timer), 200


@auth_bp.route('/otp/verify', methods=['POST'])
def verify_otp_route():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get('email'))
    otp = data.get('otp')

    if not email or not otp:
        return jsonify({'message': 'Email and OTP are required.'}), 400

    user = verify_otp(email, otp)
    if user is None:
        logger.warning(f"Invalid or expired OTP submitted for {email}")
        return jsonify({'message': 'Invalid or expired OTP'}), 400

    return jsonify({'message': 'otp verified'}), 200


@auth_bp.route('/api/auth/google', methods=['POST'])
def google_login():
    data = request.get_json(silent=True) or {}
    credential = data.get('token')
    if not credential:
        return jsonify({'error': 'token required.'}), 400

    user, error = login_with_google(credential)
    if error:
        status = 500 if error == GOOGLE_NOT_CONFIGURED else 400
        return jsonify({'error': error}), status

    logger.info(f"User {user.email} signed in with Google.")
    return jsonify({'token': create_token(user), 'email': user.email, 'username': user.username}), 200


@auth_bp.route('/api/user/status', methods=['GET'])
@login_required
def get_user_status():
    return user_status(current_user), 200, TEXT


@auth_bp.route('/api/user/profile', methods=['GET'])
@login_required
def get_user_profile():
    return jsonify({
        'email': current_user.email,
        'username': current_user.username,
        'provider': current_user.provider,
    }), 200


@auth_bp.route('/api/user/profile', methods=['POST'])
@login_required
def update_user_profile():
    data = request.get_json(silent=True) or {}
    username = str(data.get('username') or '').strip()

    if not username or len(username) > USERNAME_MAX_LENGTH:
        return jsonify({'message': f'Username must be 1-{USERNAME_MAX_LENGTH} characters.'}), 400

    user = update_profile(current_user, username)
    return jsonify({'email': user.email, 'username': user.username, 'provider': user.provider}), 200
