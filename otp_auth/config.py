# otp_auth/config.py
import os
import binascii


def _env_bool(name, default):
    return os.getenv(name, default).lower() == 'true'


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY') or binascii.hexlify(os.urandom(24)).decode()

    BASE_DIR = os.path.abspath(os.path.dirname(__file__))

    DATABASE_PATH = os.path.join(BASE_DIR, 'otp_auth.db')

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', f'sqlite:///{DATABASE_PATH}')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session tokens
    JWT_SECRET = os.getenv('JWT_SECRET', 'dev-secret-change-me-in-production')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRY_MINUTES = int(os.getenv('JWT_EXPIRY_MINUTES', '60'))

    PASSWORD_HASH_METHOD = os.getenv('PASSWORD_HASH_METHOD', 'pbkdf2:sha256')

    # OTP
    OTP_LENGTH = int(os.getenv('OTP_LENGTH', '6'))
    OTP_COOLDOWN_SECONDS = int(os.getenv('OTP_COOLDOWN_SECONDS', '60'))
    OTP_TTL_SECONDS = int(os.getenv('OTP_TTL_SECONDS', '60'))

    # Mail: "smtp", "brevo" or "console"
    MAIL_TRANSPORT = os.getenv('MAIL_TRANSPORT', 'console')
    MAIL_SENDER_EMAIL = os.getenv('MAIL_SENDER_EMAIL')
    MAIL_SENDER_NAME = os.getenv('MAIL_SENDER_NAME', 'OTP Auth')
    MAIL_REPLY_TO = os.getenv('MAIL_REPLY_TO')

    SMTP_HOST = os.getenv('SMTP_HOST')
    SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
    SMTP_USERNAME = os.getenv('SMTP_USERNAME')
    SMTP_PASSWORD = os.getenv('SMTP_PASSWORD')
    SMTP_USE_TLS = _env_bool('SMTP_USE_TLS', 'true')
    SMTP_TIMEOUT = float(os.getenv('SMTP_TIMEOUT', '10'))

    BREVO_API_KEY = os.getenv('BREVO_API_KEY')
    # Regional API host, e.g. for data residency. None keeps the SDK default.
    BREVO_API_HOST = os.getenv('BREVO_API_HOST')

    # Google sign-in: ID tokens must be issued to this client
    GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID')

    LOG_TIMEZONE = os.getenv('LOG_TIMEZONE', 'Asia/Kolkata')
