# otp_auth/app_factory.py
from flask import Flask, jsonify
from flask_login import LoginManager
from sqlalchemy.exc import OperationalError
from otp_auth.init_db import db
from otp_auth.errors import UserAlreadyExistsError
from otp_auth.mail import MailSettings, build_transport
from otp_auth.authentication.views import load_user_from_token
from otp_auth.logging_config import setup_logging


def create_app(config_class='otp_auth.config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logger = setup_logging(app.config.get('LOG_TIMEZONE'))

    # Fails fast with ConfigurationError when the chosen transport is incomplete
    mail_settings = MailSettings.from_config(app.config)
    app.extensions['mail_transport'] = build_transport(mail_settings)
    logger.info(f"Mail transport: {mail_settings.transport}")

    db.init_app(app)

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user_from_request(req):
        header = req.headers.get('Authorization', '')
        scheme, _, token = header.partition(' ')
        if scheme.lower() != 'bearer' or not token:
            return None
        return load_user_from_token(token.strip())

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'message': 'Unauthorized access. Please log in.'}), 401

    @app.errorhandler(UserAlreadyExistsError)
    def user_exists(e):
        logger.warning(f"Registration attempt with existing email: {e.email}")
        return 'Username already exists', 409, {'Content-Type': 'text/plain; charset=utf-8'}

    # Import and register blueprints
    from otp_auth.authentication.routes import auth_bp as auth_blueprint
    app.register_blueprint(auth_blueprint)

    with app.app_context():
        try:
            db.create_all()
        except OperationalError as e:
            app.logger.error(f"OperationalError during database initialization: {e}")

    return app
