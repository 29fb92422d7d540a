# otp_auth/errors.py


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or invalid."""


class UserAlreadyExistsError(Exception):
    def __init__(self, email):
        super().__init__(f"Username already exists: {email}")
        self.email = email


class MailDeliveryError(Exception):
    """A mail transport could not hand the message to its provider."""

    def __init__(self, message, transport=None):
        super().__init__(message)
        self.transport = transport
