# otp_auth/mail/settings.py
from dataclasses import dataclass
from typing import Optional

from otp_auth.errors import ConfigurationError

TRANSPORTS = ('smtp', 'brevo', 'console')

_REQUIRED = {
    'smtp': ('sender_email', 'smtp_host'),
    'brevo': ('sender_email', 'brevo_api_key'),
    'console': (),
}


@dataclass(frozen=True)
class MailSettings:
    """Everything a mail transport needs, collected from the app config once at startup."""

    transport: str = 'console'
    sender_email: Optional[str] = None
    sender_name: Optional[str] = None
    reply_to: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    smtp_timeout: float = 10.0
    brevo_api_key: Optional[str] = None
    brevo_api_host: Optional[str] = None

    @classmethod
    def from_config(cls, config):
        settings = cls(
            transport=(config.get('MAIL_TRANSPORT') or 'console').lower(),
            sender_email=config.get('MAIL_SENDER_EMAIL'),
            sender_name=config.get('MAIL_SENDER_NAME'),
            reply_to=config.get('MAIL_REPLY_TO'),
            smtp_host=config.get('SMTP_HOST'),
            smtp_port=int(config.get('SMTP_PORT', 587)),
            smtp_username=config.get('SMTP_USERNAME'),
            smtp_password=config.get('SMTP_PASSWORD'),
            smtp_use_tls=bool(config.get('SMTP_USE_TLS', True)),
            smtp_timeout=float(config.get('SMTP_TIMEOUT', 10)),
            brevo_api_key=config.get('BREVO_API_KEY'),
            brevo_api_host=config.get('BREVO_API_HOST'),
        )
        settings.validate()
        return settings

    def validate(self):
        if self.transport not in TRANSPORTS:
            raise ConfigurationError(
                f"MAIL_TRANSPORT must be one of {', '.join(TRANSPORTS)}, got '{self.transport}'"
            )

        missing = [name for name in _REQUIRED[self.transport] if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Mail transport '{self.transport}' is missing settings: {', '.join(missing)}"
            )

        # Credentials come in pairs or not at all
        if self.transport == 'smtp' and bool(self.smtp_username) != bool(self.smtp_password):
            raise ConfigurationError("SMTP_USERNAME and SMTP_PASSWORD must be set together")
