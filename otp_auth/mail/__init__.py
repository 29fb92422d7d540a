from otp_auth.mail.settings import MailSettings
from otp_auth.mail.transports import (
    MailTransport,
    SmtpTransport,
    BrevoTransport,
    ConsoleTransport,
    build_transport,
)

__all__ = [
    'MailSettings',
    'MailTransport',
    'SmtpTransport',
    'BrevoTransport',
    'ConsoleTransport',
    'build_transport',
]
