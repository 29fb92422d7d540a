# otp_auth/mail/transports.py
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr

import sib_api_v3_sdk
import urllib3
from sib_api_v3_sdk.rest import ApiException

from otp_auth.errors import MailDeliveryError
from otp_auth.logging_config import setup_logging

logger = setup_logging()


class MailTransport(ABC):
    """send(to, subject, body) returns on success and raises MailDeliveryError otherwise."""

    name = 'base'

    def __init__(self, settings):
        self.settings = settings

    @abstractmethod
    def send(self, to, subject, body):
        """Hand one plain-text message to the provider."""


class SmtpTransport(MailTransport):
    name = 'smtp'

    def _build_message(self, to, subject, body):
        msg = EmailMessage()
        msg['From'] = formataddr((self.settings.sender_name or '', self.settings.sender_email))
        msg['To'] = to
        msg['Subject'] = subject
        if self.settings.reply_to:
            msg['Reply-To'] = self.settings.reply_to
        msg.set_content(body)
        return msg

    def send(self, to, subject, body):
        settings = self.settings
        msg = self._build_message(to, subject, body)
        logger.info(f"Attempting to send email to: {to} via SMTP {settings.smtp_host}:{settings.smtp_port}")

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout) as server:
                if settings.smtp_use_tls:
                    server.starttls()
                if settings.smtp_username and settings.smtp_password:
                    server.login(settings.smtp_username, settings.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email sending failed for {to}: {e}")
            raise MailDeliveryError(str(e), transport=self.name) from e

        logger.info(f"Email sent successfully to: {to}")


class BrevoTransport(MailTransport):
    name = 'brevo'

    def __init__(self, settings):
        super().__init__(settings)

        # Initialize Brevo API client
        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key['api-key'] = settings.brevo_api_key
        if settings.brevo_api_host:
            configuration.host = settings.brevo_api_host
        api_client = sib_api_v3_sdk.ApiClient(configuration)
        self.api_instance = sib_api_v3_sdk.TransactionalEmailsApi(api_client)

    def _build_email(self, to, subject, body):
        sender = {"email": self.settings.sender_email}
        if self.settings.sender_name:
            sender["name"] = self.settings.sender_name

        kwargs = {}
        if self.settings.reply_to:
            kwargs['reply_to'] = {"email": self.settings.reply_to}

        return sib_api_v3_sdk.SendSmtpEmail(
            to=[{"email": to}],
            sender=sender,
            subject=subject,
            text_content=body,
            **kwargs
        )

    def send(self, to, subject, body):
        send_smtp_email = self._build_email(to, subject, body)
        logger.info(f"Attempting to send email to: {to} via Brevo")

        try:
            api_response = self.api_instance.send_transac_email(send_smtp_email)
        except ApiException as e:
            logger.error(f"Exception when calling TransactionalEmailsApi->send_transac_email: {e}")
            raise MailDeliveryError(f"Brevo rejected the message: {e.status} {e.reason}", transport=self.name) from e
        except (urllib3.exceptions.HTTPError, OSError) as e:
            logger.error(f"Brevo API unreachable while sending to {to}: {e}")
            raise MailDeliveryError(str(e), transport=self.name) from e

        logger.info(f"Email sent successfully to: {to} ({api_response})")


class ConsoleTransport(MailTransport):
    """Development fallback: logs the message instead of sending it."""

    name = 'console'

    def send(self, to, subject, body):
        logger.info(f"[DEV] Would send email to {to}\n  Subject: {subject}\n  {body}")


_TRANSPORTS = {
    SmtpTransport.name: SmtpTransport,
    BrevoTransport.name: BrevoTransport,
    ConsoleTransport.name: ConsoleTransport,
}


def build_transport(settings):
    return _TRANSPORTS[settings.transport](settings)
