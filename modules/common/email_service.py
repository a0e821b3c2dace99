# modules/common/email_service.py
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class EmailService:
    """
    Outgoing mail for notifications (emergency alerts, account notices).

    Backends:
      console - log the message and keep it in `outbox`
      smtp    - deliver through EMAIL_HOST (STARTTLS on 587, SSL when EMAIL_USE_SSL)
    Delivery problems are logged and reported as False, never raised.
    """

    def __init__(self, settings):
        self.s = settings
        self.outbox: List[EmailMessage] = []

    @property
    def sender(self) -> str:
        return f"{self.s.EMAIL_FROM_NAME} <{self.s.EMAIL_FROM or 'noreply@localhost'}>"

    def build(self, subject: str, recipients: List[str], html: str, text: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["Subject"] = subject
        if len(recipients) == 1:
            msg["To"] = recipients[0]
        else:
            # broadcast: recipients do not see each other
            msg["To"] = self.s.EMAIL_FROM or "undisclosed-recipients:;"
            msg["Bcc"] = ", ".join(recipients)
        msg.set_content(text or " ")
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.s.EMAIL_USE_SSL:
            return smtplib.SMTP_SSL(self.s.EMAIL_HOST, self.s.EMAIL_PORT, context=context, timeout=20)
        server = smtplib.SMTP(self.s.EMAIL_HOST, self.s.EMAIL_PORT, timeout=20)
        if self.s.EMAIL_USE_TLS:
            server.starttls(context=context)
        return server

    def _deliver(self, msg: EmailMessage) -> bool:
        if not self.s.EMAIL_HOST or not self.s.EMAIL_PORT:
            logger.error("EMAIL_HOST/EMAIL_PORT not configured; dropping %r", msg["Subject"])
            return False
        try:
            with self._connect() as server:
                if self.s.EMAIL_USERNAME:
                    server.login(self.s.EMAIL_USERNAME, self.s.EMAIL_PASSWORD)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.exception("SMTP delivery failed (%s): %s", e.__class__.__name__, e)
            return False
        logger.info("[Email] delivered %r", msg["Subject"])
        return True

    def send(self, subject: str, to: Iterable[str], html: str, text: Optional[str] = None) -> bool:
        recipients = sorted({t.strip() for t in to if t and t.strip()})
        if not recipients:
            return False
        if not self.s.EMAIL_ENABLED:
            logger.info("[Email] suppressed (EMAIL_ENABLED=False): %s -> %d recipients", subject, len(recipients))
            return False

        msg = self.build(subject, recipients, html, text)
        if (self.s.EMAIL_BACKEND or "").lower() == "console":
            logger.info("[Email console] %s -> %s\n%s", subject, ", ".join(recipients), text or html)
            self.outbox.append(msg)
            return True
        return self._deliver(msg)


_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _service
    if _service is None:
        from config.settings import email_settings

        _service = EmailService(email_settings)
    return _service
