import logging

from django.conf import settings
from django.core.mail import send_mail

from .errors import ExternalServiceError

logger = logging.getLogger(__name__)


def send_email(to, subject, html):
    """Deliver one HTML message; SMTP failures become ExternalServiceError."""
    try:
        send_mail(
            subject,
            html,
            settings.DEFAULT_FROM_EMAIL,
            [to],
            html_message=html,
            fail_silently=False,
        )
    except Exception as e:
        raise ExternalServiceError(f"email to {to} failed: {e}") from e
    logger.info("email sent: %s -> %s", subject, to)
