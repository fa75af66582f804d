import os
import asyncio
import logging
from datetime import datetime
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, To

from app.core.config import settings

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    """Outbound channel: returns True when the message was accepted for delivery."""

    async def send(self, recipient: str, subject: str, html_body: str) -> bool:
        ...


class EmailService:
    _template_env = None

    @classmethod
    def _get_template_env(cls):
        """
        Initialize Jinja2 template environment with inheritance support
        """
        if cls._template_env is None:
            template_dir = os.path.join(
                os.path.dirname(os.path.abspath(__file__)),
                '..',
                'templates'
            )

            cls._template_env = Environment(
                loader=FileSystemLoader(template_dir),
                autoescape=select_autoescape(['html']),
                enable_async=False
            )
        return cls._template_env

    @classmethod
    def render_template(cls, template_name: str, context: dict) -> str:
        """
        Render an email template

        :param template_name: Name of the template file
        :param context: Dictionary of template variables
        :return: Rendered HTML template
        """
        try:
            default_context = {
                'company_name': settings.EMAILS_FROM_NAME,
                'current_year': datetime.now().year,
                **context
            }

            template_env = cls._get_template_env()
            template = template_env.get_template(template_name)
            return template.render(**default_context)
        except Exception as e:
            logger.error(f"Error rendering email template {template_name}: {e}")
            raise


class SendGridEmailSender:
    """NotificationSender backed by the SendGrid API."""

    def __init__(self, api_key: str = None, from_email: str = None, from_name: str = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.from_email = from_email or settings.EMAILS_FROM_EMAIL
        self.from_name = from_name or settings.EMAILS_FROM_NAME

    def _send_blocking(self, recipient: str, subject: str, html_body: str) -> bool:
        message = Mail(
            from_email=f"{self.from_name} <{self.from_email}>" if self.from_name else self.from_email,
            to_emails=To(recipient),
            subject=subject,
            html_content=html_body
        )

        response = SendGridAPIClient(self.api_key).send(message)

        if response.status_code not in [200, 201, 202]:
            logger.error(f"SendGrid error: {response.status_code} - {response.body}")
            return False

        logger.info(f"Email sent successfully to {recipient} via SendGrid")
        return True

    async def send(self, recipient: str, subject: str, html_body: str) -> bool:
        if not settings.EMAILS_ENABLED:
            logger.info(f"Email delivery disabled, dropping '{subject}' for {recipient}")
            return False
        if not self.api_key:
            logger.warning(f"SENDGRID_API_KEY is not configured, cannot send '{subject}' to {recipient}")
            return False

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._send_blocking, recipient, subject, html_body)


email_sender = SendGridEmailSender()
