"""
Transactional Email Service

Sends notification and password reset mail through one of the supported
providers, selected with EMAIL_PROVIDER:

- Resend (default)
- SendGrid
- Mailgun (plain HTTP API via requests)

Templates are Jinja2 pairs ``<name>.html`` / ``<name>.txt`` under
``senpai/templates/email`` unless EMAIL_TEMPLATE_DIR points elsewhere.
"""

import os
import re
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


class EmailProvider(Enum):
    """Supported email service providers."""
    RESEND = "resend"
    SENDGRID = "sendgrid"
    MAILGUN = "mailgun"


def _provider_from_env() -> EmailProvider:
    raw = os.getenv('EMAIL_PROVIDER', 'resend').strip().lower()
    try:
        return EmailProvider(raw)
    except ValueError:
        logger.warning("Unknown EMAIL_PROVIDER %r, falling back to resend", raw)
        return EmailProvider.RESEND


class TransactionalEmailConfig:
    """Provider choice, sender identity and credentials read from the environment."""

    def __init__(self):
        self.provider = _provider_from_env()

        self.from_email = os.getenv('FROM_EMAIL', 'noreply@senpai-career.jp')
        self.from_name = os.getenv('FROM_NAME', 'Senpai Career')
        self.reply_to_email = os.getenv('REPLY_TO_EMAIL', '')

        self.resend_api_key = os.getenv('RESEND_API_KEY', '')
        self.sendgrid_api_key = os.getenv('SENDGRID_API_KEY', '')
        self.mailgun_api_key = os.getenv('MAILGUN_API_KEY', '')
        self.mailgun_domain = os.getenv('MAILGUN_DOMAIN', '')

        self.template_dir = os.getenv('EMAIL_TEMPLATE_DIR') or str(DEFAULT_TEMPLATE_DIR)

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_email}>"

    def validate(self) -> List[str]:
        """Return the list of missing settings for the selected provider."""
        errors = []
        if not self.from_email:
            errors.append("FROM_EMAIL is required")
        if self.provider == EmailProvider.RESEND and not self.resend_api_key:
            errors.append("RESEND_API_KEY is required for Resend provider")
        elif self.provider == EmailProvider.SENDGRID and not self.sendgrid_api_key:
            errors.append("SENDGRID_API_KEY is required for SendGrid provider")
        elif self.provider == EmailProvider.MAILGUN:
            if not self.mailgun_api_key:
                errors.append("MAILGUN_API_KEY is required for Mailgun provider")
            if not self.mailgun_domain:
                errors.append("MAILGUN_DOMAIN is required for Mailgun provider")
        return errors

    def is_configured(self) -> bool:
        return not self.validate()


class ResendEmailService:
    """Resend delivery."""

    name = "resend"

    def __init__(self, config: TransactionalEmailConfig):
        import resend

        resend.api_key = config.resend_api_key
        self.config = config
        self.client = resend

    async def send_email(self, to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "from": self.config.sender,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            params["text"] = text_content
        if self.config.reply_to_email:
            params["reply_to"] = self.config.reply_to_email
        try:
            result = self.client.Emails.send(params)
        except Exception as e:
            return {'success': False, 'provider': self.name, 'error': str(e)}
        return {'success': True, 'provider': self.name, 'message_id': result.get('id', ''), 'provider_response': result}


class SendGridEmailService:
    """SendGrid delivery."""

    name = "sendgrid"

    def __init__(self, config: TransactionalEmailConfig):
        from sendgrid import SendGridAPIClient

        self.config = config
        self.client = SendGridAPIClient(api_key=config.sendgrid_api_key)

    async def send_email(self, to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> Dict[str, Any]:
        from sendgrid.helpers.mail import Mail, From, To, Subject, HtmlContent, PlainTextContent, ReplyTo

        mail = Mail(
            from_email=From(self.config.from_email, self.config.from_name),
            to_emails=To(to_email),
            subject=Subject(subject),
            html_content=HtmlContent(html_content),
        )
        if text_content:
            mail.plain_text_content = PlainTextContent(text_content)
        if self.config.reply_to_email:
            mail.reply_to = ReplyTo(self.config.reply_to_email)
        try:
            response = self.client.send(mail)
        except Exception as e:
            return {'success': False, 'provider': self.name, 'error': str(e)}
        return {
            'success': 200 <= response.status_code < 300,
            'provider': self.name,
            'message_id': response.headers.get('X-Message-Id', ''),
            'status_code': response.status_code,
        }


class MailgunEmailService:
    """Mailgun delivery over its HTTP API."""

    name = "mailgun"

    def __init__(self, config: TransactionalEmailConfig):
        import requests

        self.config = config
        self.session = requests.Session()
        self.session.auth = ("api", config.mailgun_api_key)
        self.endpoint = f"https://api.mailgun.net/v3/{config.mailgun_domain}/messages"

    async def send_email(self, to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> Dict[str, Any]:
        data = {
            "from": self.config.sender,
            "to": to_email,
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            data["text"] = text_content
        if self.config.reply_to_email:
            data["h:Reply-To"] = self.config.reply_to_email
        try:
            response = self.session.post(self.endpoint, data=data, timeout=15)
        except Exception as e:
            return {'success': False, 'provider': self.name, 'error': str(e)}
        if response.status_code != 200:
            return {'success': False, 'provider': self.name, 'error': f"HTTP {response.status_code}: {response.text}"}
        body = response.json()
        return {'success': True, 'provider': self.name, 'message_id': body.get('id', ''), 'provider_response': body}


_PROVIDERS = {
    EmailProvider.RESEND: ResendEmailService,
    EmailProvider.SENDGRID: SendGridEmailService,
    EmailProvider.MAILGUN: MailgunEmailService,
}


class TransactionalEmailService:
    """Facade over the configured provider plus template rendering."""

    def __init__(self, config: Optional[TransactionalEmailConfig] = None):
        self.config = config or TransactionalEmailConfig()
        self.provider_service = None
        self._setup_provider()
        self.template_env = self._build_template_env(self.config.template_dir)

    def _setup_provider(self):
        missing = self.config.validate()
        if missing:
            logger.warning("Email service not configured: %s", "; ".join(missing))
            return
        provider_cls = _PROVIDERS[self.config.provider]
        try:
            self.provider_service = provider_cls(self.config)
            logger.info("Initialized %s email service", self.config.provider.value)
        except Exception as e:
            logger.error("Failed to initialize email provider %s: %s", self.config.provider.value, e)

    @staticmethod
    def _build_template_env(template_dir: str) -> Environment:
        path = Path(template_dir)
        if not path.exists():
            logger.warning("Email template directory not found: %s", path)
        return Environment(
            loader=FileSystemLoader(str(path)),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
        )

    def is_configured(self) -> bool:
        return self.provider_service is not None

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send one email; never raises, returns a dict with 'success' and 'error'/'message_id'."""
        if not self.provider_service:
            return {
                'success': False,
                'error': 'Email service not configured or initialization failed',
            }
        logger.info("Sending email to %s via %s", to_email, self.config.provider.value)
        try:
            result = await self.provider_service.send_email(
                to_email=to_email,
                subject=subject,
                html_content=html_content,
                text_content=text_content,
            )
        except Exception as e:
            logger.error("Email service error: %s", e, exc_info=True)
            return {'success': False, 'error': f"Email service error: {e}"}
        if result['success']:
            logger.info("Email sent to %s via %s", to_email, result['provider'])
        else:
            logger.error("Email sending failed: %s", result.get('error'))
        return result

    def render_template(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """Render ``<name>.html`` and ``<name>.txt``; the text part is derived from HTML when absent."""
        html_content = self.template_env.get_template(f"{template_name}.html").render(**context)
        try:
            text_content = self.template_env.get_template(f"{template_name}.txt").render(**context)
        except TemplateNotFound:
            text_content = self._html_to_text(html_content)
        return html_content, text_content

    @staticmethod
    def _html_to_text(html_content: str) -> str:
        text = re.sub(r'<[^>]+>', '', html_content)
        text = text.replace('&amp;', '&').replace('&lt;', '<').replace('&gt;', '>')
        text = text.replace('&quot;', '"').replace('&#39;', "'")
        return re.sub(r'\s+', ' ', text).strip()


_email_service = None


def get_transactional_email_service() -> TransactionalEmailService:
    """Get singleton transactional email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = TransactionalEmailService()
    return _email_service


def reset_transactional_email_service_for_tests() -> None:
    global _email_service
    _email_service = None
