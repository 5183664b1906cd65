"""
Email adapter for the Inutile Cards backend.

The default implementation uses SMTP, reading credentials from Settings, and
renders HTML bodies from the Jinja2 templates under api/templates/emails.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache
from pathlib import Path
import smtplib
import ssl

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from .config import get_settings

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "emails"

SUBJECTS = {
    "welcome": "Welcome to Inutile Cards!",
    "password_reset": "Reset your password",
    "order_shipped": "Your order is on its way",
}


@lru_cache
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )


def render_email(template_name: str, **context) -> str:
    return _environment().get_template(f"{template_name}.html").render(**context)


def send_email(subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
    """
    Send an email using the SMTP credentials from the environment.
    Returns False without sending when SMTP is not configured.
    """
    settings = get_settings()
    if not (settings.smtp_host and settings.smtp_user and settings.smtp_password and settings.email_from):
        logger.warning("SMTP not configured; skipping email '{}'", subject)
        return False
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to_email
    plain = text_body or html_body
    msg.attach(MIMEText(plain, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    port = settings.smtp_port or 587
    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.email_from, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(settings.smtp_host, port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.email_from, [to_email], msg.as_string())
        return True
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Failed to send '{}' to {}: {}", subject, to_email, exc)
        return False


def send_template(template_name: str, to_email: str, text_body: str, **context) -> bool:
    html_body = render_email(template_name, **context)
    return send_email(SUBJECTS[template_name], to_email, html_body, text_body)
