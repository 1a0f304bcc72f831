"""
Authentication email notifications.

Notifications are fire-and-forget: they are queued as background tasks after
the response is produced, and a delivery failure is logged but never reaches
the caller.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from ..config import Settings
from .models import UserRole

# Set up logging
logger = logging.getLogger(__name__)

APP_NAME = "HealthApp"

_EMAIL_TEMPLATE = """
<html>
    <head>
        <title>{app_name} - {title}</title>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background-color: {color}; color: white; padding: 10px; text-align: center; }}
            .content {{ padding: 20px; border: 1px solid #ddd; }}
            .button {{ display: inline-block; padding: 10px 20px; background-color: {color};
                    color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }}
            .footer {{ text-align: center; margin-top: 20px; font-size: 12px; color: #777; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{app_name}</h1>
            </div>
            <div class="content">
                {body}
                <p>Best regards,<br>{app_name} Team</p>
            </div>
            <div class="footer">
                &copy; {year} {app_name}. All rights reserved.
            </div>
        </div>
    </body>
</html>
"""


def render_email(title: str, body: str, color: str = "#4CAF50") -> str:
    """Wrap an HTML fragment in the shared email layout."""
    return _EMAIL_TEMPLATE.format(
        app_name=APP_NAME,
        title=title,
        body=body,
        color=color,
        year=datetime.now().year,
    )


def _link_block(url: str, label: str) -> str:
    return f"""
                <p style="text-align: center;">
                    <a href="{url}" class="button">{label}</a>
                </p>
                <p>If you can't click the button, copy and paste this link into your browser:</p>
                <p style="word-break: break-all;">{url}</p>
    """


class EmailNotifier:
    """
    Sends verification, password reset and welcome emails.

    Links point at the patient frontend for patients and at the doctor
    frontend for every other role.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._mail: Optional[FastMail] = None
        if settings.mail_enabled:
            self._mail = FastMail(self._connection_config())

    def _connection_config(self) -> ConnectionConfig:
        return ConnectionConfig(
            MAIL_USERNAME=self.settings.mail_username,
            MAIL_PASSWORD=self.settings.mail_password,
            MAIL_FROM=self.settings.mail_from,
            MAIL_PORT=self.settings.mail_port,
            MAIL_SERVER=self.settings.mail_server,
            MAIL_STARTTLS=self.settings.mail_starttls,
            MAIL_SSL_TLS=self.settings.mail_ssl_tls,
            USE_CREDENTIALS=self.settings.use_credentials,
            VALIDATE_CERTS=self.settings.validate_certs,
        )

    def frontend_url(self, role: UserRole) -> str:
        """Base URL of the frontend serving this role."""
        if role == UserRole.PATIENT:
            return self.settings.patient_frontend_url.rstrip("/")
        return self.settings.doctor_frontend_url.rstrip("/")

    def verification_link(self, token: str, role: UserRole) -> str:
        return f"{self.frontend_url(role)}/verify-email?token={token}"

    def reset_link(self, token: str, role: UserRole) -> str:
        return f"{self.frontend_url(role)}/reset-password?token={token}"

    async def _send(self, email: str, subject: str, html: str, fallback: str) -> None:
        """
        Deliver one message, or log ``fallback`` when mail is disabled.

        Errors are logged and swallowed so a notification can never fail the
        operation that triggered it.
        """
        if self._mail is None:
            logger.info(f"Mail disabled, not sending '{subject}' to {email}: {fallback}")
            return

        try:
            # MessageSchema rejects invalid recipients
            message = MessageSchema(
                subject=subject,
                recipients=[email],
                body=html,
                subtype=MessageType.html,
            )
            await self._mail.send_message(message)
            logger.info(f"Email '{subject}' sent to {email}")
        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {email}: {str(e)}")

    async def notify_verification(self, email: str, token: str, role: UserRole) -> None:
        """Send the email verification link."""
        link = self.verification_link(token, role)
        body = f"""
                <p>Hello,</p>
                <p>Thank you for registering with {APP_NAME}. Please verify your email address to activate your account:</p>
                {_link_block(link, "Verify Email")}
                <p>This link will expire in {self.settings.single_use_token_expire_hours} hours.</p>
                <p>If you did not create an account, please ignore this email.</p>
        """
        await self._send(
            email,
            f"{APP_NAME} - Verify Your Email",
            render_email("Email Verification", body),
            f"verification link {link}",
        )

    async def notify_password_reset(self, email: str, token: str, role: UserRole) -> None:
        """Send the password reset link."""
        link = self.reset_link(token, role)
        body = f"""
                <p>Hello,</p>
                <p>We received a request to reset your {APP_NAME} password. Click the button below to choose a new one:</p>
                {_link_block(link, "Reset Password")}
                <p>This link will expire in {self.settings.single_use_token_expire_hours} hours.</p>
                <p>If you did not request a password reset, please ignore this email.</p>
        """
        await self._send(
            email,
            f"{APP_NAME} - Password Reset Request",
            render_email("Password Reset", body, color="#3498db"),
            f"password reset link {link}",
        )

    async def notify_welcome(self, email: str, first_name: str) -> None:
        """Send the welcome email once an address is verified."""
        body = f"""
                <p>Hello {first_name},</p>
                <p>Your email has been verified and your {APP_NAME} account is ready. You can now log in.</p>
        """
        await self._send(
            email,
            f"Welcome to {APP_NAME}",
            render_email("Welcome", body, color="#2ecc71"),
            f"welcome message for {first_name}",
        )
