"""
Email Service for Podium

Sends one-time sign-in codes.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

logger = logging.getLogger(__name__)


class EmailService:
    """Handles all email sending functionality"""

    def __init__(self):
        self.smtp_server = current_app.config.get("MAIL_SERVER") or "localhost"
        self.smtp_port = current_app.config.get("MAIL_PORT", 587)
        self.smtp_username = current_app.config.get("MAIL_USERNAME")
        self.smtp_password = current_app.config.get("MAIL_PASSWORD")
        self.from_email = current_app.config.get("FROM_EMAIL") or "noreply@podium.local"
        self.from_name = current_app.config.get("FROM_NAME", "Podium")
        self.use_tls = current_app.config.get("MAIL_USE_TLS", True)

    @property
    def is_configured(self):
        return bool(self.smtp_username and self.smtp_password)

    def _create_message(self, to_email, subject, body_text, body_html=None):
        """Create email message"""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email

        msg.attach(MIMEText(body_text, "plain"))
        if body_html:
            msg.attach(MIMEText(body_html, "html"))

        return msg

    def _send_email(self, message):
        """Send email message"""
        if not self.is_configured:
            logger.warning("SMTP credentials not configured. Email not sent.")
            return False

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.sendmail(self.from_email, [message["To"]], message.as_string())

            logger.info(f"Email sent successfully to {message['To']}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {message['To']}: {str(e)}")
            return False

    def send_sign_in_code(self, email, code, minutes):
        """Send a one-time sign-in code"""
        subject = f"Your {self.from_name} sign-in code"

        body_text = f"""
        Your sign-in code is: {code}

        It expires in {minutes} minutes. If you didn't request it, you can
        ignore this email.

        The {self.from_name} Team
        """

        body_html = f"""
        <html>
        <body>
            <h2>Your sign-in code</h2>
            <p style="font-size: 24px; letter-spacing: 4px;"><strong>{code}</strong></p>
            <p>It expires in {minutes} minutes. If you didn't request it, you can ignore this email.</p>
            <p>The {self.from_name} Team</p>
        </body>
        </html>
        """

        message = self._create_message(email, subject, body_text, body_html)
        return self._send_email(message)

    def send_verification_code(self, email, code, minutes):
        """Send a code confirming an account change or a new email address"""
        subject = f"Your {self.from_name} verification code"

        body_text = f"""
        Your verification code is: {code}

        Enter it to confirm the change to your account. It expires in
        {minutes} minutes. If you didn't request it, please sign in and
        review your account.

        The {self.from_name} Team
        """

        body_html = f"""
        <html>
        <body>
            <h2>Confirm your account change</h2>
            <p style="font-size: 24px; letter-spacing: 4px;"><strong>{code}</strong></p>
            <p>It expires in {minutes} minutes. If you didn't request it, please sign in and review your account.</p>
            <p>The {self.from_name} Team</p>
        </body>
        </html>
        """

        message = self._create_message(email, subject, body_text, body_html)
        return self._send_email(message)
