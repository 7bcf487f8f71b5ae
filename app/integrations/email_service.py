"""
Email collaborator.

Sends through a Resend-compatible HTTP API. Email is a notification, never a
consistency requirement: send() logs failures and returns False instead of raising.
"""

from html import escape
from typing import Optional
from urllib.parse import urlencode
import logging

import requests

from app.config import settings

logger = logging.getLogger(__name__)


class EmailSender:
    def __init__(
        self,
        api_url: str = None,
        api_key: Optional[str] = None,
        sender: str = None,
        dev_recipient: Optional[str] = None,
        timeout: float = None,
    ):
        self.api_url = api_url or settings.email_api_url
        self.api_key = api_key if api_key is not None else settings.email_api_key
        self.sender = sender or settings.email_from
        self.dev_recipient = dev_recipient if dev_recipient is not None else settings.email_dev_recipient
        self.timeout = timeout or settings.email_timeout_seconds

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.api_key:
            logger.warning(f"Email not sent to {to}: email_api_key is not configured")
            return False

        # In development all mail goes to one inbox; the content still names the real recipient
        recipient = self.dev_recipient or to
        try:
            response = requests.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": [recipient], "subject": subject, "html": html},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False
        logger.info(f"Email '{subject}' sent to {recipient}")
        return True

    def send_admin_invitation(
        self,
        to: str,
        wedding: dict,
        admin_name: str,
    ) -> bool:
        login_url = f"{settings.app_url}/auth/signin"
        signup_url = f"{settings.app_url}/auth/signup?" + urlencode({
            "wedding": wedding["id"],
            "name": wedding.get("name") or "",
            "date": wedding.get("date") or "",
            "location": wedding.get("location") or "",
            "email": to,
        })
        html = (
            f"<h1>You've been invited to manage {escape(wedding.get('name') or '')}</h1>"
            f"<p>Hello {escape(admin_name)},</p>"
            f"<p><strong>Date:</strong> {escape(str(wedding.get('date') or ''))}<br>"
            f"<strong>Location:</strong> {escape(wedding.get('location') or '')}</p>"
            f"<p>New to WeddingShare? <a href=\"{escape(signup_url)}\">Create your account</a>.</p>"
            f"<p>Already have an account? <a href=\"{escape(login_url)}\">Sign in</a>.</p>"
        )
        return self.send(to, f"You've been invited to manage {wedding.get('name')}", html)

    def send_guest_invitation(self, to: str, guest_name: Optional[str], wedding: dict, guest_row_id: str) -> bool:
        join_url = f"{settings.app_url}/join?" + urlencode({"wedding": wedding["id"], "guest": guest_row_id})
        html = (
            f"<h1>You're Invited!</h1><h2>{escape(wedding.get('name') or '')}</h2>"
            f"<p><strong>Date:</strong> {escape(str(wedding.get('date') or ''))}<br>"
            f"<strong>Location:</strong> {escape(wedding.get('location') or '')}</p>"
            f"<p>Hi {escape(guest_name or to)},</p>"
            f"<p>You've been invited to join the wedding celebration. "
            f"<a href=\"{escape(join_url)}\">View the gallery and RSVP</a>.</p>"
        )
        return self.send(to, f"You're invited to {wedding.get('name')}!", html)

    def send_welcome(self, to: str, name: str) -> bool:
        html = (
            "<h1>Welcome to WeddingShare!</h1>"
            f"<p>Hello {escape(name)},</p>"
            "<p>Your WeddingShare account has been created successfully.</p>"
        )
        return self.send(to, "Welcome to WeddingShare!", html)


def get_email_sender() -> EmailSender:
    return EmailSender()
