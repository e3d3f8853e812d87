import html
import logging
from functools import lru_cache
from typing import Optional

import requests

from ..config import settings
from ..envelope import UpstreamError

logger = logging.getLogger(__name__)


class Mailer:
    """Sends transactional email through the Mailgun HTTP API."""

    def __init__(self, api_key: str, domain: str, region: str = "us", timeout: float = 15.0,
                 sender_name: str = "Zealous Health", session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.domain = domain
        self.base_url = "https://api.eu.mailgun.net" if region == "eu" else "https://api.mailgun.net"
        self.timeout = timeout
        self.sender = f"{sender_name} <noreply@{domain}>"
        self.http = session or requests.Session()

    def send(self, to: str, subject: str, html: str) -> dict:
        missing = [name for name, value in (("MAILGUN_API_KEY", self.api_key), ("MAILGUN_DOMAIN", self.domain)) if not value]
        if missing:
            raise UpstreamError("mailgun", f"missing configuration: {', '.join(missing)}")

        try:
            resp = self.http.post(
                f"{self.base_url}/v3/{self.domain}/messages",
                auth=("api", self.api_key),
                data={"from": self.sender, "to": [to], "subject": subject, "html": html},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            status = getattr(exc.response, "status_code", None)
            if status == 401:
                logger.error("Mailgun rejected the API key; check MAILGUN_API_KEY and MAILGUN_REGION")
            elif status == 403:
                logger.error("Mailgun refused recipient %s (sandbox domain?)", to)
            raise UpstreamError("mailgun", f"send to {to} failed: {exc}") from exc

        logger.info("Email %r sent to %s", subject, to)
        return resp.json()


def password_reset_html(name: Optional[str], reset_link: str, expires_minutes: int) -> str:
    name = html.escape(name) if name else "there"
    return f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #092C16;">Reset Your Password</h2>
        <p>Hi {name},</p>
        <p>You requested to reset your password. Click the button below to create a new password:</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{reset_link}" style="display: inline-block; padding: 12px 24px; background-color: #092C16; color: white; text-decoration: none; border-radius: 10px;">Reset Password</a>
        </div>
        <p>Or copy and paste this link into your browser:</p>
        <p style="color: #71BF45; word-break: break-all;">{reset_link}</p>
        <p style="margin-top: 30px;">This link will expire in {expires_minutes} minutes for security reasons.</p>
        <p style="color: #666; font-size: 14px;">If you didn't request this password reset, please ignore this email.</p>
      </div>
    """


@lru_cache
def get_mailer() -> Mailer:
    return Mailer(
        settings.MAILGUN_API_KEY,
        settings.MAILGUN_DOMAIN,
        region=settings.MAILGUN_REGION,
        timeout=settings.HTTP_TIMEOUT,
        sender_name=settings.APP_NAME,
    )
