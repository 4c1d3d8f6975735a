from __future__ import annotations

import logging
import os
import smtplib
from email.errors import MessageError
from email.mime.text import MIMEText
from typing import Optional

import requests

from errors import DispatchError

logger = logging.getLogger(__name__)

BREVO_URL = "https://api.brevo.com/v3/smtp/email"
SEND_TIMEOUT = 15


class Mailer:
    """
    Sends a single plaintext message.

    Backends:
      - "smtp": SMTP over SSL (SMTP_HOST / SMTP_PORT, EMAIL_USER / EMAIL_PASS)
      - "brevo": Brevo Transactional Email API (BREVO_API_KEY, BREVO_FROM)
    """

    def __init__(self, backend: Optional[str] = None):
        self.backend = (backend or os.getenv("MAIL_BACKEND", "smtp")).strip().lower()
        if self.backend not in {"smtp", "brevo"}:
            raise ValueError(f"Unknown MAIL_BACKEND: {self.backend}")

    def send(self, to_address: str, subject: str, body: str) -> None:
        if "\r" in to_address or "\n" in to_address:
            raise DispatchError("Recipient address contains a line break")
        if self.backend == "brevo":
            self._send_brevo(to_address, subject, body)
        else:
            self._send_smtp(to_address, subject, body)
        logger.info("Mail sent to %s via %s", to_address, self.backend)

    def _send_smtp(self, to_address: str, subject: str, body: str) -> None:
        user = os.getenv("EMAIL_USER")
        password = os.getenv("EMAIL_PASS")
        if not user or not password:
            raise DispatchError("EMAIL_USER / EMAIL_PASS are not set")

        host = os.getenv("SMTP_HOST", "smtp.gmail.com")
        port = int(os.getenv("SMTP_PORT", "465"))

        message = MIMEText(body, "plain", "utf-8")
        message["From"] = user
        message["To"] = to_address
        message["Subject"] = subject

        try:
            with smtplib.SMTP_SSL(host, port, timeout=SEND_TIMEOUT) as server:
                server.login(user, password)
                server.send_message(message)
        except (smtplib.SMTPException, MessageError, OSError) as e:
            raise DispatchError(f"SMTP send failed: {e}") from e

    def _send_brevo(self, to_address: str, subject: str, body: str) -> None:
        api_key = os.getenv("BREVO_API_KEY")
        if not api_key:
            raise DispatchError("BREVO_API_KEY is not set")

        from_email = (
            os.getenv("BREVO_FROM")
            or os.getenv("EMAIL_FROM")
            or os.getenv("EMAIL_USER")
        )
        if not from_email:
            raise DispatchError("BREVO_FROM (or EMAIL_FROM/EMAIL_USER) is not set")

        payload = {
            "sender": {"email": from_email, "name": "Student Portal"},
            "to": [{"email": to_address}],
            "subject": subject,
            "textContent": body,
        }
        try:
            resp = requests.post(
                BREVO_URL,
                headers={
                    "accept": "application/json",
                    "api-key": api_key,
                    "content-type": "application/json",
                },
                json=payload,
                timeout=SEND_TIMEOUT,
            )
        except requests.RequestException as e:
            raise DispatchError(f"Brevo request failed: {e}") from e
        if resp.status_code >= 300:
            raise DispatchError(f"Brevo send failed ({resp.status_code}): {resp.text}")


def get_mailer() -> Mailer:
    return Mailer()
