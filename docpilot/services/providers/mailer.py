from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from docpilot.config import Settings
from docpilot.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, settings: Settings):
        self.settings = settings

    def send(
        self,
        recipients: List[str],
        subject: str,
        text_body: str = "",
        html_body: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> int:
        """Send one message per recipient; returns how many were sent."""
        if not recipients:
            raise ConfigurationError("EMAIL_RECIPIENTS is empty")
        cfg = self.settings
        from_addr = f"{sender_name} <{cfg.email_from}>" if sender_name else cfg.email_from

        server = smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.http_timeout)
        try:
            if cfg.smtp_use_tls:
                server.starttls()
            if cfg.smtp_username and cfg.smtp_password:
                server.login(cfg.smtp_username, cfg.smtp_password)
            sent = 0
            for to in recipients:
                msg = MIMEMultipart("alternative")
                msg["From"] = from_addr
                msg["To"] = to
                msg["Subject"] = subject
                msg.attach(MIMEText(text_body or "", "plain", "utf-8"))
                if html_body:
                    msg.attach(MIMEText(html_body, "html", "utf-8"))
                server.send_message(msg)
                sent += 1
        finally:
            server.quit()
        logger.info("mailer: sent %r to %s", subject, ", ".join(recipients))
        return sent
