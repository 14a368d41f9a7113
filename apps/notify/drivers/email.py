"""Email notification driver (SMTP)."""

import logging
import smtplib
import socket
import uuid
from email.mime.text import MIMEText
from typing import Any

from apps.notify.drivers.base import BaseNotifyDriver, NotificationMessage

logger = logging.getLogger(__name__)


class EmailNotifyDriver(BaseNotifyDriver):
    """Driver for sending email over SMTP.

    The SMTP timeout bounds how long a send can block, so callers get an
    answer (sent or failed) within the configured budget.
    """

    name = "email"

    def validate_config(self, config: dict[str, Any]) -> bool:
        required_keys = {"smtp_host", "from_address"}
        return all(config.get(key) for key in required_keys)

    def _build_email(self, message: NotificationMessage, config: dict[str, Any]) -> MIMEText:
        email = MIMEText(message.body, "plain", "utf-8")
        email["Subject"] = message.subject
        email["From"] = config["from_address"]
        email["To"] = ", ".join(message.recipients)
        email["X-Priority"] = self.PRIORITY_MAP.get(message.severity, "3")
        return email

    def send(self, message: NotificationMessage, config: dict[str, Any]) -> dict[str, Any]:
        if not self.validate_config(config):
            return {
                "success": False,
                "error": "Invalid email configuration (smtp_host and from_address required)",
            }
        if not message.recipients:
            return {"success": False, "error": "No recipients"}

        smtp_host = config["smtp_host"]
        smtp_port = config.get("smtp_port", 587)
        use_tls = config.get("use_tls", True)
        use_ssl = config.get("use_ssl", False)
        username = config.get("username")
        password = config.get("password")
        timeout = config.get("timeout", 30)

        try:
            email = self._build_email(message, config)
            message_id = str(uuid.uuid4())
            email["Message-ID"] = f"<{message_id}@{smtp_host}>"

            server: smtplib.SMTP | smtplib.SMTP_SSL
            if use_ssl:
                server = smtplib.SMTP_SSL(smtp_host, smtp_port, timeout=timeout)
            else:
                server = smtplib.SMTP(smtp_host, smtp_port, timeout=timeout)

            try:
                if use_tls and not use_ssl:
                    server.starttls()

                if username and password:
                    server.login(username, password)

                server.sendmail(config["from_address"], message.recipients, email.as_string())

                logger.info(f"Email sent successfully: {message_id}")

                return {
                    "success": True,
                    "message_id": message_id,
                    "metadata": {
                        "to": message.recipients,
                        "from": config["from_address"],
                        "subject": message.subject,
                    },
                }

            finally:
                try:
                    server.quit()
                except (smtplib.SMTPException, OSError):
                    pass

        except smtplib.SMTPAuthenticationError as e:
            return self._handle_exception(e, "Email", "authenticate SMTP")
        except smtplib.SMTPException as e:
            return self._handle_exception(e, "Email", "send SMTP")
        except socket.timeout as e:
            return self._handle_exception(e, "Email", "reach SMTP (timeout)")
        except OSError as e:
            return self._handle_exception(e, "Email", "connect to SMTP")
