import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sendgrid import SendGridAPIClient  # type: ignore
from sendgrid.helpers.mail import Content, Email, Mail, To  # type: ignore

from ..core.settings import get_settings

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class EmailProvider:
    """SendGrid delivery with Jinja2-rendered bodies."""

    def __init__(self):
        settings = get_settings()
        self.from_email: str = settings.FROM_EMAIL
        self.from_name: str = settings.FROM_NAME
        self.sendgrid_api_key: str = settings.SENDGRID_API_KEY or ""

        self.template_env: Environment = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.logger: logging.Logger = logging.getLogger("marketplace_email_provider")

    @property
    def enabled(self) -> bool:
        return bool(self.sendgrid_api_key and self.from_email)

    def render(self, template_name: str, **context: Any) -> str:
        return self.template_env.get_template(template_name).render(**context)

    async def send_template(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        template_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Render an HTML template and send it."""
        content = self.render(template_name, **(template_data or {}))
        return await self.send_email(to_email, subject, content, is_html=True)

    async def send_email(
        self, to_email: str, subject: str, content: str, is_html: bool = False
    ) -> Dict[str, Any]:
        """
        Send an email using SendGrid.

        Never raises; the result dict carries `success` and any error.
        """
        if not self.enabled:
            self.logger.info(
                "Email delivery disabled, skipping",
                extra={"recipient": to_email, "subject": subject},
            )
            return {"success": False, "skipped": True, "recipient": to_email}

        try:
            # The SendGrid client is synchronous
            return await asyncio.to_thread(
                self._send_sendgrid_email, to_email, subject, content, is_html
            )
        except Exception as e:
            self.logger.error(
                "Failed to send email",
                extra={
                    "recipient": to_email,
                    "provider": "sendgrid",
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "event_type": "email_send_failed",
                },
            )
            return {
                "success": False,
                "error": str(e),
                "provider": "sendgrid",
                "recipient": to_email,
            }

    def _send_sendgrid_email(
        self, to_email: str, subject: str, content: str, is_html: bool = False
    ) -> Dict[str, Any]:
        sg = SendGridAPIClient(api_key=self.sendgrid_api_key)  # type: ignore
        mail_obj = Mail(Email(self.from_email, self.from_name), To(to_email), subject)  # type: ignore

        if is_html:
            plain_text = re.sub(r"<[^>]+>", "", content)
            plain_text = re.sub(r"\s+", " ", plain_text).strip()
            mail_obj.add_content(Content("text/plain", plain_text))  # type: ignore
            mail_obj.add_content(Content("text/html", content))  # type: ignore
        else:
            mail_obj.add_content(Content("text/plain", content))  # type: ignore

        response = sg.send(mail_obj)  # type: ignore

        return {
            "success": True,
            "message_id": response.headers.get("X-Message-Id"),  # type: ignore
            "provider": "sendgrid",
            "recipient": to_email,
            "status_code": response.status_code,  # type: ignore
        }
