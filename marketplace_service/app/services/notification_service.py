"""
Transactional emails: vendor order forwarding, order status changes,
inquiry replies and answers to contact messages. Delivery problems are
logged and never interrupt the business operation that triggered them.
"""

from typing import Any, Dict, Optional

from ..core.settings import get_settings
from ..models.contact import ContactMessage
from ..models.inquiry import CustomerInquiry
from ..models.order import Order
from ..models.user import Vendor
from ..models.vendor_order import VendorOrder
from ..providers.email_provider import EmailProvider
from ..utils.logging import setup_marketplace_logging as setup_logging

logger = setup_logging("notification_service", log_level=get_settings().LOG_LEVEL)


class NotificationService:
    def __init__(self, email_provider: Optional[EmailProvider] = None):
        self.settings = get_settings()
        self.email_provider = email_provider or EmailProvider()

    async def _deliver(
        self, to_email: str, subject: str, template: str, data: Dict[str, Any]
    ) -> bool:
        try:
            result = await self.email_provider.send_template(
                to_email, subject, template, template_data=data
            )
        except Exception as e:
            logger.error(
                "Notification rendering failed",
                extra={"recipient": to_email, "template": template, "error": str(e)},
                exc_info=True,
            )
            return False
        return bool(result.get("success"))

    async def notify_vendor_order_forwarded(
        self, vendor: Vendor, vendor_order: VendorOrder
    ) -> bool:
        return await self._deliver(
            vendor.email,
            f"New order {vendor_order.order_number} from {self.settings.SITE_NAME}",
            "vendor_order_forwarded.html",
            {
                "vendor_name": vendor.business_name,
                "vendor_order": vendor_order,
                "portal_url": f"{self.settings.FRONTEND_URL}/vendor/orders/{vendor_order.id}",
            },
        )

    async def notify_order_status_changed(
        self,
        order: Order,
        old_status: str,
        tracking_number: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> bool:
        if old_status == order.status:
            return False
        return await self._deliver(
            order.customer_email,
            f"Order {order.order_number}: {order.status.replace('_', ' ')}",
            "order_status_changed.html",
            {
                "order_number": order.order_number,
                "customer_name": order.customer_name,
                "old_status": old_status,
                "status": order.status,
                "tracking_number": tracking_number,
                "reason": reason,
                "order_url": f"{self.settings.FRONTEND_URL}/orders/{order.order_number}",
                "site_name": self.settings.SITE_NAME,
            },
        )

    async def notify_inquiry_reply(
        self, inquiry: CustomerInquiry, vendor_name: str, content: str
    ) -> bool:
        return await self._deliver(
            inquiry.customer_email,
            f"Re: {inquiry.subject}",
            "inquiry_reply.html",
            {
                "inquiry_id": inquiry.inquiry_id,
                "customer_name": inquiry.customer_name,
                "vendor_name": vendor_name,
                "subject": inquiry.subject,
                "content": content,
                "site_name": self.settings.SITE_NAME,
            },
        )

    async def notify_contact_reply(self, message: ContactMessage) -> bool:
        return await self._deliver(
            message.email,
            f"Re: {message.subject} - Response from {self.settings.SITE_NAME}",
            "contact_reply.html",
            {
                "name": message.name,
                "subject": message.subject,
                "message": message.message,
                "response": message.admin_response,
                "site_name": self.settings.SITE_NAME,
            },
        )


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
