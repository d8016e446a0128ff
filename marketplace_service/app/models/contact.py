from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import MarketplaceBaseModel, utcnow


class ContactStatus:
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

    ALL = (NEW, IN_PROGRESS, RESOLVED, CLOSED)


class ContactType:
    GENERAL = "general"
    SUPPORT = "support"
    BUSINESS = "business"
    TECHNICAL = "technical"
    BILLING = "billing"
    FEEDBACK = "feedback"

    ALL = (GENERAL, SUPPORT, BUSINESS, TECHNICAL, BILLING, FEEDBACK)
    URGENT = (TECHNICAL, BILLING)


class ContactMessage(MarketplaceBaseModel):
    """Contact-us form submission handled by the admin team."""

    __tablename__ = "contact_messages"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    inquiry_type: Mapped[str] = mapped_column(
        String(20), default=ContactType.GENERAL, nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=ContactStatus.NEW, nullable=False, index=True
    )
    priority: Mapped[str] = mapped_column(String(10), default="medium", nullable=False)

    assigned_to: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    resolved_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)


class NewsletterSource:
    FOOTER = "website_footer"
    POPUP = "popup"
    CHECKOUT = "checkout"
    MANUAL = "manual"

    ALL = (FOOTER, POPUP, CHECKOUT, MANUAL)


class NewsletterSubscription(MarketplaceBaseModel):
    __tablename__ = "newsletter_subscriptions"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    source: Mapped[str] = mapped_column(
        String(20), default=NewsletterSource.FOOTER, nullable=False
    )
    subscribed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    unsubscribed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
