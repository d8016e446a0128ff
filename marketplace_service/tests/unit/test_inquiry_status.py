from datetime import datetime, timedelta

import pytest

from marketplace_service.app.models.inquiry import CustomerInquiry, InquiryStatus
from marketplace_service.app.services.inquiry_service import (
    INQUIRY_TRANSITIONS,
    apply_status,
    generate_inquiry_id,
    generate_message_id,
    minutes_between,
)

CREATED = datetime(2026, 4, 1, 9, 0)


def make_inquiry(status: str = InquiryStatus.OPEN) -> CustomerInquiry:
    return CustomerInquiry(
        inquiry_id="INQ-1",
        customer_name="Bilal",
        customer_email="bilal@example.com",
        vendor_id=1,
        subject="Delivery time",
        status=status,
        created_at=CREATED,
        last_activity_at=CREATED,
    )


def test_minutes_between():
    assert minutes_between(CREATED, CREATED + timedelta(hours=2, seconds=59)) == 120
    assert minutes_between(CREATED, CREATED - timedelta(minutes=5)) == 0


def test_message_ids_are_unique():
    first, second = generate_message_id(), generate_message_id()
    assert first.startswith("MSG-")
    assert first != second


def test_inquiry_ids_with_the_same_sequence_differ():
    first, second = generate_inquiry_id(5), generate_inquiry_id(5)
    assert first != second
    prefix, millis, sequence, tail = first.split("-")
    assert prefix == "INQ"
    assert millis.isdigit()
    assert sequence == "0005"
    assert len(tail) == 6


def test_resolving_records_resolution():
    inquiry = make_inquiry(InquiryStatus.IN_PROGRESS)
    resolved_at = CREATED + timedelta(minutes=90)

    apply_status(inquiry, InquiryStatus.RESOLVED, "vendor@example.com", resolved_at, "Refunded")

    assert inquiry.status == InquiryStatus.RESOLVED
    assert inquiry.resolved_at == resolved_at
    assert inquiry.resolved_by == "vendor@example.com"
    assert inquiry.resolution_time == 90
    assert inquiry.resolution_summary == "Refunded"
    assert inquiry.last_activity_at == resolved_at


def test_closing_after_resolution_keeps_first_resolution():
    inquiry = make_inquiry(InquiryStatus.IN_PROGRESS)
    apply_status(inquiry, InquiryStatus.RESOLVED, "vendor", CREATED + timedelta(minutes=30))

    apply_status(inquiry, InquiryStatus.CLOSED, "admin", CREATED + timedelta(days=1))

    assert inquiry.resolved_by == "vendor"
    assert inquiry.resolution_time == 30


def test_reopening_clears_resolution():
    inquiry = make_inquiry(InquiryStatus.IN_PROGRESS)
    apply_status(inquiry, InquiryStatus.RESOLVED, "vendor", CREATED + timedelta(minutes=30))

    apply_status(inquiry, InquiryStatus.IN_PROGRESS, "vendor", CREATED + timedelta(hours=1))

    assert inquiry.resolved_at is None
    assert inquiry.resolved_by is None
    assert inquiry.resolution_time is None


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        (InquiryStatus.OPEN, InquiryStatus.IN_PROGRESS, True),
        (InquiryStatus.WAITING_CUSTOMER, InquiryStatus.IN_PROGRESS, True),
        (InquiryStatus.RESOLVED, InquiryStatus.IN_PROGRESS, True),
        (InquiryStatus.RESOLVED, InquiryStatus.OPEN, False),
        (InquiryStatus.CLOSED, InquiryStatus.IN_PROGRESS, False),
    ],
)
def test_transition_table(current, new, allowed):
    assert (new in INQUIRY_TRANSITIONS[current]) is allowed
