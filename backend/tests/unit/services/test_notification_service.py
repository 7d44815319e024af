"""
Unit tests for NotificationService.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from bizledger.services.notification_service import NotificationService


@pytest.fixture
def slack():
    service = MagicMock()
    service.send_message_safe = AsyncMock(return_value=True)
    return service


@pytest.fixture
def notifier(slack):
    return NotificationService(slack_service=slack, base_url="https://books.example")


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_quotation_status_links_to_quotation(self, notifier, slack):
        assert await notifier.notify_quotation_status(
            quotation_id=7,
            quotation_number="QT-0007",
            status="accepted",
            org_name="Acme",
            total=Decimal("100.00"),
        )
        text, blocks = slack.send_message_safe.call_args.args
        assert text == "Quotation QT-0007 accepted (Acme)"
        assert blocks[-1]["elements"][0]["url"] == "https://books.example/quotations/7"

    @pytest.mark.asyncio
    async def test_conversion_links_to_invoice(self, notifier, slack):
        await notifier.notify_quotation_converted(
            quotation_number="QT-0007",
            invoice_id=3,
            invoice_number="INV-0003",
            org_name="Acme",
            total=Decimal("100.00"),
        )
        _, blocks = slack.send_message_safe.call_args.args
        assert blocks[-1]["elements"][0]["url"] == "https://books.example/invoices/3"

    @pytest.mark.asyncio
    async def test_channel_failure_is_reported_as_false(self, notifier, slack):
        slack.send_message_safe.return_value = False
        assert not await notifier.notify_payment_received(
            invoice_id=3,
            invoice_number="INV-0003",
            amount=Decimal("10.00"),
            remaining=Decimal("90.00"),
            org_name="Acme",
        )
