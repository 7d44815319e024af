"""
Notification Service for document events.

WHAT: Formats and sends notifications for quotation status changes,
conversions and invoice payments.

WHY: Notifications are secondary to the operation that triggers them.
They are scheduled as FastAPI background tasks, so they run after the
response (and the transaction) completes, and a failing channel is logged
and never reported to the caller.
"""

import logging
from decimal import Decimal
from typing import Optional

from bizledger.core.config import settings
from bizledger.services.slack_service import (
    SlackService,
    build_payment_received_message,
    build_quotation_converted_message,
    build_quotation_status_message,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Orchestrates notifications across channels.

    Attributes:
        slack_service: Service for Slack webhook notifications
        base_url: Base URL for links back into the application
    """

    def __init__(
        self,
        slack_service: Optional[SlackService] = None,
        base_url: Optional[str] = None,
    ):
        self.slack_service = slack_service or SlackService()
        self.base_url = base_url or settings.FRONTEND_URL

    def _build_quotation_url(self, quotation_id: int) -> str:
        return f"{self.base_url}/quotations/{quotation_id}"

    def _build_invoice_url(self, invoice_id: int) -> str:
        return f"{self.base_url}/invoices/{invoice_id}"

    async def notify_quotation_status(
        self,
        quotation_id: int,
        quotation_number: str,
        status: str,
        org_name: str,
        total: Decimal,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Notify that a quotation was sent, accepted or rejected.

        Returns:
            True if notification was sent successfully
        """
        logger.info(f"Sending quotation {status} notification for {quotation_number}")
        text, blocks = build_quotation_status_message(
            quotation_number=quotation_number,
            status=status,
            org_name=org_name,
            total=total,
            quotation_url=self._build_quotation_url(quotation_id),
            reason=reason,
        )
        return await self.slack_service.send_message_safe(text, blocks)

    async def notify_quotation_converted(
        self,
        quotation_number: str,
        invoice_id: int,
        invoice_number: str,
        org_name: str,
        total: Decimal,
    ) -> bool:
        logger.info(f"Sending conversion notification for {quotation_number} -> {invoice_number}")
        text, blocks = build_quotation_converted_message(
            quotation_number=quotation_number,
            invoice_number=invoice_number,
            org_name=org_name,
            total=total,
            invoice_url=self._build_invoice_url(invoice_id),
        )
        return await self.slack_service.send_message_safe(text, blocks)

    async def notify_payment_received(
        self,
        invoice_id: int,
        invoice_number: str,
        amount: Decimal,
        remaining: Decimal,
        org_name: str,
        payment_method: str = "cash",
    ) -> bool:
        """
        Notify that a payment was recorded on an invoice.

        Returns:
            True if notification was sent successfully
        """
        logger.info(f"Sending payment notification for invoice {invoice_number}")
        text, blocks = build_payment_received_message(
            amount=amount,
            invoice_number=invoice_number,
            org_name=org_name,
            payment_method=payment_method,
            remaining=remaining,
            invoice_url=self._build_invoice_url(invoice_id),
        )
        return await self.slack_service.send_message_safe(text, blocks)


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """FastAPI dependency returning the process-wide NotificationService."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
