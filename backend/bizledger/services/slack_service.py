"""
Slack Webhook Integration Service.

WHAT: Sends messages to a Slack channel via an incoming webhook.

WHY: Sales and accounts staff follow quotation decisions and incoming
payments in Slack without watching the application.

HOW: httpx async client POSTs Block Kit payloads to the webhook URL.
``send_message`` raises NotificationError; ``send_message_safe`` logs and
returns False, for callers where the notification is secondary.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from bizledger.core.config import settings
from bizledger.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


class SlackService:
    """
    Service for sending messages to Slack via webhooks.

    Attributes:
        webhook_url: Slack Incoming Webhook URL
        enabled: Whether Slack notifications are enabled
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        enabled: Optional[bool] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            webhook_url: Slack webhook URL (defaults to settings)
            enabled: Whether notifications are enabled (defaults to settings)
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.webhook_url = webhook_url or settings.SLACK_WEBHOOK_URL
        self.enabled = enabled if enabled is not None else settings.SLACK_WEBHOOK_ENABLED
        self.timeout = timeout
        self._transport = transport

    async def send_message(
        self,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> bool:
        """
        Send a message to Slack.

        Args:
            text: Plain text message (also the fallback for blocks)
            blocks: Optional Block Kit blocks

        Returns:
            True if sent, False if the channel is disabled or unconfigured

        Raises:
            NotificationError: If the webhook call fails
        """
        if not self.enabled:
            logger.debug("Slack notifications disabled, skipping message")
            return False

        if not self.webhook_url:
            logger.warning("Slack webhook URL not configured")
            return False

        payload: Dict[str, Any] = {"text": text}
        if blocks:
            payload["blocks"] = blocks

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException as e:
            raise NotificationError(
                message="Slack webhook request timed out",
                timeout=self.timeout,
            ) from e
        except httpx.RequestError as e:
            raise NotificationError(
                message="Failed to connect to Slack webhook",
                error=str(e),
            ) from e

        # Slack answers a successful post with the literal body "ok"
        if response.status_code == 200 and response.text == "ok":
            logger.info("Slack message sent")
            return True

        raise NotificationError(
            message="Slack webhook returned an error",
            response_status=response.status_code,
            response_text=response.text,
        )

    async def send_message_safe(
        self,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> bool:
        """
        Send a message without raising.

        Returns:
            True if the message was sent, False otherwise
        """
        try:
            return await self.send_message(text, blocks)
        except NotificationError as e:
            logger.error(f"Failed to send Slack notification: {e.message}", exc_info=True)
            return False


# ============================================================================
# Block Kit Builders
# ============================================================================


def build_header_block(text: str) -> Dict[str, Any]:
    return {
        "type": "header",
        "text": {"type": "plain_text", "text": text[:150], "emoji": True},
    }


def build_section_block(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def build_fields_block(fields: List[Dict[str, str]]) -> Dict[str, Any]:
    """Two-column label/value layout."""
    return {
        "type": "section",
        "fields": [
            {"type": "mrkdwn", "text": f"*{f['label']}:*\n{f['value']}"}
            for f in fields
        ],
    }


def build_actions_block(buttons: List[Dict[str, str]]) -> Dict[str, Any]:
    return {
        "type": "actions",
        "elements": [
            {
                "type": "button",
                "text": {"type": "plain_text", "text": b["text"], "emoji": True},
                "url": b["url"],
            }
            for b in buttons
        ],
    }


def format_amount(amount: Decimal) -> str:
    return f"{Decimal(amount):,.2f}"


def build_quotation_status_message(
    quotation_number: str,
    status: str,
    org_name: str,
    total: Decimal,
    quotation_url: str,
    reason: Optional[str] = None,
) -> tuple[str, List[Dict[str, Any]]]:
    """
    Build Slack message for a quotation status change.

    Returns:
        Tuple of (fallback text, Block Kit blocks)
    """
    text = f"Quotation {quotation_number} {status} ({org_name})"

    fields = [
        {"label": "Organization", "value": org_name},
        {"label": "Status", "value": status},
        {"label": "Total", "value": format_amount(total)},
    ]
    if reason:
        fields.append({"label": "Reason", "value": reason})

    blocks = [
        build_header_block(f"Quotation {quotation_number} {status}"),
        build_fields_block(fields),
        build_actions_block([{"text": "View Quotation", "url": quotation_url}]),
    ]
    return text, blocks


def build_quotation_converted_message(
    quotation_number: str,
    invoice_number: str,
    org_name: str,
    total: Decimal,
    invoice_url: str,
) -> tuple[str, List[Dict[str, Any]]]:
    text = f"Quotation {quotation_number} converted to invoice {invoice_number} ({org_name})"
    blocks = [
        build_header_block("Quotation Converted"),
        build_section_block(f"*{quotation_number}* → *{invoice_number}*"),
        build_fields_block([
            {"label": "Organization", "value": org_name},
            {"label": "Total", "value": format_amount(total)},
        ]),
        build_actions_block([{"text": "View Invoice", "url": invoice_url}]),
    ]
    return text, blocks


def build_payment_received_message(
    amount: Decimal,
    invoice_number: str,
    org_name: str,
    payment_method: str,
    remaining: Decimal,
    invoice_url: str,
) -> tuple[str, List[Dict[str, Any]]]:
    """
    Build Slack message for a payment recorded against an invoice.

    Returns:
        Tuple of (fallback text, Block Kit blocks)
    """
    text = f"Payment received: {format_amount(amount)} on {invoice_number} ({org_name})"
    blocks = [
        build_header_block("Payment Received"),
        build_section_block(f"*{format_amount(amount)}*"),
        build_fields_block([
            {"label": "Organization", "value": org_name},
            {"label": "Invoice", "value": invoice_number},
            {"label": "Method", "value": payment_method},
            {"label": "Remaining", "value": format_amount(remaining)},
        ]),
        build_actions_block([{"text": "View Invoice", "url": invoice_url}]),
    ]
    return text, blocks
