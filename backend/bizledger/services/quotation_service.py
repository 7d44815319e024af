"""
Quotation Service.

WHAT: Create/edit/delete quotations, move them through their status graph
and convert accepted quotations into invoices.

WHY: Conversion touches four things (invoice sequence, invoice row, invoice
items, quotation status and link). Doing it here, inside the request's
single transaction, means a failure at any step leaves no partial invoice
and no half-converted quotation.

HOW: Every mutation checks services.lifecycle first and raises before
anything is written. The caller (get_db / session_scope) owns commit and
rollback.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.config import settings
from bizledger.core.exceptions import (
    CustomerNotFoundError,
    InvalidStateTransitionError,
    QuotationNotFoundError,
    ValidationError,
)
from bizledger.dao.customer import CustomerDAO
from bizledger.dao.invoice import InvoiceDAO
from bizledger.dao.quotation import QuotationDAO
from bizledger.dao.sequence import DocumentSequenceDAO
from bizledger.models.audit_log import AuditAction
from bizledger.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from bizledger.models.member import Member
from bizledger.models.quotation import Quotation, QuotationItem, QuotationStatus
from bizledger.models.sequence import DocumentType
from bizledger.schemas.common import LineItemCreate
from bizledger.schemas.quotation import QuotationCreate, QuotationUpdate
from bizledger.services.audit import AuditService
from bizledger.services.ledger import ZERO, document_totals, line_total, to_money
from bizledger.services.lifecycle import (
    ensure_deletable,
    ensure_editable,
    ensure_transition,
    should_expire,
)

logger = logging.getLogger(__name__)

# Header fields an edit may set back to null
_CLEARABLE_FIELDS = frozenset({"customer_id", "valid_until", "notes"})


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def build_quotation_items(items: List[LineItemCreate]) -> List[QuotationItem]:
    """Turn validated line input into QuotationItem rows with computed totals."""
    return [
        QuotationItem(
            position=index,
            description=item.description,
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            discount=to_money(item.discount),
            total=line_total(item.quantity, item.unit_price, item.discount),
        )
        for index, item in enumerate(items)
    ]


class QuotationService:
    """
    Service for the quotation lifecycle.

    Example:
        service = QuotationService(db)
        quotation = await service.send(quotation_id, member)
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.quotation_dao = QuotationDAO(session)
        self.invoice_dao = InvoiceDAO(session)
        self.customer_dao = CustomerDAO(session)
        self.sequence_dao = DocumentSequenceDAO(session)
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get(self, quotation_id: int, org_id: int) -> Quotation:
        quotation = await self.quotation_dao.get_by_id_and_org(quotation_id, org_id)
        if quotation is None:
            raise QuotationNotFoundError(
                message=f"Quotation with id {quotation_id} not found",
                resource_id=quotation_id,
            )
        return quotation

    async def _get_locked(self, quotation_id: int, org_id: int) -> Quotation:
        quotation = await self.quotation_dao.get_for_update(quotation_id, org_id)
        if quotation is None:
            raise QuotationNotFoundError(
                message=f"Quotation with id {quotation_id} not found",
                resource_id=quotation_id,
            )
        return quotation

    async def _ensure_customer(self, customer_id: Optional[int], org_id: int) -> None:
        if customer_id is None:
            return
        if not await self.customer_dao.get_by_id_and_org(customer_id, org_id):
            raise CustomerNotFoundError(
                message=f"Customer with id {customer_id} not found",
                resource_id=customer_id,
            )

    # ------------------------------------------------------------------
    # Draft editing
    # ------------------------------------------------------------------

    async def create(self, data: QuotationCreate, actor: Member) -> Quotation:
        """
        Create a draft quotation with a freshly allocated number.

        Raises:
            CustomerNotFoundError: customer is not in the actor's organization
            ValidationError: a discount makes a line or the document negative
        """
        org_id = actor.org_id
        await self._ensure_customer(data.customer_id, org_id)

        items = build_quotation_items(data.items)
        subtotal, total = document_totals(
            [item.total for item in items], data.discount_amount, data.tax_amount
        )
        number = await self.sequence_dao.next_number(org_id, DocumentType.QUOTATION)

        quotation = await self.quotation_dao.create(
            org_id=org_id,
            quotation_number=number,
            customer_id=data.customer_id,
            issue_date=data.issue_date or date.today(),
            valid_until=data.valid_until,
            subtotal=subtotal,
            discount_amount=to_money(data.discount_amount),
            tax_amount=to_money(data.tax_amount),
            total=total,
            notes=data.notes,
            status=QuotationStatus.DRAFT,
            created_by=actor.id,
            items=items,
        )

        await self.audit.log_create(
            resource_type="quotation",
            resource_id=quotation.id,
            actor_member_id=actor.id,
            org_id=org_id,
            extra_data={"quotation_number": number, "total": str(total)},
        )
        logger.info(f"Created quotation {number} for org {org_id}")
        return quotation

    async def update(self, quotation_id: int, data: QuotationUpdate, actor: Member) -> Quotation:
        """
        Edit a draft quotation. ``items`` replaces every line when given.

        Raises:
            InvalidStateTransitionError: quotation is not a draft
        """
        quotation = await self._get_locked(quotation_id, actor.org_id)
        ensure_editable(quotation.status)

        fields = {
            field: value
            for field, value in data.model_dump(exclude_unset=True, exclude={"items"}).items()
            if value is not None or field in _CLEARABLE_FIELDS
        }
        if "customer_id" in fields:
            await self._ensure_customer(fields["customer_id"], actor.org_id)

        issue_date = fields.get("issue_date") or quotation.issue_date
        valid_until = fields.get("valid_until", quotation.valid_until)
        if valid_until is not None and valid_until < issue_date:
            raise ValidationError(
                message="valid_until cannot be before issue_date",
                issue_date=issue_date.isoformat(),
                valid_until=valid_until.isoformat(),
            )

        changes = {}
        for field, value in fields.items():
            before = getattr(quotation, field)
            if before != value:
                changes[field] = {"before": _jsonable(before), "after": _jsonable(value)}

        if data.items is not None:
            items = build_quotation_items(data.items)
            fields["items"] = items
            line_totals = [item.total for item in items]
            changes["items"] = {"before": len(quotation.items), "after": len(items)}
        else:
            line_totals = [item.total for item in quotation.items]

        subtotal, total = document_totals(
            line_totals,
            fields.get("discount_amount", quotation.discount_amount),
            fields.get("tax_amount", quotation.tax_amount),
        )
        fields.update(subtotal=subtotal, total=total)
        for money_field in ("discount_amount", "tax_amount"):
            if money_field in fields:
                fields[money_field] = to_money(fields[money_field])

        quotation = await self.quotation_dao.update_instance(quotation, **fields)

        if changes:
            await self.audit.log_update(
                resource_type="quotation",
                resource_id=quotation.id,
                actor_member_id=actor.id,
                org_id=actor.org_id,
                changes=changes,
            )
        return quotation

    async def delete(self, quotation_id: int, actor: Member) -> None:
        """
        Delete a draft quotation and its items.

        Raises:
            InvalidStateTransitionError: quotation is not a draft (nothing deleted)
        """
        quotation = await self._get_locked(quotation_id, actor.org_id)
        ensure_deletable(quotation.status)

        number = quotation.quotation_number
        await self.quotation_dao.delete_instance(quotation)
        await self.audit.log_delete(
            resource_type="quotation",
            resource_id=quotation_id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"quotation_number": number},
        )

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def _transition(
        self,
        quotation: Quotation,
        target: QuotationStatus,
        actor: Member,
        **extra_fields,
    ) -> Quotation:
        today = date.today()
        if should_expire(quotation.status, quotation.valid_until, today):
            raise InvalidStateTransitionError(
                message="Quotation has expired and cannot be modified",
                current_state=quotation.status.value,
                requested_state=target.value,
                valid_until=quotation.valid_until.isoformat(),
            )
        ensure_transition(quotation.status, target)

        before = quotation.status
        now = datetime.utcnow()
        quotation = await self.quotation_dao.update_instance(
            quotation,
            status=target,
            status_changed_at=now,
            status_changed_by=actor.id,
            **extra_fields,
        )
        await self.audit.log_status_change(
            resource_type="quotation",
            resource_id=quotation.id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            before=before.value,
            after=target.value,
        )
        logger.info(
            f"Quotation {quotation.quotation_number} {before.value} -> {target.value} "
            f"by member {actor.id}"
        )
        return quotation

    async def send(self, quotation_id: int, actor: Member) -> Quotation:
        """draft -> sent. Line items are locked from here on."""
        quotation = await self._get_locked(quotation_id, actor.org_id)
        return await self._transition(quotation, QuotationStatus.SENT, actor)

    async def accept(self, quotation_id: int, actor: Member) -> Quotation:
        """sent -> accepted."""
        quotation = await self._get_locked(quotation_id, actor.org_id)
        return await self._transition(quotation, QuotationStatus.ACCEPTED, actor)

    async def reject(
        self, quotation_id: int, actor: Member, reason: Optional[str] = None
    ) -> Quotation:
        """sent -> rejected, recording who rejected it and why."""
        quotation = await self._get_locked(quotation_id, actor.org_id)
        return await self._transition(
            quotation,
            QuotationStatus.REJECTED,
            actor,
            rejection_reason=reason,
            rejected_at=datetime.utcnow(),
            rejected_by=actor.id,
        )

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    async def convert(self, quotation_id: int, actor: Member) -> Invoice:
        """
        Convert an accepted quotation into an invoice.

        WHAT: In one transaction:
            1. allocate the organization's next invoice number
            2. create the invoice from the quotation's customer, amounts and notes
            3. copy every line item
            4. mark the quotation converted, linking the invoice

        WHY: The quotation row is locked first, so two concurrent conversions
        of the same quotation serialize and the second sees CONVERTED.

        Returns:
            The new invoice

        Raises:
            QuotationNotFoundError: unknown id in this organization
            InvalidStateTransitionError: not accepted, or already converted
        """
        org_id = actor.org_id
        quotation = await self._get_locked(quotation_id, org_id)

        if quotation.converted_invoice_id is not None:
            raise InvalidStateTransitionError(
                message="Quotation has already been converted to an invoice",
                current_state=quotation.status.value,
                requested_state=QuotationStatus.CONVERTED.value,
                converted_invoice_id=quotation.converted_invoice_id,
            )
        if should_expire(quotation.status, quotation.valid_until, date.today()):
            raise InvalidStateTransitionError(
                message="Quotation has expired and cannot be converted",
                current_state=quotation.status.value,
                requested_state=QuotationStatus.CONVERTED.value,
            )
        ensure_transition(quotation.status, QuotationStatus.CONVERTED)

        invoice_number = await self.sequence_dao.next_number(org_id, DocumentType.INVOICE)
        issue_date = date.today()
        invoice = await self.invoice_dao.create(
            org_id=org_id,
            invoice_number=invoice_number,
            customer_id=quotation.customer_id,
            quotation_id=quotation.id,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=settings.INVOICE_DUE_DAYS),
            subtotal=quotation.subtotal,
            discount_amount=quotation.discount_amount,
            tax_amount=quotation.tax_amount,
            total=quotation.total,
            paid_amount=ZERO,
            status=InvoiceStatus.UNPAID,
            notes=quotation.notes,
            created_by=actor.id,
            items=[
                InvoiceItem(
                    position=item.position,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount=item.discount,
                    total=item.total,
                )
                for item in quotation.items
            ],
        )

        now = datetime.utcnow()
        await self.quotation_dao.update_instance(
            quotation,
            status=QuotationStatus.CONVERTED,
            converted_invoice_id=invoice.id,
            converted_at=now,
            converted_by=actor.id,
            status_changed_at=now,
            status_changed_by=actor.id,
        )

        await self.audit.log_event(
            action=AuditAction.CONVERT,
            resource_type="quotation",
            actor_member_id=actor.id,
            resource_id=quotation.id,
            org_id=org_id,
            changes={"status": {"before": "accepted", "after": "converted"}},
            extra_data={"invoice_id": invoice.id, "invoice_number": invoice_number},
        )
        await self.audit.log_create(
            resource_type="invoice",
            resource_id=invoice.id,
            actor_member_id=actor.id,
            org_id=org_id,
            extra_data={"quotation_id": quotation.id, "total": str(invoice.total)},
        )
        logger.info(
            f"Converted quotation {quotation.quotation_number} to invoice {invoice_number}"
        )
        return invoice

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    async def expire_sweep(self, org_id: Optional[int] = None, today: Optional[date] = None) -> int:
        """
        Expire open quotations whose validity has ended.

        Args:
            org_id: One organization, or None for all of them
            today: Current date (injected in tests)

        Returns:
            Number of quotations moved to EXPIRED
        """
        expired = await self.quotation_dao.expire_past_validity(
            today or date.today(), org_id=org_id
        )
        if expired:
            logger.info(f"Expired {expired} quotation(s) (org={org_id or 'all'})")
        return expired
