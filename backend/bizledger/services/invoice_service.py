"""
Invoice Service.

WHAT: Direct invoice creation, payment recording, deletion and the bulk
mark-paid / delete operations.

WHY: An invoice's paid_amount only grows through recorded payments and never
passes its total; the stored status is recomputed from (total, paid_amount)
on every payment. Keeping every write path here keeps that invariant in one
place.

HOW: Bulk operations walk the ids one at a time and run the same checks as
the single-item path. An item that fails a check is counted and skipped
before anything is written for it, so the rest of the batch still commits.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.config import settings
from bizledger.core.exceptions import (
    AppException,
    CustomerNotFoundError,
    InvoiceNotFoundError,
    ValidationError,
)
from bizledger.dao.customer import CustomerDAO
from bizledger.dao.invoice import InvoiceDAO, InvoicePaymentDAO
from bizledger.dao.sequence import DocumentSequenceDAO
from bizledger.models.invoice import Invoice, InvoiceItem, InvoicePayment
from bizledger.models.member import Member
from bizledger.models.sequence import DocumentType
from bizledger.schemas.common import BulkOperationResult, LineItemCreate
from bizledger.schemas.invoice import InvoiceCreate, PaymentCreate
from bizledger.services.audit import AuditService
from bizledger.services.ledger import ZERO, document_totals, line_total, to_money
from bizledger.services.lifecycle import derive_invoice_status, due_amount

logger = logging.getLogger(__name__)


def build_invoice_items(items: List[LineItemCreate]) -> List[InvoiceItem]:
    return [
        InvoiceItem(
            position=index,
            description=item.description,
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            discount=to_money(item.discount),
            total=line_total(item.quantity, item.unit_price, item.discount),
        )
        for index, item in enumerate(items)
    ]


class InvoiceService:
    """
    Service for invoices and invoice payments.

    Example:
        service = InvoiceService(db)
        invoice, payment = await service.record_payment(invoice_id, data, member)
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.invoice_dao = InvoiceDAO(session)
        self.payment_dao = InvoicePaymentDAO(session)
        self.customer_dao = CustomerDAO(session)
        self.sequence_dao = DocumentSequenceDAO(session)
        self.audit = AuditService(session)

    async def get(self, invoice_id: int, org_id: int) -> Invoice:
        invoice = await self.invoice_dao.get_by_id_and_org(invoice_id, org_id)
        if invoice is None:
            raise InvoiceNotFoundError(
                message=f"Invoice with id {invoice_id} not found",
                resource_id=invoice_id,
            )
        return invoice

    async def _get_locked(self, invoice_id: int, org_id: int) -> Invoice:
        invoice = await self.invoice_dao.get_for_update(invoice_id, org_id)
        if invoice is None:
            raise InvoiceNotFoundError(
                message=f"Invoice with id {invoice_id} not found",
                resource_id=invoice_id,
            )
        return invoice

    async def next_number(self, org_id: int) -> str:
        """Number the next invoice will receive; nothing is allocated."""
        return await self.sequence_dao.preview_next_number(org_id, DocumentType.INVOICE)

    async def create(self, data: InvoiceCreate, actor: Member) -> Invoice:
        """
        Create an invoice directly.

        due_date defaults to issue_date + INVOICE_DUE_DAYS.

        Raises:
            CustomerNotFoundError: customer is not in the actor's organization
            ValidationError: a discount makes a line or the document negative
        """
        org_id = actor.org_id
        if not await self.customer_dao.get_by_id_and_org(data.customer_id, org_id):
            raise CustomerNotFoundError(
                message=f"Customer with id {data.customer_id} not found",
                resource_id=data.customer_id,
            )

        items = build_invoice_items(data.items)
        subtotal, total = document_totals(
            [item.total for item in items], data.discount_amount, data.tax_amount
        )
        issue_date = data.issue_date or date.today()
        number = await self.sequence_dao.next_number(org_id, DocumentType.INVOICE)

        invoice = await self.invoice_dao.create(
            org_id=org_id,
            invoice_number=number,
            customer_id=data.customer_id,
            issue_date=issue_date,
            due_date=data.due_date or issue_date + timedelta(days=settings.INVOICE_DUE_DAYS),
            subtotal=subtotal,
            discount_amount=to_money(data.discount_amount),
            tax_amount=to_money(data.tax_amount),
            total=total,
            paid_amount=ZERO,
            status=derive_invoice_status(total, ZERO),
            notes=data.notes,
            created_by=actor.id,
            items=items,
        )
        await self.audit.log_create(
            resource_type="invoice",
            resource_id=invoice.id,
            actor_member_id=actor.id,
            org_id=org_id,
            extra_data={"invoice_number": number, "total": str(total)},
        )
        logger.info(f"Created invoice {number} for org {org_id}")
        return invoice

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def _apply_payment(
        self,
        invoice: Invoice,
        amount: Decimal,
        actor: Member,
        payment_date: Optional[date] = None,
        payment_method: str = "cash",
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[Invoice, InvoicePayment]:
        amount = to_money(amount)
        due = due_amount(invoice.total, invoice.paid_amount)
        if due <= 0:
            raise ValidationError(
                message=f"Invoice {invoice.invoice_number} is already fully paid",
                invoice_id=invoice.id,
            )
        if amount <= 0:
            raise ValidationError(message="Payment amount must be greater than zero")
        if amount > due:
            raise ValidationError(
                message=f"Payment amount {amount} exceeds the amount due ({due})",
                amount=str(amount),
                due_amount=str(due),
            )

        payment = await self.payment_dao.create(
            org_id=invoice.org_id,
            invoice_id=invoice.id,
            amount=amount,
            payment_date=payment_date or date.today(),
            payment_method=payment_method,
            reference=reference,
            notes=notes,
            recorded_by=actor.id,
        )

        before = invoice.status
        paid = to_money(invoice.paid_amount + amount)
        invoice = await self.invoice_dao.update_instance(
            invoice,
            paid_amount=paid,
            status=derive_invoice_status(invoice.total, paid),
        )

        await self.audit.log_payment(
            resource_type="invoice",
            resource_id=invoice.id,
            actor_member_id=actor.id,
            org_id=invoice.org_id,
            amount=str(amount),
            extra_data={
                "payment_id": payment.id,
                "status": {"before": before.value, "after": invoice.status.value},
            },
        )
        return invoice, payment

    async def record_payment(
        self, invoice_id: int, data: PaymentCreate, actor: Member
    ) -> Tuple[Invoice, InvoicePayment]:
        """
        Record a payment against an invoice.

        Raises:
            InvoiceNotFoundError: unknown id in this organization
            ValidationError: amount is not in (0, remaining due]
        """
        invoice = await self._get_locked(invoice_id, actor.org_id)
        return await self._apply_payment(
            invoice,
            data.amount,
            actor,
            payment_date=data.payment_date,
            payment_method=data.payment_method,
            reference=data.reference,
            notes=data.notes,
        )

    async def mark_paid(self, invoice_id: int, actor: Member) -> Invoice:
        """Record a payment for whatever is still due on the invoice."""
        invoice = await self._get_locked(invoice_id, actor.org_id)
        invoice, _ = await self._apply_payment(
            invoice,
            due_amount(invoice.total, invoice.paid_amount),
            actor,
            reference="bulk mark-paid",
        )
        return invoice

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete(self, invoice_id: int, actor: Member) -> None:
        """Delete an invoice together with its line items and payments."""
        invoice = await self._get_locked(invoice_id, actor.org_id)
        number = invoice.invoice_number
        payment_count = len(invoice.payments)

        await self.invoice_dao.delete_instance(invoice)
        await self.audit.log_delete(
            resource_type="invoice",
            resource_id=invoice_id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"invoice_number": number, "payments_removed": payment_count},
        )
        logger.info(f"Deleted invoice {number} (org {actor.org_id})")

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def _run_bulk(
        self, operation: str, ids: Sequence[int], actor: Member, handler
    ) -> BulkOperationResult:
        succeeded = failed = 0
        # Duplicates are processed once
        unique_ids = list(dict.fromkeys(ids))
        for invoice_id in unique_ids:
            try:
                await handler(invoice_id, actor)
                succeeded += 1
            except AppException as e:
                failed += 1
                logger.info(f"Bulk {operation} skipped invoice {invoice_id}: {e.message}")

        await self.audit.log_bulk_operation(
            resource_type="invoice",
            operation=operation,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            requested=len(unique_ids),
            succeeded=succeeded,
            failed=failed,
        )
        return BulkOperationResult(requested=len(unique_ids), succeeded=succeeded, failed=failed)

    async def bulk_mark_paid(self, ids: Sequence[int], actor: Member) -> BulkOperationResult:
        """
        Mark each invoice paid in full.

        Already-paid and unknown invoices count as failures.
        """
        return await self._run_bulk("mark_paid", ids, actor, self.mark_paid)

    async def bulk_delete(self, ids: Sequence[int], actor: Member) -> BulkOperationResult:
        return await self._run_bulk("delete", ids, actor, self.delete)
