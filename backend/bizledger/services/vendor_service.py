"""
Vendor Service.

WHAT: Vendor CRUD, bills, payments, the per-vendor summary and the ledger.

WHY: A vendor's due is sum(bills) - sum(payments) and is allowed to go
negative (a credit). When a payment names a bill, that bill's status is
recomputed from everything applied to it, inside the same transaction as
the payment insert.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.exceptions import (
    ReferentialIntegrityError,
    VendorBillNotFoundError,
    VendorNotFoundError,
)
from bizledger.dao.vendor import VendorBillDAO, VendorDAO, VendorPaymentDAO
from bizledger.models.member import Member
from bizledger.models.vendor import BillStatus, Vendor, VendorBill, VendorPayment
from bizledger.schemas.vendor import BillCreate, VendorCreate, VendorPaymentCreate, VendorUpdate
from bizledger.services.audit import AuditService
from bizledger.services.ledger import (
    ZERO,
    LedgerEntry,
    bill_status_after_payment,
    build_ledger,
    sum_amounts,
    to_money,
    vendor_due,
)

logger = logging.getLogger(__name__)


class VendorService:
    """Service for vendors and their bills and payments."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.vendor_dao = VendorDAO(session)
        self.bill_dao = VendorBillDAO(session)
        self.payment_dao = VendorPaymentDAO(session)
        self.audit = AuditService(session)

    async def get(self, vendor_id: int, org_id: int) -> Vendor:
        vendor = await self.vendor_dao.get_by_id_and_org(vendor_id, org_id)
        if vendor is None:
            raise VendorNotFoundError(
                message=f"Vendor with id {vendor_id} not found",
                resource_id=vendor_id,
            )
        return vendor

    # ------------------------------------------------------------------
    # Vendors
    # ------------------------------------------------------------------

    async def list_with_due(
        self, org_id: int, include_inactive: bool = True, skip: int = 0, limit: int = 100
    ) -> List[Tuple[Vendor, Decimal, Decimal]]:
        """
        Vendors with (total_billed, total_paid) for the list view.

        Returns:
            [(vendor, total_billed, total_paid), ...]
        """
        vendors = await self.vendor_dao.list_for_org(
            org_id, include_inactive=include_inactive, skip=skip, limit=limit
        )
        totals = await self.vendor_dao.totals_by_vendor(org_id)
        rows = []
        for vendor in vendors:
            billed, paid = totals.get(vendor.id, (ZERO, ZERO))
            rows.append((vendor, to_money(billed), to_money(paid)))
        return rows

    async def create(self, data: VendorCreate, actor: Member) -> Vendor:
        vendor = await self.vendor_dao.create(org_id=actor.org_id, **data.model_dump())
        await self.audit.log_create(
            resource_type="vendor",
            resource_id=vendor.id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"name": vendor.name},
        )
        return vendor

    async def update(self, vendor_id: int, data: VendorUpdate, actor: Member) -> Vendor:
        vendor = await self.get(vendor_id, actor.org_id)
        fields = data.model_dump(exclude_unset=True)
        if fields.get("name", "") is None:
            fields.pop("name")
        if fields.get("is_active", False) is None:
            fields.pop("is_active")

        changes = {
            field: {"before": getattr(vendor, field), "after": value}
            for field, value in fields.items()
            if getattr(vendor, field) != value
        }
        vendor = await self.vendor_dao.update_instance(vendor, **fields)
        if changes:
            await self.audit.log_update(
                resource_type="vendor",
                resource_id=vendor.id,
                actor_member_id=actor.id,
                org_id=actor.org_id,
                changes=changes,
            )
        return vendor

    async def delete(self, vendor_id: int, actor: Member) -> None:
        """
        Delete a vendor with no ledger history.

        Raises:
            ReferentialIntegrityError: the vendor still has bills or payments
        """
        vendor = await self.get(vendor_id, actor.org_id)
        references = await self.vendor_dao.count_references(vendor.id, actor.org_id)
        if references:
            raise ReferentialIntegrityError(
                message=(
                    f"Cannot delete: This vendor has {references} bill(s) or payment(s). "
                    "Deactivate it instead."
                ),
                resource_type="vendor",
                reference_count=references,
            )
        await self.vendor_dao.delete_instance(vendor)
        await self.audit.log_delete(
            resource_type="vendor",
            resource_id=vendor_id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
        )

    # ------------------------------------------------------------------
    # Bills and payments
    # ------------------------------------------------------------------

    async def list_bills(self, vendor_id: int, org_id: int) -> List[VendorBill]:
        await self.get(vendor_id, org_id)
        return await self.bill_dao.list_for_vendor(vendor_id, org_id)

    async def list_payments(self, vendor_id: int, org_id: int) -> List[VendorPayment]:
        await self.get(vendor_id, org_id)
        return await self.payment_dao.list_for_vendor(vendor_id, org_id)

    async def add_bill(self, vendor_id: int, data: BillCreate, actor: Member) -> VendorBill:
        vendor = await self.get(vendor_id, actor.org_id)
        bill = await self.bill_dao.create(
            org_id=actor.org_id,
            vendor_id=vendor.id,
            bill_number=data.bill_number,
            bill_date=data.bill_date or date.today(),
            due_date=data.due_date,
            amount=to_money(data.amount),
            status=BillStatus.UNPAID,
            notes=data.notes,
        )
        await self.audit.log_create(
            resource_type="vendor_bill",
            resource_id=bill.id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"vendor_id": vendor.id, "amount": str(bill.amount)},
        )
        return bill

    async def record_payment(
        self, vendor_id: int, data: VendorPaymentCreate, actor: Member
    ) -> Tuple[VendorPayment, Optional[VendorBill]]:
        """
        Record a payment to a vendor, optionally against one of its bills.

        Overpayment is accepted; it shows up as a negative due.

        Returns:
            (payment, linked bill after status recompute or None)

        Raises:
            VendorNotFoundError: unknown vendor in this organization
            VendorBillNotFoundError: bill_id is not a bill of this vendor
        """
        vendor = await self.get(vendor_id, actor.org_id)

        bill = None
        if data.bill_id is not None:
            bill = await self.bill_dao.get_for_vendor(data.bill_id, vendor.id, actor.org_id)
            if bill is None:
                raise VendorBillNotFoundError(
                    message=f"Bill with id {data.bill_id} not found for this vendor",
                    resource_id=data.bill_id,
                )

        payment = await self.payment_dao.create(
            org_id=actor.org_id,
            vendor_id=vendor.id,
            bill_id=data.bill_id,
            amount=to_money(data.amount),
            payment_date=data.payment_date or date.today(),
            payment_method=data.payment_method,
            reference=data.reference,
            notes=data.notes,
        )

        if bill is not None:
            applied = await self.payment_dao.applied_to_bill(bill.id)
            new_status = bill_status_after_payment(bill.amount, applied)
            if new_status != bill.status:
                bill = await self.bill_dao.update_instance(bill, status=new_status)

        await self.audit.log_payment(
            resource_type="vendor",
            resource_id=vendor.id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            amount=str(payment.amount),
            extra_data={"payment_id": payment.id, "bill_id": data.bill_id},
        )
        return payment, bill

    # ------------------------------------------------------------------
    # Summary and ledger
    # ------------------------------------------------------------------

    async def summary(self, vendor_id: int, org_id: int) -> Dict[str, object]:
        """Total billed, total paid and due for one vendor."""
        await self.get(vendor_id, org_id)
        bills = await self.bill_dao.list_for_vendor(vendor_id, org_id)
        payments = await self.payment_dao.list_for_vendor(vendor_id, org_id)
        return {
            "vendor_id": vendor_id,
            "total_billed": sum_amounts(bills),
            "total_paid": sum_amounts(payments),
            "due": vendor_due(bills, payments),
            "bill_count": len(bills),
            "payment_count": len(payments),
        }

    async def ledger(self, vendor_id: int, org_id: int) -> List[LedgerEntry]:
        """Chronological bills and payments with the running balance."""
        await self.get(vendor_id, org_id)
        bills = await self.bill_dao.list_for_vendor(vendor_id, org_id)
        payments = await self.payment_dao.list_for_vendor(vendor_id, org_id)
        return build_ledger(bills, payments)
