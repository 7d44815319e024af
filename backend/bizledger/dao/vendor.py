"""
Vendor, vendor bill and vendor payment DAOs.

WHAT: Tenant-scoped reads and writes for the vendor ledger.

WHY: Vendor dues for the list view are computed from two grouped sums
instead of one query pair per vendor.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.base import BaseDAO
from bizledger.models.vendor import Vendor, VendorBill, VendorPayment

ZERO = Decimal("0.00")


class VendorDAO(BaseDAO[Vendor]):
    """Data Access Object for Vendor model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Vendor, session)

    async def list_for_org(
        self,
        org_id: int,
        include_inactive: bool = True,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Vendor]:
        query = select(Vendor).where(Vendor.org_id == org_id)
        if not include_inactive:
            query = query.where(Vendor.is_active.is_(True))
        query = query.order_by(Vendor.name, Vendor.id).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def totals_by_vendor(self, org_id: int) -> Dict[int, Tuple[Decimal, Decimal]]:
        """
        Billed and paid totals for every vendor of an organization.

        Returns:
            {vendor_id: (total_billed, total_paid)}; vendors with no rows are absent
        """
        billed = await self.session.execute(
            select(VendorBill.vendor_id, func.sum(VendorBill.amount))
            .where(VendorBill.org_id == org_id)
            .group_by(VendorBill.vendor_id)
        )
        paid = await self.session.execute(
            select(VendorPayment.vendor_id, func.sum(VendorPayment.amount))
            .where(VendorPayment.org_id == org_id)
            .group_by(VendorPayment.vendor_id)
        )

        totals: Dict[int, Tuple[Decimal, Decimal]] = {}
        for vendor_id, amount in billed.all():
            totals[vendor_id] = (Decimal(str(amount or 0)), ZERO)
        for vendor_id, amount in paid.all():
            billed_total = totals.get(vendor_id, (ZERO, ZERO))[0]
            totals[vendor_id] = (billed_total, Decimal(str(amount or 0)))
        return totals

    async def count_references(self, vendor_id: int, org_id: int) -> int:
        """Number of bills and payments recorded against a vendor."""
        bills = await self.session.execute(
            select(func.count(VendorBill.id)).where(
                VendorBill.vendor_id == vendor_id, VendorBill.org_id == org_id
            )
        )
        payments = await self.session.execute(
            select(func.count(VendorPayment.id)).where(
                VendorPayment.vendor_id == vendor_id, VendorPayment.org_id == org_id
            )
        )
        return int(bills.scalar_one()) + int(payments.scalar_one())


class VendorBillDAO(BaseDAO[VendorBill]):
    """Data Access Object for VendorBill model."""

    def __init__(self, session: AsyncSession):
        super().__init__(VendorBill, session)

    async def list_for_vendor(self, vendor_id: int, org_id: int) -> List[VendorBill]:
        result = await self.session.execute(
            select(VendorBill)
            .where(VendorBill.vendor_id == vendor_id, VendorBill.org_id == org_id)
            .order_by(VendorBill.bill_date, VendorBill.id)
        )
        return list(result.scalars().all())

    async def get_for_vendor(
        self, bill_id: int, vendor_id: int, org_id: int
    ) -> Optional[VendorBill]:
        result = await self.session.execute(
            select(VendorBill).where(
                VendorBill.id == bill_id,
                VendorBill.vendor_id == vendor_id,
                VendorBill.org_id == org_id,
            )
        )
        return result.scalar_one_or_none()


class VendorPaymentDAO(BaseDAO[VendorPayment]):
    """Data Access Object for VendorPayment model."""

    def __init__(self, session: AsyncSession):
        super().__init__(VendorPayment, session)

    async def list_for_vendor(self, vendor_id: int, org_id: int) -> List[VendorPayment]:
        result = await self.session.execute(
            select(VendorPayment)
            .where(VendorPayment.vendor_id == vendor_id, VendorPayment.org_id == org_id)
            .order_by(VendorPayment.payment_date, VendorPayment.id)
        )
        return list(result.scalars().all())

    async def applied_to_bill(self, bill_id: int) -> Decimal:
        """Sum of every payment linked to a bill."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(VendorPayment.amount), 0)).where(
                VendorPayment.bill_id == bill_id
            )
        )
        return Decimal(str(result.scalar_one()))
