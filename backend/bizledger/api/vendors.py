"""
Vendor API endpoints.

WHAT: Vendor CRUD, bills, payments, per-vendor summary and ledger.

HOW: The list view returns each vendor's due from two grouped sums; the
summary and ledger endpoints work from one vendor's fetched bills and
payments.
"""

from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.deps import require_permission
from bizledger.db.session import get_db
from bizledger.models.member import Member
from bizledger.schemas.vendor import (
    BillCreate,
    BillResponse,
    LedgerEntryResponse,
    VendorCreate,
    VendorLedgerResponse,
    VendorPaymentCreate,
    VendorPaymentResponse,
    VendorPaymentResult,
    VendorResponse,
    VendorSummary,
    VendorUpdate,
    VendorWithDueResponse,
)
from bizledger.services.ledger import ZERO
from bizledger.services.vendor_service import VendorService


router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("", response_model=List[VendorWithDueResponse], summary="List vendors with dues")
async def list_vendors(
    include_inactive: bool = Query(default=True),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    member: Member = Depends(require_permission("vendors", "view")),
    db: AsyncSession = Depends(get_db),
) -> List[VendorWithDueResponse]:
    rows = await VendorService(db).list_with_due(
        member.org_id, include_inactive=include_inactive, skip=skip, limit=limit
    )
    return [
        VendorWithDueResponse(
            **VendorResponse.model_validate(vendor).model_dump(),
            total_billed=billed,
            total_paid=paid,
            due=billed - paid,
        )
        for vendor, billed, paid in rows
    ]


@router.post(
    "",
    response_model=VendorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create vendor",
)
async def create_vendor(
    data: VendorCreate,
    member: Member = Depends(require_permission("vendors", "create")),
    db: AsyncSession = Depends(get_db),
) -> VendorResponse:
    vendor = await VendorService(db).create(data, member)
    return VendorResponse.model_validate(vendor)


@router.get("/{vendor_id}", response_model=VendorResponse, summary="Get vendor")
async def get_vendor(
    vendor_id: int,
    member: Member = Depends(require_permission("vendors", "view")),
    db: AsyncSession = Depends(get_db),
) -> VendorResponse:
    return VendorResponse.model_validate(await VendorService(db).get(vendor_id, member.org_id))


@router.put("/{vendor_id}", response_model=VendorResponse, summary="Update vendor")
async def update_vendor(
    vendor_id: int,
    data: VendorUpdate,
    member: Member = Depends(require_permission("vendors", "edit")),
    db: AsyncSession = Depends(get_db),
) -> VendorResponse:
    vendor = await VendorService(db).update(vendor_id, data, member)
    return VendorResponse.model_validate(vendor)


@router.delete(
    "/{vendor_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete vendor",
)
async def delete_vendor(
    vendor_id: int,
    member: Member = Depends(require_permission("vendors", "delete")),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a vendor that has no bills or payments.

    Raises:
        ReferentialIntegrityError (409): the vendor has ledger history
    """
    await VendorService(db).delete(vendor_id, member)


# ============================================================================
# Bills and payments
# ============================================================================


@router.get("/{vendor_id}/bills", response_model=List[BillResponse], summary="List bills")
async def list_bills(
    vendor_id: int,
    member: Member = Depends(require_permission("vendors", "view")),
    db: AsyncSession = Depends(get_db),
) -> List[BillResponse]:
    bills = await VendorService(db).list_bills(vendor_id, member.org_id)
    return [BillResponse.model_validate(b) for b in bills]


@router.post(
    "/{vendor_id}/bills",
    response_model=BillResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add bill",
)
async def add_bill(
    vendor_id: int,
    data: BillCreate,
    member: Member = Depends(require_permission("vendors", "create")),
    db: AsyncSession = Depends(get_db),
) -> BillResponse:
    bill = await VendorService(db).add_bill(vendor_id, data, member)
    return BillResponse.model_validate(bill)


@router.get(
    "/{vendor_id}/payments",
    response_model=List[VendorPaymentResponse],
    summary="List payments",
)
async def list_payments(
    vendor_id: int,
    member: Member = Depends(require_permission("vendors", "view")),
    db: AsyncSession = Depends(get_db),
) -> List[VendorPaymentResponse]:
    payments = await VendorService(db).list_payments(vendor_id, member.org_id)
    return [VendorPaymentResponse.model_validate(p) for p in payments]


@router.post(
    "/{vendor_id}/payments",
    response_model=VendorPaymentResult,
    status_code=status.HTTP_201_CREATED,
    summary="Record payment to vendor",
)
async def record_vendor_payment(
    vendor_id: int,
    data: VendorPaymentCreate,
    member: Member = Depends(require_permission("vendors", "create")),
    db: AsyncSession = Depends(get_db),
) -> VendorPaymentResult:
    """
    Record a payment; when ``bill_id`` is given the bill's status is
    recomputed from every payment applied to it.
    """
    payment, bill = await VendorService(db).record_payment(vendor_id, data, member)
    return VendorPaymentResult(
        payment=VendorPaymentResponse.model_validate(payment),
        bill=BillResponse.model_validate(bill) if bill is not None else None,
    )


# ============================================================================
# Summary and ledger
# ============================================================================


@router.get("/{vendor_id}/summary", response_model=VendorSummary, summary="Vendor totals")
async def get_vendor_summary(
    vendor_id: int,
    member: Member = Depends(require_permission("vendors", "view")),
    db: AsyncSession = Depends(get_db),
) -> VendorSummary:
    return VendorSummary(**await VendorService(db).summary(vendor_id, member.org_id))


@router.get("/{vendor_id}/ledger", response_model=VendorLedgerResponse, summary="Vendor ledger")
async def get_vendor_ledger(
    vendor_id: int,
    member: Member = Depends(require_permission("vendors", "view")),
    db: AsyncSession = Depends(get_db),
) -> VendorLedgerResponse:
    """Bills and payments in date order with the running balance after each."""
    entries = await VendorService(db).ledger(vendor_id, member.org_id)
    return VendorLedgerResponse(
        vendor_id=vendor_id,
        entries=[LedgerEntryResponse.model_validate(e) for e in entries],
        closing_balance=entries[-1].balance if entries else ZERO,
    )
