"""
Invoice management API endpoints.

WHAT: RESTful API for invoices, invoice payments and bulk operations.

WHY: Every invoice in a response carries ``display_status`` and
``due_amount`` computed by services.lifecycle, so there is one definition of
"overdue" for every screen.

HOW: FastAPI router with:
- Org-scoped lookups (tenant taken from the token)
- Capability checks via require_permission
- Payment notifications scheduled as background tasks
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.deps import require_permission
from bizledger.dao.member import OrganizationDAO
from bizledger.db.session import get_db
from bizledger.models.invoice import Invoice, InvoiceStatus
from bizledger.models.member import Member
from bizledger.schemas.common import BulkIdsRequest, BulkOperationResult, LineItemResponse
from bizledger.schemas.invoice import (
    InvoiceCreate,
    InvoiceDetailResponse,
    InvoiceListResponse,
    InvoiceResponse,
    NextNumberResponse,
    PaymentCreate,
    PaymentResponse,
)
from bizledger.services.csv_transfer import csv_download, fetch_all, rows_to_csv
from bizledger.services.invoice_service import InvoiceService
from bizledger.services.lifecycle import derive_display_status, due_amount
from bizledger.services.notification_service import (
    NotificationService,
    get_notification_service,
)


router = APIRouter(prefix="/invoices", tags=["invoices"])

INVOICE_CSV_COLUMNS = (
    "invoice_number",
    "customer_id",
    "issue_date",
    "due_date",
    "total",
    "paid_amount",
    "due_amount",
    "display_status",
)


def _invoice_fields(invoice: Invoice, today: Optional[date] = None) -> dict:
    today = today or date.today()
    return dict(
        id=invoice.id,
        org_id=invoice.org_id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        quotation_id=invoice.quotation_id,
        status=invoice.status,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        subtotal=invoice.subtotal,
        discount_amount=invoice.discount_amount,
        tax_amount=invoice.tax_amount,
        total=invoice.total,
        paid_amount=invoice.paid_amount,
        notes=invoice.notes,
        created_by=invoice.created_by,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
        display_status=derive_display_status(
            invoice.total, invoice.paid_amount, invoice.due_date, today
        ),
        due_amount=due_amount(invoice.total, invoice.paid_amount),
    )


def _invoice_to_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(**_invoice_fields(invoice))


def invoice_to_detail_response(invoice: Invoice) -> InvoiceDetailResponse:
    """Invoice with its line items and payments."""
    return InvoiceDetailResponse(
        **_invoice_fields(invoice),
        items=[LineItemResponse.model_validate(item) for item in invoice.items],
        payments=[PaymentResponse.model_validate(p) for p in invoice.payments],
    )


@router.post(
    "",
    response_model=InvoiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
)
async def create_invoice(
    data: InvoiceCreate,
    member: Member = Depends(require_permission("invoices", "create")),
    db: AsyncSession = Depends(get_db),
) -> InvoiceDetailResponse:
    """
    Create an invoice directly (not from a quotation).

    Raises:
        CustomerNotFoundError (404): customer not in this organization
        ValidationError (400): invalid items or amounts
    """
    invoice = await InvoiceService(db).create(data, member)
    return invoice_to_detail_response(invoice)


@router.get(
    "",
    response_model=InvoiceListResponse,
    summary="List invoices",
)
async def list_invoices(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    status_filter: Optional[InvoiceStatus] = Query(
        default=None, alias="status", description="Filter by stored status"
    ),
    customer_id: Optional[int] = Query(default=None),
    member: Member = Depends(require_permission("invoices", "view")),
    db: AsyncSession = Depends(get_db),
) -> InvoiceListResponse:
    dao = InvoiceService(db).invoice_dao
    invoices = await dao.list_for_org(
        member.org_id, status=status_filter, customer_id=customer_id, skip=skip, limit=limit
    )
    filters = {"org_id": member.org_id}
    if status_filter is not None:
        filters["status"] = status_filter
    if customer_id is not None:
        filters["customer_id"] = customer_id

    return InvoiceListResponse(
        items=[_invoice_to_response(i) for i in invoices],
        total=await dao.count(**filters),
        skip=skip,
        limit=limit,
    )


@router.get(
    "/next-number",
    response_model=NextNumberResponse,
    summary="Preview the next invoice number",
)
async def get_next_invoice_number(
    member: Member = Depends(require_permission("invoices", "view")),
    db: AsyncSession = Depends(get_db),
) -> NextNumberResponse:
    return NextNumberResponse(number=await InvoiceService(db).next_number(member.org_id))


@router.get(
    "/export",
    response_class=Response,
    summary="Download invoices as CSV",
)
async def export_invoices(
    status_filter: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    customer_id: Optional[int] = Query(default=None),
    member: Member = Depends(require_permission("invoices", "export")),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """One row per invoice with the same display status and due amount as the list."""
    dao = InvoiceService(db).invoice_dao
    invoices = await fetch_all(
        lambda skip, limit: dao.list_for_org(
            member.org_id, status=status_filter, customer_id=customer_id, skip=skip, limit=limit
        )
    )
    today = date.today()
    text = rows_to_csv(
        INVOICE_CSV_COLUMNS,
        (
            [_invoice_fields(invoice, today)[column] for column in INVOICE_CSV_COLUMNS]
            for invoice in invoices
        ),
    )
    return csv_download(text, "invoices.csv")


@router.post(
    "/bulk/mark-paid",
    response_model=BulkOperationResult,
    summary="Mark several invoices paid",
    dependencies=[Depends(require_permission("payments", "create"))],
)
async def bulk_mark_paid(
    data: BulkIdsRequest,
    member: Member = Depends(require_permission("invoices", "bulk")),
    db: AsyncSession = Depends(get_db),
) -> BulkOperationResult:
    """
    Record a payment for the remaining due on each invoice, one at a time.

    Returns counts only; invoices that are unknown or already paid are
    counted as failed.
    """
    return await InvoiceService(db).bulk_mark_paid(data.ids, member)


@router.post(
    "/bulk/delete",
    response_model=BulkOperationResult,
    summary="Delete several invoices",
    dependencies=[Depends(require_permission("invoices", "delete"))],
)
async def bulk_delete(
    data: BulkIdsRequest,
    member: Member = Depends(require_permission("invoices", "bulk")),
    db: AsyncSession = Depends(get_db),
) -> BulkOperationResult:
    return await InvoiceService(db).bulk_delete(data.ids, member)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceDetailResponse,
    summary="Get invoice",
)
async def get_invoice(
    invoice_id: int,
    member: Member = Depends(require_permission("invoices", "view")),
    db: AsyncSession = Depends(get_db),
) -> InvoiceDetailResponse:
    invoice = await InvoiceService(db).get(invoice_id, member.org_id)
    return invoice_to_detail_response(invoice)


@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete invoice",
)
async def delete_invoice(
    invoice_id: int,
    member: Member = Depends(require_permission("invoices", "delete")),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete an invoice with its line items and payments."""
    await InvoiceService(db).delete(invoice_id, member)


@router.post(
    "/{invoice_id}/payments",
    response_model=InvoiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record payment",
)
async def record_payment(
    invoice_id: int,
    data: PaymentCreate,
    background_tasks: BackgroundTasks,
    member: Member = Depends(require_permission("payments", "create")),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> InvoiceDetailResponse:
    """
    Record a payment against an invoice.

    Raises:
        ValidationError (400): amount is zero, negative or above the remaining due
    """
    invoice, payment = await InvoiceService(db).record_payment(invoice_id, data, member)

    org_name = await OrganizationDAO(db).get_name(member.org_id)
    background_tasks.add_task(
        notifier.notify_payment_received,
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        amount=payment.amount,
        remaining=due_amount(invoice.total, invoice.paid_amount),
        org_name=org_name,
        payment_method=payment.payment_method,
    )
    return invoice_to_detail_response(invoice)
