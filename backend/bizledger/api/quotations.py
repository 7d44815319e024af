"""
Quotation management API endpoints.

WHAT: RESTful API for quotation CRUD, the status workflow and conversion
into invoices.

WHY: Every status change is checked against the transition graph on the
server; a rejected change returns 409 and writes nothing, so the client
can always treat the server's answer as the source of truth.

HOW: FastAPI router with:
- Org-scoped lookups (tenant taken from the token, never the request)
- Capability checks via require_permission
- Notifications scheduled as background tasks after the response
- Listing triggers a background expiry sweep for the caller's organization
"""

from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.api.invoices import invoice_to_detail_response
from bizledger.core.deps import require_permission
from bizledger.dao.member import OrganizationDAO
from bizledger.db.session import get_db, get_session_factory
from bizledger.models.member import Member
from bizledger.models.quotation import Quotation, QuotationStatus
from bizledger.schemas.common import LineItemResponse
from bizledger.schemas.invoice import InvoiceDetailResponse
from bizledger.schemas.quotation import (
    ExpireSweepResult,
    QuotationCreate,
    QuotationListResponse,
    QuotationReject,
    QuotationResponse,
    QuotationStats,
    QuotationUpdate,
)
from bizledger.services.lifecycle import can_delete, is_editable
from bizledger.services.notification_service import (
    NotificationService,
    get_notification_service,
)
from bizledger.services.quotation_service import QuotationService
from bizledger.services.scheduler import expire_quotations


router = APIRouter(prefix="/quotations", tags=["quotations"])


def _quotation_to_response(quotation: Quotation) -> QuotationResponse:
    """
    Convert Quotation model to QuotationResponse schema.

    WHY: is_editable / is_deletable come from the lifecycle rules, so the
    client never re-implements them.
    """
    return QuotationResponse(
        id=quotation.id,
        org_id=quotation.org_id,
        quotation_number=quotation.quotation_number,
        customer_id=quotation.customer_id,
        status=quotation.status,
        issue_date=quotation.issue_date,
        valid_until=quotation.valid_until,
        subtotal=quotation.subtotal,
        discount_amount=quotation.discount_amount,
        tax_amount=quotation.tax_amount,
        total=quotation.total,
        notes=quotation.notes,
        converted_invoice_id=quotation.converted_invoice_id,
        created_by=quotation.created_by,
        status_changed_at=quotation.status_changed_at,
        status_changed_by=quotation.status_changed_by,
        rejection_reason=quotation.rejection_reason,
        rejected_at=quotation.rejected_at,
        rejected_by=quotation.rejected_by,
        converted_at=quotation.converted_at,
        converted_by=quotation.converted_by,
        created_at=quotation.created_at,
        updated_at=quotation.updated_at,
        items=[LineItemResponse.model_validate(item) for item in quotation.items],
        is_editable=is_editable(quotation.status),
        is_deletable=can_delete(quotation.status),
    )


@router.post(
    "",
    response_model=QuotationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create quotation",
)
async def create_quotation(
    data: QuotationCreate,
    member: Member = Depends(require_permission("quotations", "create")),
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    """
    Create a draft quotation.

    The quotation number is allocated from the organization's sequence and
    line and document totals are computed server-side.

    Raises:
        CustomerNotFoundError (404): customer not in this organization
        ValidationError (400): invalid items or amounts
    """
    quotation = await QuotationService(db).create(data, member)
    return _quotation_to_response(quotation)


@router.get(
    "",
    response_model=QuotationListResponse,
    summary="List quotations",
)
async def list_quotations(
    background_tasks: BackgroundTasks,
    skip: int = Query(default=0, ge=0, description="Number of items to skip"),
    limit: int = Query(default=20, ge=1, le=100, description="Maximum items to return"),
    status_filter: Optional[QuotationStatus] = Query(
        default=None, alias="status", description="Filter by quotation status"
    ),
    customer_id: Optional[int] = Query(default=None, description="Filter by customer"),
    member: Member = Depends(require_permission("quotations", "view")),
    db: AsyncSession = Depends(get_db),
    session_factory=Depends(get_session_factory),
) -> QuotationListResponse:
    """
    List quotations for the current organization, newest first.

    Also schedules an expiry sweep for the organization. It runs after the
    response is sent; its failures are logged only.
    """
    service = QuotationService(db)
    quotations = await service.quotation_dao.list_for_org(
        member.org_id, status=status_filter, customer_id=customer_id, skip=skip, limit=limit
    )
    filters = {"org_id": member.org_id}
    if status_filter is not None:
        filters["status"] = status_filter
    if customer_id is not None:
        filters["customer_id"] = customer_id
    total = await service.quotation_dao.count(**filters)

    background_tasks.add_task(
        expire_quotations, org_id=member.org_id, session_factory=session_factory
    )

    return QuotationListResponse(
        items=[_quotation_to_response(q) for q in quotations],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/stats",
    response_model=QuotationStats,
    summary="Quotation counts by status",
)
async def get_quotation_stats(
    member: Member = Depends(require_permission("quotations", "view")),
    db: AsyncSession = Depends(get_db),
) -> QuotationStats:
    by_status = await QuotationService(db).quotation_dao.count_by_status(member.org_id)
    return QuotationStats(total=sum(by_status.values()), by_status=by_status)


@router.post(
    "/expire-sweep",
    response_model=ExpireSweepResult,
    summary="Expire quotations past their validity now",
)
async def run_expire_sweep(
    member: Member = Depends(require_permission("quotations", "edit")),
    db: AsyncSession = Depends(get_db),
) -> ExpireSweepResult:
    """Run the organization's expiry sweep inside this request's transaction."""
    expired = await QuotationService(db).expire_sweep(org_id=member.org_id)
    return ExpireSweepResult(expired=expired)


@router.get(
    "/{quotation_id}",
    response_model=QuotationResponse,
    summary="Get quotation",
)
async def get_quotation(
    quotation_id: int,
    member: Member = Depends(require_permission("quotations", "view")),
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    quotation = await QuotationService(db).get(quotation_id, member.org_id)
    return _quotation_to_response(quotation)


@router.put(
    "/{quotation_id}",
    response_model=QuotationResponse,
    summary="Edit draft quotation",
)
async def update_quotation(
    quotation_id: int,
    data: QuotationUpdate,
    member: Member = Depends(require_permission("quotations", "edit")),
    db: AsyncSession = Depends(get_db),
) -> QuotationResponse:
    """
    Edit a draft quotation's header and, when given, replace its items.

    Raises:
        InvalidStateTransitionError (409): quotation is no longer a draft
    """
    quotation = await QuotationService(db).update(quotation_id, data, member)
    return _quotation_to_response(quotation)


@router.delete(
    "/{quotation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete draft quotation",
)
async def delete_quotation(
    quotation_id: int,
    member: Member = Depends(require_permission("quotations", "delete")),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a draft quotation.

    Raises:
        InvalidStateTransitionError (409): quotation is not a draft; nothing is deleted
    """
    await QuotationService(db).delete(quotation_id, member)


async def _notify_status(
    background_tasks: BackgroundTasks,
    notifier: NotificationService,
    db: AsyncSession,
    quotation: Quotation,
) -> None:
    org_name = await OrganizationDAO(db).get_name(quotation.org_id)
    background_tasks.add_task(
        notifier.notify_quotation_status,
        quotation_id=quotation.id,
        quotation_number=quotation.quotation_number,
        status=quotation.status.value,
        org_name=org_name,
        total=quotation.total,
        reason=quotation.rejection_reason,
    )


@router.post(
    "/{quotation_id}/send",
    response_model=QuotationResponse,
    summary="Send quotation (draft -> sent)",
)
async def send_quotation(
    quotation_id: int,
    background_tasks: BackgroundTasks,
    member: Member = Depends(require_permission("quotations", "edit")),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> QuotationResponse:
    quotation = await QuotationService(db).send(quotation_id, member)
    await _notify_status(background_tasks, notifier, db, quotation)
    return _quotation_to_response(quotation)


@router.post(
    "/{quotation_id}/accept",
    response_model=QuotationResponse,
    summary="Accept quotation (sent -> accepted)",
)
async def accept_quotation(
    quotation_id: int,
    background_tasks: BackgroundTasks,
    member: Member = Depends(require_permission("quotations", "edit")),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> QuotationResponse:
    quotation = await QuotationService(db).accept(quotation_id, member)
    await _notify_status(background_tasks, notifier, db, quotation)
    return _quotation_to_response(quotation)


@router.post(
    "/{quotation_id}/reject",
    response_model=QuotationResponse,
    summary="Reject quotation (sent -> rejected)",
)
async def reject_quotation(
    quotation_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[QuotationReject] = None,
    member: Member = Depends(require_permission("quotations", "edit")),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> QuotationResponse:
    reason = data.reason if data else None
    quotation = await QuotationService(db).reject(quotation_id, member, reason=reason)
    await _notify_status(background_tasks, notifier, db, quotation)
    return _quotation_to_response(quotation)


@router.post(
    "/{quotation_id}/convert",
    response_model=InvoiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Convert accepted quotation to invoice",
    dependencies=[Depends(require_permission("invoices", "create"))],
)
async def convert_quotation(
    quotation_id: int,
    background_tasks: BackgroundTasks,
    member: Member = Depends(require_permission("quotations", "edit")),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> InvoiceDetailResponse:
    """
    Convert an accepted quotation into a new invoice.

    WHAT: Allocates the invoice number, creates the invoice and its items,
    and marks the quotation converted with a link to the invoice.

    WHY: All of it commits together with the request or not at all.

    Raises:
        InvalidStateTransitionError (409): not accepted, or already converted
    """
    service = QuotationService(db)
    invoice = await service.convert(quotation_id, member)
    quotation = await service.get(quotation_id, member.org_id)

    org_name = await OrganizationDAO(db).get_name(member.org_id)
    background_tasks.add_task(
        notifier.notify_quotation_converted,
        quotation_number=quotation.quotation_number,
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        org_name=org_name,
        total=invoice.total,
    )
    return invoice_to_detail_response(invoice)
