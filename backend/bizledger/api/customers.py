"""
Customer API endpoints.

Customers are the reference target for quotations and invoices.
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.deps import require_permission
from bizledger.core.exceptions import CustomerNotFoundError, ValidationError
from bizledger.dao.customer import CustomerDAO
from bizledger.db.session import get_db
from bizledger.models.member import Member
from bizledger.schemas.customer import (
    CustomerCreate,
    CustomerImportResult,
    CustomerListResponse,
    CustomerResponse,
)
from bizledger.services.audit import AuditService
from bizledger.services.csv_transfer import csv_download, fetch_all, parse_csv, rows_to_csv


router = APIRouter(prefix="/customers", tags=["customers"])

CSV_COLUMNS = ("name", "email", "phone", "address", "notes")
CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/vnd.ms-excel",
    "application/octet-stream",
}


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    member: Member = Depends(require_permission("customers", "create")),
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    customer = await CustomerDAO(db).create(org_id=member.org_id, **data.model_dump())
    await AuditService(db).log_create(
        resource_type="customer",
        resource_id=customer.id,
        actor_member_id=member.id,
        org_id=member.org_id,
        extra_data={"name": customer.name},
    )
    return CustomerResponse.model_validate(customer)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    q: Optional[str] = Query(default=None, max_length=100, description="Name contains"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    member: Member = Depends(require_permission("customers", "view")),
    db: AsyncSession = Depends(get_db),
) -> CustomerListResponse:
    dao = CustomerDAO(db)
    customers = await dao.search(member.org_id, q, skip=skip, limit=limit)
    total = await dao.count(org_id=member.org_id) if not q else len(customers)
    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in customers],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/export", response_class=Response, summary="Download customers as CSV")
async def export_customers(
    member: Member = Depends(require_permission("customers", "export")),
    db: AsyncSession = Depends(get_db),
) -> Response:
    dao = CustomerDAO(db)
    customers = await fetch_all(
        lambda skip, limit: dao.search(member.org_id, None, skip=skip, limit=limit)
    )
    text = rows_to_csv(
        ("id",) + CSV_COLUMNS + ("created_at",),
        (
            (c.id, c.name, c.email, c.phone, c.address, c.notes, c.created_at.date())
            for c in customers
        ),
    )
    return csv_download(text, "customers.csv")


@router.post("/import", response_model=CustomerImportResult, summary="Import customers from CSV")
async def import_customers(
    file: UploadFile = File(..., description="CSV with a name column"),
    member: Member = Depends(require_permission("customers", "import")),
    db: AsyncSession = Depends(get_db),
) -> CustomerImportResult:
    """
    Create one customer per CSV row.

    WHAT: Reads name (required), email, phone, address and notes columns.
    Unknown columns are ignored.

    WHY: Rows are validated one by one, so a bad row is reported by line
    number while the good rows are still created.

    Raises:
        ValidationError (400): wrong file type, not UTF-8, no name column or no data rows
    """
    if file.content_type not in CSV_CONTENT_TYPES:
        raise ValidationError(
            message=f"File type not allowed: {file.content_type}",
            allowed_types=sorted(CSV_CONTENT_TYPES),
        )
    try:
        text = (await file.read()).decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError(message="CSV file must be UTF-8 encoded")

    rows, errors = parse_csv(text, required=("name",))

    dao = CustomerDAO(db)
    imported = 0
    for line_number, row in rows:
        try:
            data = CustomerCreate.model_validate(
                {column: row.get(column) or None for column in CSV_COLUMNS}
            )
        except PydanticValidationError as exc:
            fields = ", ".join(str(e["loc"][0]) for e in exc.errors())
            errors.append(f"Line {line_number}: invalid {fields}")
            continue
        await dao.create(org_id=member.org_id, **data.model_dump())
        imported += 1

    failed = len(errors)
    await AuditService(db).log_bulk_operation(
        resource_type="customer",
        operation="import",
        actor_member_id=member.id,
        org_id=member.org_id,
        requested=imported + failed,
        succeeded=imported,
        failed=failed,
    )
    return CustomerImportResult(imported=imported, failed=failed, errors=errors)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    member: Member = Depends(require_permission("customers", "view")),
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    customer = await CustomerDAO(db).get_by_id_and_org(customer_id, member.org_id)
    if customer is None:
        raise CustomerNotFoundError(
            message=f"Customer with id {customer_id} not found",
            resource_id=customer_id,
        )
    return CustomerResponse.model_validate(customer)
