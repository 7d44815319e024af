"""
Invoice schemas for API request/response validation.

WHAT: Pydantic models for invoices, invoice payments and bulk operations.

WHY: Responses carry both the stored status (unpaid/partial/paid) and the
derived ``display_status`` (paid/overdue/partial/due) together with
``due_amount``, so clients never recompute either.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, model_validator

from bizledger.models.invoice import InvoiceStatus
from bizledger.schemas.common import LineItemCreate, LineItemResponse
from bizledger.services.lifecycle import DisplayStatus


# ============================================================================
# Request Schemas
# ============================================================================


class InvoiceCreate(BaseModel):
    """
    Schema for creating an invoice directly (not from a quotation).

    due_date defaults to issue_date + INVOICE_DUE_DAYS.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_id: int = Field(..., description="Billed customer")
    issue_date: Optional[date] = Field(default=None, description="Defaults to today")
    due_date: Optional[date] = Field(default=None, description="Payment due date")
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(default=None, max_length=5000)
    items: List[LineItemCreate] = Field(..., min_length=1, max_length=200)

    @model_validator(mode="after")
    def validate_dates(self) -> "InvoiceCreate":
        issue = self.issue_date or date.today()
        if self.due_date is not None and self.due_date < issue:
            raise ValueError("due_date cannot be before issue_date")
        return self


class PaymentCreate(BaseModel):
    """
    Schema for recording a payment against an invoice.

    The amount must also not exceed the invoice's remaining due; that check
    needs the invoice and is made by InvoiceService.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_date: Optional[date] = Field(default=None, description="Defaults to today")
    payment_method: str = Field(default="cash", min_length=1, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)


# ============================================================================
# Response Schemas
# ============================================================================


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    amount: Decimal
    payment_date: date
    payment_method: str
    reference: Optional[str]
    notes: Optional[str]
    recorded_by: Optional[int]
    created_at: datetime


class InvoiceResponse(BaseModel):
    """Invoice header with derived status and due amount."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    invoice_number: str
    customer_id: Optional[int]
    quotation_id: Optional[int]
    status: InvoiceStatus

    issue_date: date
    due_date: Optional[date]

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    paid_amount: Decimal
    notes: Optional[str]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    # Derived at read time
    display_status: DisplayStatus
    due_amount: Decimal


class InvoiceDetailResponse(InvoiceResponse):
    items: List[LineItemResponse]
    payments: List[PaymentResponse]


class InvoiceListResponse(BaseModel):
    items: List[InvoiceResponse]
    total: int
    skip: int
    limit: int


class NextNumberResponse(BaseModel):
    number: str = Field(description="Number the next invoice will receive")
