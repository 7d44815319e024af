"""
Quotation schemas for API request/response validation.

WHAT: Pydantic models for creating, editing, transitioning and reading
quotations.

WHY: Input is validated here before any database work: at least one line
item, positive quantities, non-negative prices and amounts, and a validity
date that does not precede the issue date.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict, model_validator

from bizledger.models.quotation import QuotationStatus
from bizledger.schemas.common import LineItemCreate, LineItemResponse


# ============================================================================
# Request Schemas
# ============================================================================


class QuotationCreate(BaseModel):
    """
    Schema for creating a quotation (always starts as draft).
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_id: Optional[int] = Field(default=None, description="Customer the quotation is for")
    issue_date: Optional[date] = Field(default=None, description="Defaults to today")
    valid_until: Optional[date] = Field(default=None, description="Expiry date")
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(default=None, max_length=5000)
    items: List[LineItemCreate] = Field(..., min_length=1, max_length=200)

    @model_validator(mode="after")
    def validate_dates(self) -> "QuotationCreate":
        issue = self.issue_date or date.today()
        if self.valid_until is not None and self.valid_until < issue:
            raise ValueError("valid_until cannot be before issue_date")
        return self


class QuotationUpdate(BaseModel):
    """
    Schema for editing a draft quotation.

    Omitted fields are left unchanged; ``items``, when given, replaces all
    line items.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_id: Optional[int] = None
    issue_date: Optional[date] = None
    valid_until: Optional[date] = None
    discount_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    tax_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(default=None, max_length=5000)
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1, max_length=200)


class QuotationReject(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: Optional[str] = Field(default=None, max_length=1000, description="Why the customer declined")


# ============================================================================
# Response Schemas
# ============================================================================


class QuotationResponse(BaseModel):
    """Quotation with line items and lifecycle audit fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    quotation_number: str
    customer_id: Optional[int]
    status: QuotationStatus

    issue_date: date
    valid_until: Optional[date]

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: Optional[str]

    converted_invoice_id: Optional[int]
    created_by: Optional[int]
    status_changed_at: Optional[datetime]
    status_changed_by: Optional[int]
    rejection_reason: Optional[str]
    rejected_at: Optional[datetime]
    rejected_by: Optional[int]
    converted_at: Optional[datetime]
    converted_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    items: List[LineItemResponse]

    # Computed
    is_editable: bool
    is_deletable: bool


class QuotationListResponse(BaseModel):
    items: List[QuotationResponse]
    total: int
    skip: int
    limit: int


class QuotationStats(BaseModel):
    total: int = Field(description="Total number of quotations")
    by_status: Dict[str, int] = Field(description="Count per status (every status present)")


class ExpireSweepResult(BaseModel):
    expired: int = Field(description="Number of quotations moved to expired")
