"""
Vendor schemas: vendors, bills, payments, summary and ledger.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from bizledger.models.vendor import BillStatus


class VendorCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    contact_person: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = Field(default=None, max_length=5000)


class VendorUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_person: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = Field(default=None, max_length=5000)
    is_active: Optional[bool] = None


class VendorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    name: str
    contact_person: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class VendorWithDueResponse(VendorResponse):
    """Vendor row for the list view. ``due`` may be negative (credit)."""

    total_billed: Decimal
    total_paid: Decimal
    due: Decimal


class BillCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    bill_number: Optional[str] = Field(default=None, max_length=100)
    bill_date: Optional[date] = Field(default=None, description="Defaults to today")
    due_date: Optional[date] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = Field(default=None, max_length=2000)


class BillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: int
    bill_number: Optional[str]
    bill_date: date
    due_date: Optional[date]
    amount: Decimal
    status: BillStatus
    notes: Optional[str]
    created_at: datetime


class VendorPaymentCreate(BaseModel):
    """
    Payment to a vendor. ``bill_id`` links it to one bill of the same
    vendor, whose status is then recomputed.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_date: Optional[date] = Field(default=None, description="Defaults to today")
    payment_method: str = Field(default="cash", min_length=1, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)
    bill_id: Optional[int] = None


class VendorPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: int
    bill_id: Optional[int]
    amount: Decimal
    payment_date: date
    payment_method: str
    reference: Optional[str]
    notes: Optional[str]
    created_at: datetime


class VendorPaymentResult(BaseModel):
    payment: VendorPaymentResponse
    bill: Optional[BillResponse] = Field(default=None, description="Linked bill after recompute")


class VendorSummary(BaseModel):
    vendor_id: int
    total_billed: Decimal
    total_paid: Decimal
    due: Decimal
    bill_count: int
    payment_count: int


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_type: str = Field(description="bill or payment")
    entry_id: int
    entry_date: date
    amount: Decimal
    reference: Optional[str]
    balance: Decimal = Field(description="Running balance after this entry")


class VendorLedgerResponse(BaseModel):
    vendor_id: int
    entries: List[LedgerEntryResponse]
    closing_balance: Decimal
