"""Expense and expense category schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class ExpenseCategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class ExpenseCategoryUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class ExpenseCategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime


class ExpenseCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: int
    vendor_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    expense_date: Optional[date] = Field(default=None, description="Defaults to today")
    description: Optional[str] = Field(default=None, max_length=2000)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255)


class ExpenseUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: Optional[int] = None
    vendor_id: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    expense_date: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255)


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    category_id: int
    vendor_id: Optional[int]
    amount: Decimal
    expense_date: date
    description: Optional[str]
    payment_method: Optional[str]
    reference: Optional[str]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime
