"""
Schemas shared by quotations, invoices and bulk endpoints.

WHAT: Line item input/output and bulk operation request/result.

HOW: Money is Decimal with two decimal places; JSON responses carry it as
a string ("130.00") so no precision is lost.
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field, ConfigDict

Money = Decimal


class LineItemCreate(BaseModel):
    """
    One line of a quotation or invoice.

    total is computed server-side: quantity * unit_price - discount.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    discount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Line-level discount amount",
    )


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal
    total: Decimal


class BulkIdsRequest(BaseModel):
    """Ids to process one after another."""

    ids: List[int] = Field(..., min_length=1, max_length=500)


class BulkOperationResult(BaseModel):
    """
    Aggregate outcome of a bulk operation.

    Per-item failures are counted, not itemized.
    """

    requested: int
    succeeded: int
    failed: int
