"""
Expense and expense category API endpoints.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.deps import require_permission
from bizledger.db.session import get_db
from bizledger.models.member import Member
from bizledger.schemas.expense import (
    ExpenseCategoryCreate,
    ExpenseCategoryResponse,
    ExpenseCategoryUpdate,
    ExpenseCreate,
    ExpenseResponse,
    ExpenseUpdate,
)
from bizledger.services.csv_transfer import csv_download, fetch_all, rows_to_csv
from bizledger.services.expense_service import ExpenseService


categories_router = APIRouter(prefix="/expense-categories", tags=["expenses"])
router = APIRouter(prefix="/expenses", tags=["expenses"])

EXPENSE_CSV_COLUMNS = (
    "id",
    "expense_date",
    "amount",
    "category_id",
    "vendor_id",
    "description",
    "payment_method",
    "reference",
)


# ============================================================================
# Categories
# ============================================================================


@categories_router.get("", response_model=List[ExpenseCategoryResponse])
async def list_categories(
    member: Member = Depends(require_permission("expense_categories", "view")),
    db: AsyncSession = Depends(get_db),
) -> List[ExpenseCategoryResponse]:
    categories = await ExpenseService(db).category_dao.list_for_org(member.org_id)
    return [ExpenseCategoryResponse.model_validate(c) for c in categories]


@categories_router.post(
    "", response_model=ExpenseCategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(
    data: ExpenseCategoryCreate,
    member: Member = Depends(require_permission("expense_categories", "create")),
    db: AsyncSession = Depends(get_db),
) -> ExpenseCategoryResponse:
    category = await ExpenseService(db).create_category(data, member)
    return ExpenseCategoryResponse.model_validate(category)


@categories_router.get("/{category_id}", response_model=ExpenseCategoryResponse)
async def get_category(
    category_id: int,
    member: Member = Depends(require_permission("expense_categories", "view")),
    db: AsyncSession = Depends(get_db),
) -> ExpenseCategoryResponse:
    category = await ExpenseService(db).get_category(category_id, member.org_id)
    return ExpenseCategoryResponse.model_validate(category)


@categories_router.put("/{category_id}", response_model=ExpenseCategoryResponse)
async def update_category(
    category_id: int,
    data: ExpenseCategoryUpdate,
    member: Member = Depends(require_permission("expense_categories", "edit")),
    db: AsyncSession = Depends(get_db),
) -> ExpenseCategoryResponse:
    category = await ExpenseService(db).update_category(category_id, data, member)
    return ExpenseCategoryResponse.model_validate(category)


@categories_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    member: Member = Depends(require_permission("expense_categories", "delete")),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete an unused category.

    Raises:
        ReferentialIntegrityError (409): expenses still use it; details carry reference_count
    """
    await ExpenseService(db).delete_category(category_id, member)


# ============================================================================
# Expenses
# ============================================================================


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    category_id: Optional[int] = Query(default=None),
    vendor_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    member: Member = Depends(require_permission("expenses", "view")),
    db: AsyncSession = Depends(get_db),
) -> List[ExpenseResponse]:
    expenses = await ExpenseService(db).expense_dao.list_for_org(
        member.org_id,
        category_id=category_id,
        vendor_id=vendor_id,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=limit,
    )
    return [ExpenseResponse.model_validate(e) for e in expenses]


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: ExpenseCreate,
    member: Member = Depends(require_permission("expenses", "create")),
    db: AsyncSession = Depends(get_db),
) -> ExpenseResponse:
    expense = await ExpenseService(db).create_expense(data, member)
    return ExpenseResponse.model_validate(expense)


@router.get("/export", response_class=Response, summary="Download expenses as CSV")
async def export_expenses(
    category_id: Optional[int] = Query(default=None),
    vendor_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    member: Member = Depends(require_permission("expenses", "export")),
    db: AsyncSession = Depends(get_db),
) -> Response:
    dao = ExpenseService(db).expense_dao
    expenses = await fetch_all(
        lambda skip, limit: dao.list_for_org(
            member.org_id,
            category_id=category_id,
            vendor_id=vendor_id,
            date_from=date_from,
            date_to=date_to,
            skip=skip,
            limit=limit,
        )
    )
    text = rows_to_csv(
        EXPENSE_CSV_COLUMNS,
        ([getattr(e, column) for column in EXPENSE_CSV_COLUMNS] for e in expenses),
    )
    return csv_download(text, "expenses.csv")


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int,
    member: Member = Depends(require_permission("expenses", "view")),
    db: AsyncSession = Depends(get_db),
) -> ExpenseResponse:
    expense = await ExpenseService(db).get_expense(expense_id, member.org_id)
    return ExpenseResponse.model_validate(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    member: Member = Depends(require_permission("expenses", "edit")),
    db: AsyncSession = Depends(get_db),
) -> ExpenseResponse:
    expense = await ExpenseService(db).update_expense(expense_id, data, member)
    return ExpenseResponse.model_validate(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int,
    member: Member = Depends(require_permission("expenses", "delete")),
    db: AsyncSession = Depends(get_db),
) -> None:
    await ExpenseService(db).delete_expense(expense_id, member)
