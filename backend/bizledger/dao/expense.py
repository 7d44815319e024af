"""Expense and expense category DAOs."""

from datetime import date
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.base import BaseDAO
from bizledger.models.expense import Expense, ExpenseCategory


class ExpenseCategoryDAO(BaseDAO[ExpenseCategory]):
    """Data Access Object for ExpenseCategory model."""

    def __init__(self, session: AsyncSession):
        super().__init__(ExpenseCategory, session)

    async def list_for_org(self, org_id: int) -> List[ExpenseCategory]:
        result = await self.session.execute(
            select(ExpenseCategory)
            .where(ExpenseCategory.org_id == org_id)
            .order_by(ExpenseCategory.name)
        )
        return list(result.scalars().all())

    async def get_by_name(self, org_id: int, name: str) -> Optional[ExpenseCategory]:
        result = await self.session.execute(
            select(ExpenseCategory).where(
                ExpenseCategory.org_id == org_id,
                func.lower(ExpenseCategory.name) == name.strip().lower(),
            )
        )
        return result.scalar_one_or_none()

    async def count_expenses(self, category_id: int, org_id: int) -> int:
        """Number of expenses still referencing the category."""
        result = await self.session.execute(
            select(func.count(Expense.id)).where(
                Expense.category_id == category_id,
                Expense.org_id == org_id,
            )
        )
        return int(result.scalar_one())


class ExpenseDAO(BaseDAO[Expense]):
    """Data Access Object for Expense model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Expense, session)

    async def list_for_org(
        self,
        org_id: int,
        category_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Expense]:
        """
        List expenses, newest first, with optional filters.

        Args:
            org_id: Organization ID
            category_id: Only this category
            vendor_id: Only this vendor
            date_from: expense_date >= date_from
            date_to: expense_date <= date_to
        """
        query = select(Expense).where(Expense.org_id == org_id)
        if category_id is not None:
            query = query.where(Expense.category_id == category_id)
        if vendor_id is not None:
            query = query.where(Expense.vendor_id == vendor_id)
        if date_from is not None:
            query = query.where(Expense.expense_date >= date_from)
        if date_to is not None:
            query = query.where(Expense.expense_date <= date_to)
        query = query.order_by(Expense.expense_date.desc(), Expense.id.desc())

        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())
