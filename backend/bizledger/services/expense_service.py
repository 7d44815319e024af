"""
Expense Service.

WHAT: Expense categories and expenses.

WHY: A category may only be deleted once no expense references it. The
check runs here, before the delete, so the caller gets a REFERENTIAL_BLOCK
error naming how many expenses still use it instead of a storage error.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.exceptions import (
    ExpenseCategoryNotFoundError,
    ExpenseNotFoundError,
    ReferentialIntegrityError,
    ValidationError,
    VendorNotFoundError,
)
from bizledger.dao.expense import ExpenseCategoryDAO, ExpenseDAO
from bizledger.dao.vendor import VendorDAO
from bizledger.models.expense import Expense, ExpenseCategory
from bizledger.models.member import Member
from bizledger.schemas.expense import (
    ExpenseCategoryCreate,
    ExpenseCategoryUpdate,
    ExpenseCreate,
    ExpenseUpdate,
)
from bizledger.services.audit import AuditService
from bizledger.services.ledger import to_money

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for expense categories and expenses."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.category_dao = ExpenseCategoryDAO(session)
        self.expense_dao = ExpenseDAO(session)
        self.vendor_dao = VendorDAO(session)
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_category(self, category_id: int, org_id: int) -> ExpenseCategory:
        category = await self.category_dao.get_by_id_and_org(category_id, org_id)
        if category is None:
            raise ExpenseCategoryNotFoundError(
                message=f"Expense category with id {category_id} not found",
                resource_id=category_id,
            )
        return category

    async def _ensure_unique_name(
        self, org_id: int, name: str, exclude_id: Optional[int] = None
    ) -> None:
        existing = await self.category_dao.get_by_name(org_id, name)
        if existing is not None and existing.id != exclude_id:
            raise ValidationError(
                message=f"An expense category named '{name}' already exists",
                name=name,
            )

    async def create_category(self, data: ExpenseCategoryCreate, actor: Member) -> ExpenseCategory:
        await self._ensure_unique_name(actor.org_id, data.name)
        category = await self.category_dao.create(
            org_id=actor.org_id, name=data.name, description=data.description
        )
        await self.audit.log_create(
            resource_type="expense_category",
            resource_id=category.id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"name": category.name},
        )
        return category

    async def update_category(
        self, category_id: int, data: ExpenseCategoryUpdate, actor: Member
    ) -> ExpenseCategory:
        category = await self.get_category(category_id, actor.org_id)
        fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k != "name" or v}
        if "name" in fields:
            await self._ensure_unique_name(actor.org_id, fields["name"], exclude_id=category.id)

        changes = {
            field: {"before": getattr(category, field), "after": value}
            for field, value in fields.items()
            if getattr(category, field) != value
        }
        category = await self.category_dao.update_instance(category, **fields)
        if changes:
            await self.audit.log_update(
                resource_type="expense_category",
                resource_id=category.id,
                actor_member_id=actor.id,
                org_id=actor.org_id,
                changes=changes,
            )
        return category

    async def delete_category(self, category_id: int, actor: Member) -> None:
        """
        Delete a category that no expense references.

        Raises:
            ReferentialIntegrityError: N > 0 expenses use the category (nothing deleted)
        """
        category = await self.get_category(category_id, actor.org_id)
        in_use = await self.category_dao.count_expenses(category.id, actor.org_id)
        if in_use:
            raise ReferentialIntegrityError(
                message=f"Cannot delete: This category is used by {in_use} expense(s)",
                resource_type="expense_category",
                resource_id=category.id,
                reference_count=in_use,
            )

        name = category.name
        await self.category_dao.delete_instance(category)
        await self.audit.log_delete(
            resource_type="expense_category",
            resource_id=category_id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"name": name},
        )

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def get_expense(self, expense_id: int, org_id: int) -> Expense:
        expense = await self.expense_dao.get_by_id_and_org(expense_id, org_id)
        if expense is None:
            raise ExpenseNotFoundError(
                message=f"Expense with id {expense_id} not found",
                resource_id=expense_id,
            )
        return expense

    async def _ensure_vendor(self, vendor_id: Optional[int], org_id: int) -> None:
        if vendor_id is None:
            return
        if not await self.vendor_dao.get_by_id_and_org(vendor_id, org_id):
            raise VendorNotFoundError(
                message=f"Vendor with id {vendor_id} not found",
                resource_id=vendor_id,
            )

    async def create_expense(self, data: ExpenseCreate, actor: Member) -> Expense:
        await self.get_category(data.category_id, actor.org_id)
        await self._ensure_vendor(data.vendor_id, actor.org_id)

        expense = await self.expense_dao.create(
            org_id=actor.org_id,
            category_id=data.category_id,
            vendor_id=data.vendor_id,
            amount=to_money(data.amount),
            expense_date=data.expense_date or date.today(),
            description=data.description,
            payment_method=data.payment_method,
            reference=data.reference,
            created_by=actor.id,
        )
        await self.audit.log_create(
            resource_type="expense",
            resource_id=expense.id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"amount": str(expense.amount), "category_id": expense.category_id},
        )
        return expense

    async def update_expense(self, expense_id: int, data: ExpenseUpdate, actor: Member) -> Expense:
        expense = await self.get_expense(expense_id, actor.org_id)
        fields = data.model_dump(exclude_unset=True)
        for required in ("category_id", "amount", "expense_date"):
            if required in fields and fields[required] is None:
                fields.pop(required)

        if "category_id" in fields:
            await self.get_category(fields["category_id"], actor.org_id)
        if "vendor_id" in fields:
            await self._ensure_vendor(fields["vendor_id"], actor.org_id)
        if "amount" in fields:
            fields["amount"] = to_money(fields["amount"])

        changes = {
            field: {"before": str(getattr(expense, field)), "after": str(value)}
            for field, value in fields.items()
            if getattr(expense, field) != value
        }
        expense = await self.expense_dao.update_instance(expense, **fields)
        if changes:
            await self.audit.log_update(
                resource_type="expense",
                resource_id=expense.id,
                actor_member_id=actor.id,
                org_id=actor.org_id,
                changes=changes,
            )
        return expense

    async def delete_expense(self, expense_id: int, actor: Member) -> None:
        expense = await self.get_expense(expense_id, actor.org_id)
        amount = str(expense.amount)
        await self.expense_dao.delete_instance(expense)
        await self.audit.log_delete(
            resource_type="expense",
            resource_id=expense_id,
            actor_member_id=actor.id,
            org_id=actor.org_id,
            extra_data={"amount": amount},
        )
