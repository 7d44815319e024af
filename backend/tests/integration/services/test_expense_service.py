"""
Integration tests for ExpenseService.
"""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.core.exceptions import (
    ExpenseCategoryNotFoundError,
    ReferentialIntegrityError,
    ValidationError,
    VendorNotFoundError,
)
from bizledger.schemas.expense import (
    ExpenseCategoryCreate,
    ExpenseCategoryUpdate,
    ExpenseCreate,
    ExpenseUpdate,
)
from bizledger.services.expense_service import ExpenseService
from tests.factories import ExpenseCategoryFactory, VendorFactory


class TestCategories:
    @pytest.mark.asyncio
    async def test_delete_blocked_while_in_use(self, db_session, owner, test_org):
        category = await ExpenseCategoryFactory.create(db_session, test_org, name="Utilities")
        service = ExpenseService(db_session)
        first = await service.create_expense(
            ExpenseCreate(category_id=category.id, amount=Decimal("45.00")), owner
        )
        second = await service.create_expense(
            ExpenseCreate(category_id=category.id, amount=Decimal("12.50")), owner
        )

        with pytest.raises(ReferentialIntegrityError) as exc_info:
            await service.delete_category(category.id, owner)

        exc = exc_info.value
        assert exc.status_code == 409
        assert exc.message == "Cannot delete: This category is used by 2 expense(s)"
        assert exc.context["reference_count"] == 2
        assert await service.get_category(category.id, owner.org_id)

        await service.delete_expense(first.id, owner)
        await service.delete_expense(second.id, owner)
        await service.delete_category(category.id, owner)

        with pytest.raises(ExpenseCategoryNotFoundError):
            await service.get_category(category.id, owner.org_id)

    @pytest.mark.asyncio
    async def test_names_are_unique_per_organization(self, db_session, owner, other_owner):
        service = ExpenseService(db_session)
        await service.create_category(ExpenseCategoryCreate(name="Travel"), owner)

        with pytest.raises(ValidationError):
            await service.create_category(ExpenseCategoryCreate(name="Travel"), owner)

        elsewhere = await service.create_category(ExpenseCategoryCreate(name="Travel"), other_owner)
        assert elsewhere.org_id == other_owner.org_id

    @pytest.mark.asyncio
    async def test_rename(self, db_session, owner, test_org):
        category = await ExpenseCategoryFactory.create(db_session, test_org, name="Fuel")
        await ExpenseCategoryFactory.create(db_session, test_org, name="Rent")
        service = ExpenseService(db_session)

        renamed = await service.update_category(
            category.id, ExpenseCategoryUpdate(name="Vehicle"), owner
        )
        assert renamed.name == "Vehicle"

        with pytest.raises(ValidationError):
            await service.update_category(category.id, ExpenseCategoryUpdate(name="Rent"), owner)


class TestExpenses:
    @pytest.mark.asyncio
    async def test_create_with_vendor(self, db_session, accountant, test_org):
        category = await ExpenseCategoryFactory.create(db_session, test_org)
        vendor = await VendorFactory.create(db_session, test_org)

        expense = await ExpenseService(db_session).create_expense(
            ExpenseCreate(
                category_id=category.id,
                vendor_id=vendor.id,
                amount=Decimal("1200.00"),
                expense_date=date(2026, 1, 31),
                description="January rent",
            ),
            accountant,
        )

        assert expense.amount == Decimal("1200.00")
        assert expense.vendor_id == vendor.id
        assert expense.created_by == accountant.id

    @pytest.mark.asyncio
    async def test_vendor_of_another_organization_rejected(
        self, db_session, owner, test_org, other_org
    ):
        category = await ExpenseCategoryFactory.create(db_session, test_org)
        foreign_vendor = await VendorFactory.create(db_session, other_org)

        with pytest.raises(VendorNotFoundError):
            await ExpenseService(db_session).create_expense(
                ExpenseCreate(
                    category_id=category.id, vendor_id=foreign_vendor.id, amount=Decimal("5")
                ),
                owner,
            )

    @pytest.mark.asyncio
    async def test_update_amount_and_category(self, db_session, owner, test_org):
        rent = await ExpenseCategoryFactory.create(db_session, test_org, name="Rent")
        fuel = await ExpenseCategoryFactory.create(db_session, test_org, name="Fuel")
        service = ExpenseService(db_session)
        expense = await service.create_expense(
            ExpenseCreate(category_id=rent.id, amount=Decimal("10.00")), owner
        )

        expense = await service.update_expense(
            expense.id, ExpenseUpdate(category_id=fuel.id, amount=Decimal("12.75")), owner
        )

        assert expense.category_id == fuel.id
        assert expense.amount == Decimal("12.75")
