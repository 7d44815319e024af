"""
Tests for the role capability table.
"""

import pytest

from bizledger.models.member import OrgRole
from bizledger.services.permissions import ACTIONS, PERMISSION_MATRIX, can_perform


class TestCanPerform:
    @pytest.mark.parametrize("resource", sorted(PERMISSION_MATRIX))
    @pytest.mark.parametrize("action", sorted(ACTIONS))
    def test_owner_may_do_everything_known(self, resource, action):
        assert can_perform(OrgRole.OWNER, resource, action)

    def test_owner_denied_unknown_resource_or_action(self):
        assert not can_perform(OrgRole.OWNER, "payroll", "view")
        assert not can_perform(OrgRole.OWNER, "invoices", "approve")

    def test_unknown_role_denied(self):
        assert not can_perform("intern", "invoices", "view")
        assert not can_perform(None, "invoices", "view")

    def test_string_role_accepted(self):
        assert can_perform("accounts", "payments", "create")

    @pytest.mark.parametrize(
        "role,resource,action,expected",
        [
            (OrgRole.ACCOUNTS, "invoices", "view", True),
            (OrgRole.ACCOUNTS, "invoices", "delete", False),
            (OrgRole.ACCOUNTS, "payments", "create", True),
            (OrgRole.SALES_STAFF, "payments", "create", False),
            (OrgRole.SALES_STAFF, "quotations", "create", True),
            (OrgRole.DESIGNER, "quotations", "view", True),
            (OrgRole.DESIGNER, "quotations", "edit", False),
            (OrgRole.EMPLOYEE, "quotations", "view", False),
            (OrgRole.EMPLOYEE, "dashboard", "view", True),
            (OrgRole.MANAGER, "invoices", "bulk", True),
            (OrgRole.MANAGER, "team_members", "view", True),
            (OrgRole.MANAGER, "team_members", "edit", False),
            (OrgRole.MANAGER, "expenses", "delete", False),
            (OrgRole.ACCOUNTS, "vendors", "delete", False),
            (OrgRole.ACCOUNTS, "expense_categories", "create", False),
        ],
    )
    def test_matrix_entries(self, role, resource, action, expected):
        assert can_perform(role, resource, action) is expected

    def test_manage_implies_create_edit_delete(self, monkeypatch):
        monkeypatch.setitem(
            PERMISSION_MATRIX, "widgets", {"manage": frozenset({OrgRole.DESIGNER})}
        )
        for action in ("create", "edit", "delete"):
            assert can_perform(OrgRole.DESIGNER, "widgets", action)
        assert not can_perform(OrgRole.DESIGNER, "widgets", "view")
        assert not can_perform(OrgRole.DESIGNER, "widgets", "export")

    def test_explicit_entry_overrides_manage(self, monkeypatch):
        monkeypatch.setitem(
            PERMISSION_MATRIX,
            "widgets",
            {
                "manage": frozenset({OrgRole.DESIGNER}),
                "delete": frozenset({OrgRole.MANAGER}),
            },
        )
        assert can_perform(OrgRole.DESIGNER, "widgets", "edit")
        assert not can_perform(OrgRole.DESIGNER, "widgets", "delete")
        assert can_perform(OrgRole.MANAGER, "widgets", "delete")

    @pytest.mark.parametrize(
        "role,resource",
        [
            (OrgRole.ACCOUNTS, "invoices"),
            (OrgRole.SALES_STAFF, "invoices"),
            (OrgRole.SALES_STAFF, "customers"),
            (OrgRole.SALES_STAFF, "quotations"),
            (OrgRole.ACCOUNTS, "payments"),
            (OrgRole.MANAGER, "expenses"),
            (OrgRole.ACCOUNTS, "expenses"),
            (OrgRole.MANAGER, "vendors"),
            (OrgRole.ACCOUNTS, "vendors"),
        ],
    )
    def test_manage_holders_without_delete_entry_cannot_delete(self, role, resource):
        assert can_perform(role, resource, "manage")
        assert not can_perform(role, resource, "delete")
