"""
Role capability table.

WHAT: ``can_perform(role, resource, action)``, a pure lookup against the
static PERMISSION_MATRIX.

WHY: Every permission decision in the API goes through this one function
(via core.deps.require_permission), so the matrix below is the complete
statement of who may do what.

Rules:
- unknown role, resource or action: denied
- owner: allowed everything
- an explicit entry for the action decides on its own
- create/edit/delete without an entry: allowed when the role holds ``manage``
"""

from typing import Dict, FrozenSet, Union

from bizledger.models.member import OrgRole

ACTIONS = frozenset({"view", "manage", "create", "edit", "delete", "bulk", "import", "export"})

# Actions implied by holding "manage" on a resource
MANAGE_IMPLIES = frozenset({"create", "edit", "delete"})

O, M, A, S, D, E = (
    OrgRole.OWNER,
    OrgRole.MANAGER,
    OrgRole.ACCOUNTS,
    OrgRole.SALES_STAFF,
    OrgRole.DESIGNER,
    OrgRole.EMPLOYEE,
)


def _roles(*roles: OrgRole) -> FrozenSet[OrgRole]:
    return frozenset(roles)


PERMISSION_MATRIX: Dict[str, Dict[str, FrozenSet[OrgRole]]] = {
    "dashboard": {
        "view": _roles(O, M, A, S, D, E),
    },
    "customers": {
        "view": _roles(O, M, A, S, E),
        "manage": _roles(O, M, S),
        "create": _roles(O, M, S),
        "edit": _roles(O, M, S),
        "delete": _roles(O, M),
        "bulk": _roles(O, M),
        "import": _roles(O, M),
        "export": _roles(O, M),
    },
    "invoices": {
        "view": _roles(O, M, A, S, E),
        "manage": _roles(O, M, A, S),
        "create": _roles(O, M, A, S),
        "edit": _roles(O, M, A, S),
        "delete": _roles(O, M),
        "bulk": _roles(O, M),
        "import": _roles(O, M),
        "export": _roles(O, M),
    },
    "payments": {
        "view": _roles(O, M, A, S),
        "manage": _roles(O, M, A),
        "create": _roles(O, M, A),
        "edit": _roles(O, M, A),
        "delete": _roles(O, M),
        "export": _roles(O, M),
    },
    "quotations": {
        "view": _roles(O, M, S, D),
        "manage": _roles(O, M, S),
        "create": _roles(O, M, S),
        "edit": _roles(O, M, S),
        "delete": _roles(O, M),
        "bulk": _roles(O, M),
        "import": _roles(O, M),
        "export": _roles(O, M),
    },
    "expenses": {
        "view": _roles(O, M, A),
        "manage": _roles(O, M, A),
        "create": _roles(O, M, A),
        "edit": _roles(O, M),
        "delete": _roles(O),
        "bulk": _roles(O, M),
        "import": _roles(O, M),
        "export": _roles(O, M),
    },
    "expense_categories": {
        "view": _roles(O, M, A),
        "manage": _roles(O, M),
        "create": _roles(O, M),
        "edit": _roles(O, M),
        "delete": _roles(O, M),
    },
    "vendors": {
        "view": _roles(O, M, A),
        "manage": _roles(O, M, A),
        "create": _roles(O, M, A),
        "edit": _roles(O, M),
        "delete": _roles(O),
        "bulk": _roles(O, M),
        "import": _roles(O, M),
        "export": _roles(O, M),
    },
    "reports": {
        "view": _roles(O, M),
        "export": _roles(O, M),
    },
    "settings": {
        "view": _roles(O, M),
        "manage": _roles(O),
        "edit": _roles(O),
    },
    "team_members": {
        "view": _roles(O, M),
        "manage": _roles(O),
        "create": _roles(O),
        "edit": _roles(O),
        "delete": _roles(O),
    },
}


def can_perform(role: Union[OrgRole, str, None], resource: str, action: str) -> bool:
    """
    Return True if ``role`` may perform ``action`` on ``resource``.

    Args:
        role: Member role (enum or its string value)
        resource: Resource name, e.g. "invoices"
        action: One of ACTIONS

    Returns:
        True if allowed
    """
    try:
        role = OrgRole(role)
    except ValueError:
        return False
    if resource not in PERMISSION_MATRIX or action not in ACTIONS:
        return False

    if role == OrgRole.OWNER:
        return True

    grants = PERMISSION_MATRIX[resource]
    if action in grants:
        return role in grants[action]
    return action in MANAGE_IMPLIES and role in grants.get("manage", frozenset())
