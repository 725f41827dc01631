"""Access policy: which role may perform which action on which resource."""
from __future__ import annotations

from typing import Literal

from food_portal.errors import PermissionDenied
from food_portal.models.user import User, UserRole

PolicyAction = Literal["view", "create", "edit", "approve", "distribute", "delete", "manage"]
Resource = Literal["dashboard", "beneficiaries", "schedules", "centers", "users"]

SYSTEM_RESOURCES: list[dict[str, str]] = [
    {"key": "dashboard", "name": "Dashboard"},
    {"key": "beneficiaries", "name": "Beneficiaries"},
    {"key": "schedules", "name": "Food Scheduling"},
    {"key": "centers", "name": "Distribution Centers"},
    {"key": "users", "name": "User Management"},
]

ROLE_PERMISSIONS: dict[UserRole, dict[str, frozenset[str]]] = {
    UserRole.STAFF: {
        "dashboard": frozenset({"view"}),
        # "create" additionally depends on User.can_create_beneficiaries
        "beneficiaries": frozenset({"view", "create"}),
        "schedules": frozenset({"view", "distribute"}),
        "centers": frozenset({"view"}),
        "users": frozenset(),
    },
    UserRole.ADMIN: {
        "dashboard": frozenset({"view"}),
        "beneficiaries": frozenset({"view", "create", "edit", "approve"}),
        "schedules": frozenset({"view", "create", "distribute"}),
        "centers": frozenset({"view", "create", "edit", "delete"}),
        "users": frozenset({"view", "create"}),
    },
    UserRole.SUPER_ADMIN: {
        "dashboard": frozenset({"view"}),
        "beneficiaries": frozenset({"view", "create", "edit", "approve"}),
        "schedules": frozenset({"view", "create", "distribute"}),
        "centers": frozenset({"view", "create", "edit", "delete"}),
        "users": frozenset({"view", "create", "edit", "delete", "manage"}),
    },
}

# Actions that can never target a super_admin principal
_PROTECTED_USER_ACTIONS = {"edit", "delete", "manage"}


def can(
    principal: User | None,
    action: PolicyAction,
    resource: Resource,
    target: User | None = None,
) -> bool:
    """Pure allow/deny decision for the principal acting on a resource.

    ``target`` is the user record being changed when ``resource`` is
    ``"users"``; super_admin targets are immutable for every caller.
    """
    if principal is None or not principal.is_active:
        return False
    allowed = ROLE_PERMISSIONS.get(principal.role, {}).get(resource, frozenset())
    if action not in allowed:
        return False
    if resource == "beneficiaries" and action == "create" and principal.role == UserRole.STAFF:
        return principal.can_create_beneficiaries
    if resource == "users" and target is not None and action in _PROTECTED_USER_ACTIONS:
        return target.role != UserRole.SUPER_ADMIN
    return True


def ensure(
    principal: User | None,
    action: PolicyAction,
    resource: Resource,
    target: User | None = None,
) -> None:
    if not can(principal, action, resource, target):
        role = principal.role.value if principal else None
        raise PermissionDenied(action=action, role=role)


def capabilities(principal: User | None) -> dict[str, list[str]]:
    """Allowed actions per resource, for clients deciding which controls to show."""
    result: dict[str, list[str]] = {}
    for resource in SYSTEM_RESOURCES:
        key = resource["key"]
        actions = ROLE_PERMISSIONS.get(principal.role, {}).get(key, frozenset()) if principal else frozenset()
        result[key] = sorted(a for a in actions if can(principal, a, key))
    return result
