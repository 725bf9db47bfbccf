# prep_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Group/role names (Django auth Group names recommended)
ROLE_SUPERADMIN = "SUPERADMIN"
ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"

# Marker for actions that anonymous callers may use.
PUBLIC = "PUBLIC"

ADMIN_TIER = {ROLE_ADMIN, ROLE_SUPERADMIN}
ANY_USER = {ROLE_USER, ROLE_ADMIN, ROLE_SUPERADMIN}


def user_roles(user) -> Set[str]:
    """
    Resolve roles from:
    1) Django groups: user.groups (recommended)
    2) Optional user.role attribute (if the user model has it)

    Default behavior:
    - Superusers are SUPERADMIN.
    - An authenticated user with no roles/groups is a plain USER.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_SUPERADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    if hasattr(user, "role") and user.role:
        roles.add(str(user.role))

    if not roles:
        roles.add(ROLE_USER)

    return roles


def is_admin_tier(user) -> bool:
    return bool(user_roles(user) & ADMIN_TIER)


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    Key behavior:
    - Actions whose allowed set contains PUBLIC need no authentication.
    - Everything else requires an authenticated user whose roles intersect
      allowed_roles_per_action[action].
    - Unknown SAFE actions fall back to list/retrieve; anything else is denied.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action: dict[str, set[str]] = {
        "list": set(ANY_USER),
        "retrieve": set(ANY_USER),
        "create": set(ADMIN_TIER),
        "update": set(ADMIN_TIER),
        "partial_update": set(ADMIN_TIER),
        "destroy": set(ADMIN_TIER),
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def _allowed_for(self, request, view) -> set[str] | None:
        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            allowed = self.allowed_roles_per_action.get("retrieve" if is_detail else "list")
        return allowed

    def has_permission(self, request, view) -> bool:
        allowed = self._allowed_for(request, view)
        if allowed is None:
            # Unknown action => deny by default
            return False

        if PUBLIC in allowed:
            return True

        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        return bool(user_roles(user) & allowed)

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class CrisisEventPermission(BaseRolePermission):
    """Reads are public, writes are admin-tier, 'affecting me' needs a user."""
    allowed_roles_per_action = {
        "list": {PUBLIC},
        "retrieve": {PUBLIC},
        "previews": {PUBLIC},
        "inactive_previews": {PUBLIC},
        "changes": {PUBLIC},
        "search": {PUBLIC},
        "nearest": {PUBLIC},
        "affecting_me": set(ANY_USER),
        "affecting_me_previews": set(ANY_USER),
        "create": set(ADMIN_TIER),
        "update": set(ADMIN_TIER),
        "partial_update": set(ADMIN_TIER),
        "deactivate": set(ADMIN_TIER),
        "destroy": set(),
    }


class NotificationPermission(BaseRolePermission):
    """Each authenticated user manages their own notifications."""
    allowed_roles_per_action = {
        "list": set(ANY_USER),
        "retrieve": set(ANY_USER),
        "mark_read": set(ANY_USER),
        "create": set(),
        "update": set(),
        "partial_update": set(),
        "destroy": set(),
    }
