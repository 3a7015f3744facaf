# accounts/permissions.py
from __future__ import annotations

from django.db import transaction
from django.contrib.auth.models import Group, Permission

from accounts.permission_defaults import ROLE_DEFAULTS


def _resolve_permissions(codes) -> list[Permission]:
    perms = []
    for code in sorted(codes):
        app_label, codename = code.split(".", 1)
        perm = Permission.objects.filter(
            content_type__app_label=app_label,
            codename=codename,
        ).first()
        if perm is None:
            raise ValueError(f"Unknown permission code: {code}")
        perms.append(perm)
    return perms


@transaction.atomic
def seed_role_groups(overwrite: bool = False) -> dict[str, int]:
    """
    Create one Django group per role in ROLE_DEFAULTS with its permissions.

    Args:
        overwrite: If True, remove permissions that are no longer defaults.

    Returns:
        Mapping of role name -> number of permissions on the group.
    """
    counts = {}
    for role, codes in ROLE_DEFAULTS.items():
        group, _ = Group.objects.get_or_create(name=role)
        perms = _resolve_permissions(codes)
        if overwrite:
            group.permissions.set(perms)
        else:
            group.permissions.add(*perms)
        counts[role] = group.permissions.count()
    return counts


@transaction.atomic
def grant_role_defaults(user, role: str) -> Group:
    """Add a user to the group for `role`, seeding the groups if needed."""
    if role not in ROLE_DEFAULTS:
        raise ValueError(f"Unknown role: {role}")
    group = Group.objects.filter(name=role).first()
    if group is None:
        seed_role_groups()
        group = Group.objects.get(name=role)
    user.groups.add(group)
    return group
