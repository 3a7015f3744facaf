# accounts/authz.py
"""
Authorization utilities for the ledger.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require: Check permissions and raise if not granted

Permissions are plain Django model permissions ("accounting.post_entry").
Superusers implicitly hold every permission. Authentication itself is handled
by DRF (JWT or session); the ledger only consumes the resolved user.

The actor is passed EXPLICITLY to every command. Nothing in the ledger reads
the caller identity from ambient/global state.
"""

from dataclasses import dataclass
from typing import FrozenSet
from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    This is passed to commands and policies to provide context
    about who is performing an action.

    Attributes:
        user: The authenticated user
        perms: Set of permission codes the user has ("app_label.codename")
    """
    user: object  # User model
    perms: FrozenSet[str]

    def has(self, code: str) -> bool:
        """
        Check if actor has a specific permission.

        Order of checks:
        1. inactive users: deny
        2. superuser: implicit allow
        3. everyone else: only codes in perms
        """
        if not getattr(self.user, "is_active", False):
            return False
        if getattr(self.user, "is_superuser", False):
            return True
        if code in self.perms:
            return True
        # Fallback to a fresh lookup in case permissions changed after context creation.
        return self.user.has_perm(code)

    @property
    def is_authenticated(self) -> bool:
        """Mirror Django's user.is_authenticated for compatibility."""
        return bool(getattr(self.user, "is_authenticated", False))

    @property
    def identity(self) -> str:
        """Stable label recorded as closed_by / created_by."""
        return self.user.get_username()


def actor_for_user(user) -> ActorContext:
    """Build an ActorContext for a user outside of a request (scripts, collaborators)."""
    return ActorContext(
        user=user,
        perms=frozenset(user.get_all_permissions()),
    )


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Permissions are loaded FRESH on every request so that permission
    changes take effect immediately.

    Raises:
        NotAuthenticated: If user is not authenticated
        PermissionDenied: If the user account is disabled
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    if not user.is_active:
        raise PermissionDenied("User account is disabled.")

    return actor_for_user(user)


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Raises PermissionDenied if the permission is not granted.

    Example:
        require(actor, "accounting.post_entry")
        # If we get here, permission is granted
    """
    if not actor.has(code):
        raise PermissionDenied(f"Permission denied: {code}")


def require_any(actor: ActorContext, *codes: str) -> None:
    """
    Require that the actor has AT LEAST ONE of the specified permissions.

    Raises:
        PermissionDenied: If none of the permissions are granted
    """
    for code in codes:
        if actor.has(code):
            return

    raise PermissionDenied(f"Permission denied: requires one of {', '.join(codes)}")


def check_permission(actor: ActorContext, code: str) -> bool:
    """Check if actor has a permission without raising."""
    return actor.has(code)
