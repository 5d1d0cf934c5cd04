"""
Admin capability

Admin-only operations take an ``AdminContext`` argument instead of
looking up the current session themselves. Holding one is the proof
that the caller was checked.
"""

from dataclasses import dataclass


class AdminAccessRequired(PermissionError):
    """Raised when a non-admin user asks for an admin-only operation."""


@dataclass(frozen=True)
class AdminContext:
    user_id: int
    username: str = ''

    @classmethod
    def from_user(cls, user) -> 'AdminContext':
        if user is None or not getattr(user, "is_authenticated", False):
            raise AdminAccessRequired("Unauthorized: Admin access required.")
        if not (getattr(user, "is_staff", False) or getattr(user, "is_superuser", False)):
            raise AdminAccessRequired("Unauthorized: Admin access required.")
        return cls(user_id=user.pk, username=user.get_username())
