"""Permissions atom - Role checks on an explicitly passed user

Callers pass the user in; nothing here reads ambient request state.
"""
from typing import Optional

from tools.backoffice.resolution.atoms.schemas import User

ROLE_DISPLAY_NAMES = {
    'admin': 'Administrator',
    'editor': 'Editor',
    'viewer': 'Viewer',
    'staff': 'Staff',
}


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == 'admin'


def can_resolve(user: Optional[User]) -> bool:
    """Only administrators may allocate pending amounts."""
    return is_admin(user)


def get_role_display_name(role: Optional[str]) -> str:
    if not role:
        return 'Unknown'
    return ROLE_DISPLAY_NAMES.get(role, role)
