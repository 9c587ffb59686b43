"""Caller roles as supplied by the identity context.

The ordering context does not authenticate anyone; it receives a user id
and a role with every call and only decides what that role may do.
"""

from enum import Enum


class Role(Enum):
    CUSTOMER = "customer"
    STORE = "store"
    ADMIN = "admin"


STAFF_ROLES = {Role.STORE.value, Role.ADMIN.value}


def is_staff(role: str | None) -> bool:
    return (role or "").lower() in STAFF_ROLES


def is_admin(role: str | None) -> bool:
    return (role or "").lower() == Role.ADMIN.value
