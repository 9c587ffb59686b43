"""Caller identity for API requests.

Authentication happens upstream; the gateway in front of this service
forwards the authenticated user id and role as headers.
"""

from dataclasses import dataclass

from fastapi import Header, HTTPException

from ordering.access import Role, is_admin, is_staff


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = Role.CUSTOMER.value

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)


def current_caller(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> Caller:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return Caller(user_id=x_user_id, role=(x_user_role or Role.CUSTOMER.value).lower())


def admin_caller(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=Role.CUSTOMER.value),
) -> Caller:
    caller = current_caller(x_user_id, x_user_role)
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return caller
