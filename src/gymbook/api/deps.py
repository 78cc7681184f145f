"""Request identity forwarded by the authenticating gateway.

The service trusts ``X-User-Id`` / ``X-User-Role`` completely; it performs no
authentication of its own.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from gymbook.models.user import UserRole


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.STAFF)


def get_identity(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default=UserRole.MEMBER.value),
) -> Identity:
    if x_user_id is None or not x_user_id.isdigit():
        raise HTTPException(status_code=401, detail="Missing or invalid user identity")
    try:
        role = UserRole(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'") from None
    return Identity(user_id=int(x_user_id), role=role)


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(
            status_code=403, detail={"code": "forbidden", "message": "Admin role required"}
        )
    return identity


def require_staff(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_staff:
        raise HTTPException(
            status_code=403, detail={"code": "forbidden", "message": "Staff role required"}
        )
    return identity
