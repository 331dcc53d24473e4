"""
Caller identity for protected routes.

Bearer tokens are verified upstream (API gateway), not here. The gateway
forwards the verified identity in two headers:

- X-Authenticated-User: the username from the token
- X-Authenticated-Permissions: comma-separated permissions from the token

Mutating card routes require the editor permission from settings.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from tradebinder.config import settings


@dataclass(frozen=True, slots=True)
class Principal:
    """An already-authenticated caller."""

    username: str
    permissions: frozenset[str]

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


def _parse_permissions(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


async def get_principal(
    x_authenticated_user: Annotated[str | None, Header()] = None,
    x_authenticated_permissions: Annotated[str | None, Header()] = None,
) -> Principal | None:
    """Identity forwarded by the gateway, or None for anonymous requests."""
    if not x_authenticated_user or not x_authenticated_user.strip():
        return None
    return Principal(
        username=x_authenticated_user.strip(),
        permissions=_parse_permissions(x_authenticated_permissions),
    )


async def require_editor(
    principal: Annotated[Principal | None, Depends(get_principal)],
) -> Principal:
    """
    Dependency for routes that change the inventory.

    401 if no identity was forwarded, 403 if it lacks the editor permission.
    """
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not principal.has_permission(settings.editor_permission):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing {settings.editor_permission} permission",
        )
    return principal
