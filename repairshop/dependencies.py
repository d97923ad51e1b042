"""FastAPI dependency providers for the DB session, auth and capability checks."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db.engine import get_db
from repairshop.errors import Unauthenticated
from repairshop.services.auth import AuthContext, get_optional_user
from repairshop.services.permissions import Capability, require_capability

__all__ = ["get_db", "current_user", "require_auth", "require_capability_dep"]


async def current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext | None:
    """The signed-in actor, or None. Workflows decide what None means."""
    return await get_optional_user(request, db)


async def require_auth(
    auth: AuthContext | None = Depends(current_user),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    if auth is None:
        raise Unauthenticated()
    return auth


def require_capability_dep(capability: Capability):
    """Factory: returns a dependency that enforces one capability."""
    async def _check(auth: AuthContext | None = Depends(current_user)) -> AuthContext:
        return require_capability(auth, capability)
    return _check
