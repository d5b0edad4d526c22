"""
API Dependencies

FastAPI dependencies for injection into route handlers.

Dependencies:
=============
- Database: get_db(), DbSession
- Authentication: get_current_user(), CurrentUser, OptionalUser
- Client: get_client_info(), ClientInfoDep
- Services: get_*_service() functions

Type Aliases:
=============
Type aliases provide cleaner route signatures:

    # Instead of this:
    async def handler(
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user)
    ):

    # Write this:
    async def handler(db: DbSession, user: CurrentUser):

Usage:
======
    from cliqstr.api.dependencies import CurrentUser

    @router.get("/children")
    async def list_children(current_user: CurrentUser, ...):
        ...
"""

from cliqstr.api.dependencies.database import (
    get_db,
    DbSession,
)
from cliqstr.api.dependencies.auth import (
    get_current_user,
    get_optional_user,
    CurrentUser,
    OptionalUser,
)
from cliqstr.api.dependencies.client import (
    ClientInfo,
    ClientInfoDep,
    get_client_info,
)

__all__ = [
    # Database
    "get_db",
    "DbSession",
    # Authentication
    "get_current_user",
    "get_optional_user",
    "CurrentUser",
    "OptionalUser",
    # Client
    "ClientInfo",
    "ClientInfoDep",
    "get_client_info",
]
