"""
Database Module

Database connectivity and session management for Cliqstr.

Architecture Overview:
======================
┌─────────────────────────────────────────────────────────────────────────────┐
│                        DATABASE LAYER                                       │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   FastAPI Route ──▶ get_db() ──▶ Service ──▶ Repositories ──▶ Database      │
│                                                                             │
│   - One AsyncSession per request                                            │
│   - Commit on success, rollback on exception                                │
│   - Services share the request session, so a service call is atomic         │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘

Usage in FastAPI:
=================
    from cliqstr.api.dependencies import DbSession
    from cliqstr.shared.repositories import CliqRepository

    @router.get("/cliqs/{cliq_id}")
    async def get_cliq(cliq_id: UUID, db: DbSession):
        return await CliqRepository(db).get(cliq_id)
"""

from cliqstr.shared.db.session import (
    get_db,
    init_db,
    close_db,
    AsyncSessionLocal,
    engine,
)

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "AsyncSessionLocal",
    "engine",
]
