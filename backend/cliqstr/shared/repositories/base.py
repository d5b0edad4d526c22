"""
Base Repository

Generic base repository with common CRUD operations.
All entity-specific repositories inherit from this class.

What This Provides:
===================
- get(id)        → Fetch single record by UUID
- get_one_by()   → Fetch single record by equality filters
- create()       → Create new record
- update()       → Update existing record (None values skipped)
- save()         → Flush changes made directly on an instance
- delete()       → Hard delete record
- soft_delete()  → Soft delete (set deleted_at)

Generic Type Pattern:
=====================
    class InviteRepository(BaseRepository[Invite]):
        ...

    repo = InviteRepository(db)
    invite = await repo.get(id)  # Returns Invite

flush() vs commit():
====================
Repositories only flush. get_db() commits once per request, so every
write a service performs lands in the same transaction and rolls back
together on error.
"""

from typing import Any, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.base import Base, utc_now


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameter:
        ModelType: The SQLAlchemy model class this repository manages

    Attributes:
        model: The SQLAlchemy model class
        session: The async database session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get(self, record_id: UUID) -> Optional[ModelType]:
        """
        Get a single record by its UUID.

        SQL Generated:
            SELECT * FROM invites WHERE id = '550e8400-...'
        """
        result = await self.session.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def get_one_by(self, **filters: Any) -> Optional[ModelType]:
        """
        Get the first record matching equality filters.

        Example:
            account = await repo.get_one_by(user_id=user.id)
        """
        query = select(self.model)
        for field, value in filters.items():
            query = query.where(getattr(self.model, field) == value)
        result = await self.session.execute(query.limit(1))
        return result.scalars().first()

    # ═══════════════════════════════════════════════════════════════════════════
    # CREATE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new record.

        Adds the instance, flushes the INSERT and refreshes it so the
        DB-generated values (created_at, column defaults) are loaded.
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    # ═══════════════════════════════════════════════════════════════════════════
    # UPDATE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def update(
        self,
        record_id: UUID,
        **kwargs: Any,
    ) -> Optional[ModelType]:
        """
        Update a record by ID.

        Only fields that are provided and not None are changed; use
        save() after setting attributes directly to clear a column.
        """
        instance = await self.get(record_id)
        if not instance:
            return None

        for field, value in kwargs.items():
            if hasattr(instance, field) and value is not None:
                setattr(instance, field, value)

        return await self.save(instance)

    async def save(self, instance: ModelType) -> ModelType:
        """Flush pending changes on an already-loaded instance."""
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    # ═══════════════════════════════════════════════════════════════════════════
    # DELETE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def delete(self, record_id: UUID) -> bool:
        """Hard delete a record by ID. Returns False if not found."""
        instance = await self.get(record_id)
        if not instance:
            return False

        await self.session.delete(instance)
        await self.session.flush()
        return True

    async def soft_delete(self, record_id: UUID) -> Optional[ModelType]:
        """
        Soft delete a record by setting deleted_at.

        Returns None if the record is missing or the model has no
        deleted_at column.
        """
        instance = await self.get(record_id)

        if not instance or not hasattr(instance, "deleted_at"):
            return None

        instance.deleted_at = utc_now()
        return await self.save(instance)
