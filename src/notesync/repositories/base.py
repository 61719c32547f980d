"""
Base Repository

Generic repository pattern implementation for async SQLAlchemy CRUD operations.
Provides type-safe database access with consistent session handling.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from notesync.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing common write operations.

    All methods expect an externally managed session. Pass ``commit=False``
    to batch several writes into the caller's transaction.

    Usage:
        class NoteRepository(BaseRepository[Note]):
            def __init__(self):
                super().__init__(Note)
    """

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def create(
        self,
        session: AsyncSession,
        obj_in: Any,
        *,
        commit: bool = True,
    ) -> ModelType:
        """
        Create a new record.

        Args:
            session: Active database session.
            obj_in: Pydantic schema or dict with entity data.
            commit: Commit immediately, or only flush.

        Returns:
            The created entity.
        """
        data = obj_in.model_dump() if hasattr(obj_in, "model_dump") else obj_in
        db_obj = self.model(**data)
        session.add(db_obj)
        await self._persist(session, db_obj, commit)
        return db_obj

    async def update(
        self,
        session: AsyncSession,
        db_obj: ModelType,
        obj_in: Any,
        *,
        commit: bool = True,
    ) -> ModelType:
        """
        Update a record with partial data.

        Args:
            session: Active database session.
            db_obj: Existing entity to update.
            obj_in: Pydantic schema or dict (only provided fields are updated).
            commit: Commit immediately, or only flush.
        """
        update_data = (
            obj_in.model_dump(exclude_unset=True)  # Partial update support
            if hasattr(obj_in, "model_dump")
            else obj_in
        )
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        await self._persist(session, db_obj, commit)
        return db_obj

    async def _persist(
        self, session: AsyncSession, db_obj: ModelType, commit: bool
    ) -> None:
        if commit:
            await session.commit()
            await session.refresh(db_obj)
        else:
            await session.flush()
