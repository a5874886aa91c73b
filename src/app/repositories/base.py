"""Base repository with common CRUD operations.

Provides generic database operations that can be inherited by model-specific
repositories. Uses SQLAlchemy 2.0's async API with proper type hints.

Supports both Pydantic models and dictionaries for create/update operations.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import Base

# Generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations.

    Repositories do NOT manage transactions - the caller is responsible for
    commit/rollback.

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Example:
        >>> class BankAccountRepository(BaseRepository[BankAccount]):
        ...     pass
        >>>
        >>> repo = BankAccountRepository(BankAccount, db)
        >>> account = await repo.get(account_id)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """Initialize repository.

        Args:
            model: The SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def get(self, id: Any) -> ModelType | None:
        """Get a single record by primary key.

        Args:
            id: Primary key value

        Returns:
            Model instance if found, None otherwise
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    async def create(self, *, obj_in: BaseModel | dict[str, Any]) -> ModelType:
        """Create a new record.

        Args:
            obj_in: Pydantic model or dictionary of field names and values

        Returns:
            Created model instance (flushed, not yet committed)
        """
        if isinstance(obj_in, BaseModel):
            create_data = obj_in.model_dump(exclude_unset=True)
        else:
            create_data = obj_in

        db_obj = self.model(**create_data)
        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        *,
        db_obj: ModelType,
        obj_in: BaseModel | dict[str, Any],
    ) -> ModelType:
        """Update an existing record.

        Args:
            db_obj: Existing model instance to update
            obj_in: Pydantic model or dictionary of fields to update (can be partial)

        Returns:
            Updated model instance (flushed, not yet committed)
        """
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(exclude_unset=True)
        else:
            update_data = obj_in

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def delete(self, *, db_obj: ModelType) -> None:
        """Delete a record.

        Args:
            db_obj: Model instance to delete (caller must commit)
        """
        await self.db.delete(db_obj)
        await self.db.flush()

    def dialect_insert(self) -> Insert:
        """Build an INSERT for this model that supports ``on_conflict_do_update``.

        PostgreSQL in production and SQLite in tests both provide native
        upsert; the statement is built for whichever dialect the session
        is bound to.
        """
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite_insert(self.model)
        return pg_insert(self.model)
