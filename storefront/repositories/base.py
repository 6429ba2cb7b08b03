"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from storefront.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Relationships are never loaded implicitly; callers pass loader options.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID, options: Optional[List[Any]] = None) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Args:
            id: UUID of the record to retrieve
            options: Loader options such as ``selectinload(Model.relation)``

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = select(self.model).where(self.model.id == id)
            if options:
                query = query.options(*options).execution_options(populate_existing=True)

            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj:
                logger.debug(f"Retrieved {self.model.__name__} with id: {id}")
            else:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def get_by_field(self, field: str, value: Any, options: Optional[List[Any]] = None) -> Optional[ModelType]:
        """
        Get a record by a specific field value.

        Args:
            field: Field name to search by
            value: Value to search for
            options: Loader options

        Returns:
            Model instance if found, None otherwise
        """
        try:
            if not hasattr(self.model, field):
                raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")

            query = select(self.model).where(getattr(self.model, field) == value)
            if options:
                query = query.options(*options).execution_options(populate_existing=True)

            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj:
                logger.debug(f"Retrieved {self.model.__name__} by {field}: {value}")
            else:
                logger.debug(f"{self.model.__name__} with {field}={value} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by {field}={value}: {e}")
            raise

    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update a record by its ID.
        None values are ignored; use a dedicated statement to clear a column.

        Returns:
            Updated model instance if found, None otherwise
        """
        try:
            update_data = {k: v for k, v in obj_in.items() if v is not None}

            if not update_data:
                logger.warning(f"No valid data provided for updating {self.model.__name__} {id}")
                return await self.get_by_id(id)

            stmt = (
                update(self.model)
                .where(self.model.id == id)
                .values(**update_data)
                .execution_options(synchronize_session="fetch")
            )
            result = await self.db.execute(stmt)

            if result.rowcount == 0:
                logger.debug(f"{self.model.__name__} with id {id} not found for update")
                await self.db.rollback()
                return None

            await self.db.commit()

            updated_obj = await self.get_by_id(id)
            if updated_obj is not None:
                await self.db.refresh(updated_obj)
            logger.debug(f"Updated {self.model.__name__} with id: {id}")
            return updated_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {id}: {e}")
            raise

    async def count(self) -> int:
        """Count all records."""
        try:
            result = await self.db.execute(select(func.count(self.model.id)))
            count = result.scalar()
            logger.debug(f"Counted {count} {self.model.__name__} records")
            return count
        except Exception as e:
            logger.error(f"Failed to count {self.model.__name__} records: {e}")
            raise
