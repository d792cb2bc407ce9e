from datetime import datetime, timezone
from typing import Any, Generic, TypeVar, Type, Optional
from sqlmodel import SQLModel, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import structlog

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseDAO(Generic[ModelType]):
    """Single-table persistence with commit/rollback per call.

    Every write commits immediately; a failed write rolls the session back
    and re-raises so the service layer can compensate.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    @property
    def name(self) -> str:
        return self.model.__name__

    async def create(self, db: AsyncSession, *, obj_in: dict) -> ModelType:
        try:
            db_obj = self.model(**obj_in)
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            logger.info(f"Created {self.name}", id=str(db_obj.id))
            return db_obj
        except Exception as e:
            await db.rollback()
            logger.error(f"Error creating {self.name}", error=str(e))
            raise

    async def get_by_id(self, db: AsyncSession, id: UUID) -> Optional[ModelType]:
        try:
            result = await db.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Error getting {self.name} by id", id=str(id), error=str(e))
            raise

    async def find_one(self, db: AsyncSession, **filters: Any) -> Optional[ModelType]:
        """First row whose columns equal ``filters``, or None."""
        statement = select(self.model)
        for column, value in filters.items():
            statement = statement.where(getattr(self.model, column) == value)
        try:
            result = await db.execute(statement.limit(1))
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Error finding {self.name}", filters=sorted(filters), error=str(e))
            raise

    async def update(
        self, db: AsyncSession, *, db_obj: ModelType, obj_in: dict
    ) -> ModelType:
        """Apply ``obj_in`` to ``db_obj`` and commit.

        Every key present is written, so a ``None`` value clears the column.
        Callers leave out the fields they want to keep. Keys that are not
        columns of the model raise ``ValueError`` before anything is written.
        Models with an ``updated_at`` column get it stamped.
        """
        unknown = sorted(field for field in obj_in if field not in self.model.model_fields)
        if unknown:
            raise ValueError(f"{self.name} has no field(s): {', '.join(unknown)}")

        try:
            for field, value in obj_in.items():
                setattr(db_obj, field, value)
            if "updated_at" in self.model.model_fields:
                db_obj.updated_at = datetime.now(timezone.utc)

            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            logger.info(f"Updated {self.name}", id=str(db_obj.id), fields=sorted(obj_in))
            return db_obj
        except Exception as e:
            await db.rollback()
            logger.error(f"Error updating {self.name}", error=str(e))
            raise

    async def delete(self, db: AsyncSession, *, id: UUID) -> Optional[ModelType]:
        try:
            obj = await self.get_by_id(db, id)
            if obj:
                await db.delete(obj)
                await db.commit()
                logger.info(f"Deleted {self.name}", id=str(id))
            return obj
        except Exception as e:
            await db.rollback()
            logger.error(f"Error deleting {self.name}", id=str(id), error=str(e))
            raise
