"""
Generic repository shared by the lead and loyalty repositories.

Writes commit immediately unless a method says otherwise; callers that need
several rows in one transaction stage them and let a single commit land them.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional, List, Any
from datetime import datetime

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """CRUD for one table. Subclasses pass their model class."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _where(self, query, filters: Optional[dict]):
        """Equality filters on known columns; None values are ignored."""
        for field, value in (filters or {}).items():
            if value is not None and hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)
        return query

    async def _save(self, db_obj: ModelType) -> ModelType:
        self.session.add(db_obj)
        await self.session.commit()
        await self.session.refresh(db_obj)
        return db_obj

    async def create(self, obj_in: dict) -> ModelType:
        return await self._save(self.model(**obj_in))

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        return await self.session.get(self.model, id)

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        result = await self.session.exec(
            select(self.model).where(getattr(self.model, field) == value)
        )
        return result.first()

    async def list(
        self,
        filters: Optional[dict] = None,
        order_by: str = "created_at",
        order_desc: bool = True
    ) -> List[ModelType]:
        """All matching rows, newest first by default."""
        query = self._where(select(self.model), filters)
        column = getattr(self.model, order_by, None)
        if column is not None:
            query = query.order_by(column.desc() if order_desc else column)
        result = await self.session.exec(query)
        return result.all()

    async def update(self, id: uuid.UUID, obj_in: dict) -> Optional[ModelType]:
        """
        Apply the non-None values in `obj_in`. Clearing a field therefore
        needs a dedicated method.
        """
        db_obj = await self.get(id)
        if db_obj is None:
            return None

        for field, value in obj_in.items():
            if value is not None and hasattr(db_obj, field):
                setattr(db_obj, field, value)
        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = datetime.utcnow()

        return await self._save(db_obj)

    async def delete(self, id: uuid.UUID) -> bool:
        db_obj = await self.get(id)
        if db_obj is None:
            return False
        await self.session.delete(db_obj)
        await self.session.commit()
        return True

    async def count(self, filters: Optional[dict] = None) -> int:
        query = self._where(select(func.count()).select_from(self.model), filters)
        result = await self.session.exec(query)
        return result.one()
