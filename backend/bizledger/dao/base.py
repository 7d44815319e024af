"""
Generic DAO shared by every entity.

WHY: DAOs keep SQL out of the services and the API. Every entity DAO
inherits the org-scoped lookup below, so a record id from another
organization resolves to None exactly like a missing one.

HOW: Writes flush but never commit; the request (or the background job's
session_scope) owns the transaction.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Create, read, change and delete rows of one model.

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _where(self, query, **filters: Any):
        for column, value in filters.items():
            if hasattr(self.model, column):
                query = query.where(getattr(self.model, column) == value)
        return query

    async def create(self, **values: Any) -> ModelType:
        """
        Insert a row and load its generated columns (id, timestamps).

        Raises:
            IntegrityError: a unique or foreign-key constraint rejected the row
        """
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Primary-key lookup without tenant scoping (token resolution only)."""
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_by_id_and_org(self, id: int, org_id: int) -> Optional[ModelType]:
        """
        Primary-key lookup restricted to one organization.

        This is the lookup used for every client-supplied id.

        Raises:
            AttributeError: the model has no org_id column
        """
        if not hasattr(self.model, "org_id"):
            raise AttributeError(f"{self.model.__name__} has no org_id column")

        result = await self.session.execute(
            select(self.model).where(self.model.id == id, self.model.org_id == org_id)
        )
        return result.scalar_one_or_none()

    async def update_instance(self, instance: ModelType, **changes: Any) -> ModelType:
        """Apply field changes to a loaded instance and flush."""
        for column, value in changes.items():
            setattr(instance, column, value)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete_instance(self, instance: ModelType) -> None:
        """
        Delete a loaded instance.

        Goes through the ORM so relationship cascades (line items, payments)
        apply on SQLite too, where foreign-key actions are off by default.
        """
        await self.session.delete(instance)
        await self.session.flush()

    async def count(self, **filters: Any) -> int:
        """Count rows whose columns equal the given values."""
        query = self._where(select(func.count()).select_from(self.model), **filters)
        result = await self.session.execute(query)
        return int(result.scalar_one())
