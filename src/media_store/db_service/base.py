from __future__ import annotations

from collections.abc import Sequence
from typing import Any, ClassVar, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..common.events import EventDispatcher
from ..common.exceptions import ResourceNotFoundError
from . import database
from .database import with_retry
from .schemas import (
    Criteria,
    DeletionEvent,
    EntitySearchResult,
    EntityWrittenEvent,
    IdSearchResult,
    WriteContext,
    now_timestamp,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class SqlEntityRepository(Generic[SchemaT]):
    """SQLAlchemy implementation of the entity repository interface.

    CRITICAL: Each method manages its own session for multi-process safety,
    unless a shared session is injected (tests/transactions).
    Pattern: SessionLocal() -> try/commit -> finally/close

    All methods decorated with @with_retry(max_retries=10) to ride out
    SQLite database locks.
    """

    entity_name: ClassVar[str]
    model_class: type
    schema_class: type[SchemaT]
    # Loader options applied to every search (e.g. selectinload of children)
    load_options: ClassVar[tuple[Any, ...]] = ()

    def __init__(self, event_dispatcher: EventDispatcher | None = None, db: Session | None = None):
        """Initialize repository.

        Args:
            event_dispatcher: Sink for write events; events are only returned when None
            db: Optional shared session, left open after each call
        """
        self.event_dispatcher: EventDispatcher | None = event_dispatcher
        self.db: Session | None = db

    def _open(self) -> tuple[Session, bool]:
        if self.db is not None:
            return self.db, False
        if database.SessionLocal is None:
            database.init_db()
        return database.SessionLocal(), True

    def _build_filters(self, filters: dict[str, Any]) -> list[Any]:
        """Translate {field: value, field__op: value} into column expressions."""
        clauses: list[Any] = []
        for key, value in filters.items():
            if "__" in key:
                field_name, operator = key.rsplit("__", 1)
            else:
                field_name, operator = key, "eq"
            if not hasattr(self.model_class, field_name):
                raise ValueError(f"Unknown field '{field_name}' for {self.entity_name}")
            column = getattr(self.model_class, field_name)
            if operator == "eq":
                clauses.append(column == value)
            elif operator == "ne":
                clauses.append(column != value)
            elif operator == "gt":
                clauses.append(column > value)
            elif operator == "gte":
                clauses.append(column >= value)
            elif operator == "lt":
                clauses.append(column < value)
            elif operator == "lte":
                clauses.append(column <= value)
            elif operator == "in":
                clauses.append(column.in_(value))
            elif operator == "isnull":
                clauses.append(column.is_(None) if value else column.is_not(None))
            else:
                raise ValueError(f"Unsupported operator '{operator}' for {self.entity_name}")
        return clauses

    def _where(self, criteria: Criteria) -> list[Any]:
        clauses = self._build_filters(criteria.filters)
        if criteria.ids is not None:
            clauses.append(self.model_class.id.in_(criteria.ids))
        return clauses

    def _dispatch(self, event: Any) -> Any:
        if self.event_dispatcher is not None:
            self.event_dispatcher.dispatch(event)
        return event

    @with_retry(max_retries=10)
    def search(self, criteria: Criteria, context: WriteContext) -> EntitySearchResult[SchemaT]:
        """Load full records matching the criteria.

        Session: Creates and closes own session.
        """
        _ = context
        db, should_close = self._open()
        try:
            where = self._where(criteria)
            stmt = select(self.model_class).where(*where).options(*self.load_options)
            stmt = stmt.order_by(self.model_class.id.asc())
            if criteria.offset:
                stmt = stmt.offset(criteria.offset)
            if criteria.limit:
                stmt = stmt.limit(criteria.limit)
            results = db.execute(stmt).scalars().all()

            total = db.execute(
                select(func.count()).select_from(self.model_class).where(*where)
            ).scalar() or 0
            entities = [self._to_schema(r) for r in results]
            logger.debug(f"Search on {self.entity_name} matched {len(entities)}/{total}")
            return EntitySearchResult(entity=self.entity_name, entities=entities, total=total)
        finally:
            if should_close:
                db.close()

    @with_retry(max_retries=10)
    def search_ids(self, criteria: Criteria, context: WriteContext) -> IdSearchResult:
        """Return only the ids matching the criteria."""
        _ = context
        db, should_close = self._open()
        try:
            stmt = select(self.model_class.id).where(*self._where(criteria))
            stmt = stmt.order_by(self.model_class.id.asc())
            if criteria.offset:
                stmt = stmt.offset(criteria.offset)
            if criteria.limit:
                stmt = stmt.limit(criteria.limit)
            ids = list(db.execute(stmt).scalars().all())
            return IdSearchResult(entity=self.entity_name, ids=ids, total=len(ids))
        finally:
            if should_close:
                db.close()

    def get(self, id: str, context: WriteContext | None = None) -> SchemaT | None:
        """Get single record by ID."""
        result = self.search(Criteria(ids=[id]), context or WriteContext.system())
        return result.get(id)

    @with_retry(max_retries=10)
    def create(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        """Insert new records.

        Session: Creates and closes own session.
        """
        db, should_close = self._open()
        try:
            written: list[str] = []
            for payload in data:
                logger.debug(f"Creating {self.entity_name}: {payload}")
                obj = self._to_model(payload, context)
                db.add(obj)
                db.flush()
                written.append(obj.id)
            db.commit()
            logger.info(f"Created {len(written)} {self.entity_name} record(s)")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to create {self.entity_name}: {e}")
            raise
        finally:
            if should_close:
                db.close()

        return self._dispatch(
            EntityWrittenEvent(entity=self.entity_name, context=context, written_ids=written)
        )

    @with_retry(max_retries=10)
    def update(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        """Update existing records; every payload must carry an existing id."""
        db, should_close = self._open()
        try:
            written: list[str] = []
            for payload in data:
                id = payload.get("id")
                obj = db.get(self.model_class, id) if id else None
                if obj is None:
                    raise ResourceNotFoundError(f"{self.entity_name} {id} not found for update")
                self._apply(obj, payload, context)
                written.append(obj.id)
            db.commit()
            logger.info(f"Updated {len(written)} {self.entity_name} record(s)")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to update {self.entity_name}: {e}")
            raise
        finally:
            if should_close:
                db.close()

        return self._dispatch(
            EntityWrittenEvent(entity=self.entity_name, context=context, written_ids=written)
        )

    @with_retry(max_retries=10)
    def upsert(self, data: list[dict[str, Any]], context: WriteContext) -> EntityWrittenEvent:
        """Update records whose id exists, create the rest."""
        db, should_close = self._open()
        try:
            written: list[str] = []
            for payload in data:
                id = payload.get("id")
                obj = db.get(self.model_class, id) if id else None
                if obj is None:
                    obj = self._to_model(payload, context)
                    db.add(obj)
                    db.flush()
                else:
                    self._apply(obj, payload, context)
                written.append(obj.id)
            db.commit()
            logger.info(f"Upserted {len(written)} {self.entity_name} record(s)")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to upsert {self.entity_name}: {e}")
            raise
        finally:
            if should_close:
                db.close()

        return self._dispatch(
            EntityWrittenEvent(entity=self.entity_name, context=context, written_ids=written)
        )

    @with_retry(max_retries=10)
    def delete(self, ids: Sequence[str], context: WriteContext) -> DeletionEvent:
        """Delete records by id.

        Ids that do not exist (already deleted, or never created) are skipped
        silently; the event lists only the rows actually removed.
        """
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return self._dispatch(DeletionEvent.empty(self.entity_name, context))

        db, should_close = self._open()
        try:
            stmt = select(self.model_class).where(self.model_class.id.in_(unique_ids))
            objs = db.execute(stmt).scalars().all()
            deleted = [obj.id for obj in objs]
            for obj in objs:
                self._log_cascade_deletes(obj)
                db.delete(obj)
            db.commit()

            missing = len(unique_ids) - len(deleted)
            if missing:
                logger.debug(f"{missing} {self.entity_name} id(s) already absent, skipped")
            logger.info(f"Deleted {len(deleted)} {self.entity_name} record(s)")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to delete {self.entity_name} {unique_ids}: {e}")
            raise
        finally:
            if should_close:
                db.close()

        return self._dispatch(
            DeletionEvent(entity=self.entity_name, context=context, deleted_ids=deleted)
        )

    def _to_model(self, payload: dict[str, Any], context: WriteContext) -> Any:
        """Build a new ORM object from a payload."""
        obj = self.model_class()
        self._apply(obj, payload, context, creating=True)
        return obj

    def _apply(self, obj: Any, payload: dict[str, Any], context: WriteContext, creating: bool = False) -> None:
        """Copy payload fields onto an ORM object and stamp audit columns."""
        for key, value in payload.items():
            if not hasattr(self.model_class, key):
                raise ValueError(f"Unknown field '{key}' for {self.entity_name}")
            setattr(obj, key, value)

        now = now_timestamp()
        if creating and hasattr(obj, "added_date"):
            obj.added_date = obj.added_date or now
            obj.added_by = obj.added_by or context.user_id
        elif hasattr(obj, "updated_date"):
            obj.updated_date = now
            obj.updated_by = context.user_id

    def _log_cascade_deletes(self, orm_obj: Any) -> None:
        """Hook to log rows removed by ORM cascades."""
        _ = orm_obj

    def _to_schema(self, orm_obj: Any) -> SchemaT:
        """Convert ORM to Pydantic."""
        return self.schema_class.model_validate(orm_obj)
