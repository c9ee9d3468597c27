"""SQLAlchemy implementation of the data-access interface.

Every public call runs in its own session and commits (or rolls back) before
returning, so no ORM state leaks between requests. ``transaction`` applies a
whole batch of operations inside a single session and commit.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type
from uuid import UUID

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from marketplace.common.logger import get_logger
from marketplace.core import store as tables
from marketplace.core.errors import (
    ConflictError,
    MarketplaceError,
    NotFoundError,
    StaleRecordError,
    StorageFailureError,
)
from marketplace.core.store import (
    DataStore,
    Delete,
    DeleteWhere,
    Filter,
    Insert,
    Operation,
    Record,
    Update,
)
from marketplace.db.models import (
    AccountModel,
    ApprovalHistoryModel,
    BusinessFileModel,
    BusinessModel,
    DeletionRequestModel,
    NdaModel,
)

logger = get_logger("store")

TABLE_MODELS: Dict[str, Type] = {
    tables.ACCOUNTS: AccountModel,
    tables.BUSINESSES: BusinessModel,
    tables.BUSINESS_FILES: BusinessFileModel,
    tables.NDAS: NdaModel,
    tables.DELETION_REQUESTS: DeletionRequestModel,
    tables.APPROVAL_HISTORY: ApprovalHistoryModel,
}


def _to_record(obj) -> Record:
    """Convert a model instance to a plain column dictionary."""
    return {attr.key: getattr(obj, attr.key) for attr in sa_inspect(obj).mapper.column_attrs}


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _integrity_error(exc: IntegrityError) -> MarketplaceError:
    """Classify a constraint violation by SQLSTATE, or by message where the driver has none."""
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    message = str(orig).lower()

    if sqlstate == UNIQUE_VIOLATION or (sqlstate is None and "unique" in message):
        return ConflictError("A record with the same unique key already exists")
    if sqlstate == FOREIGN_KEY_VIOLATION or (sqlstate is None and "foreign key" in message):
        return NotFoundError("referenced record", "(foreign key)")
    return StorageFailureError(f"Write violates an integrity constraint: {orig}")


class SqlAlchemyStore(DataStore):
    """DataStore backed by a relational database through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            logger.warning("Constraint violation, rolled back: %s", exc.orig)
            raise _integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Storage failure, rolled back: %s", exc)
            raise StorageFailureError(f"Storage operation failed: {exc}") from exc
        except MarketplaceError:
            session.rollback()
            raise
        finally:
            session.close()

    def _model(self, table: str) -> Type:
        try:
            return TABLE_MODELS[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    def _conditions(self, model: Type, filter: Optional[Filter]) -> list:
        conditions = []
        for column_name, value in (filter or {}).items():
            column = getattr(model, column_name)
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(column.in_(list(value)))
            elif value is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == value)
        return conditions

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, table: str, id: UUID) -> Record:
        model = self._model(table)
        with self._session() as session:
            obj = session.get(model, id)
            if obj is None:
                raise NotFoundError(table, id)
            return _to_record(obj)

    def query(
        self,
        table: str,
        filter: Optional[Filter] = None,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        model = self._model(table)
        stmt = select(model).where(*self._conditions(model, filter))
        if order_by:
            column = getattr(model, order_by.lstrip("-"))
            stmt = stmt.order_by(column.desc() if order_by.startswith("-") else column.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as session:
            return [_to_record(obj) for obj in session.scalars(stmt).all()]

    def count(self, table: str, filter: Optional[Filter] = None) -> int:
        model = self._model(table)
        stmt = select(func.count()).select_from(model).where(*self._conditions(model, filter))
        with self._session() as session:
            return session.scalar(stmt) or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, table: str, record: Record) -> Record:
        return self.transaction([Insert(table, record)])[0]

    def update(self, table: str, id: UUID, patch: Record) -> Record:
        return self.transaction([Update(table, id, patch)])[0]

    def transaction(self, ops: Sequence[Operation]) -> List[Any]:
        with self._session() as session:
            return [self._apply(session, op) for op in ops]

    def _apply(self, session: Session, op: Operation) -> Any:
        model = self._model(op.table)

        if isinstance(op, Insert):
            obj = model(**op.values)
            session.add(obj)
            session.flush()
            return _to_record(obj)

        if isinstance(op, Update):
            stmt = (
                sa_update(model)
                .where(model.id == op.id, *self._conditions(model, op.expect))
                .values(**op.patch)
                .execution_options(synchronize_session=False)
            )
            result = session.execute(stmt)
            if result.rowcount == 0:
                current = session.get(model, op.id)
                if current is None:
                    raise NotFoundError(op.table, op.id)
                raise StaleRecordError(
                    f"{op.table} {op.id} changed concurrently",
                    from_state=getattr(current, "status", None),
                )
            obj = session.get(model, op.id, populate_existing=True)
            return _to_record(obj)

        if isinstance(op, Delete):
            result = session.execute(
                sa_delete(model).where(model.id == op.id).execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(op.table, op.id)
            return None

        if isinstance(op, DeleteWhere):
            if not op.filter:
                raise ValueError("DeleteWhere requires a non-empty filter")
            result = session.execute(
                sa_delete(model)
                .where(*self._conditions(model, op.filter))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

        raise TypeError(f"Unsupported operation: {op!r}")
