"""Data-access interface consumed by the core.

The core never talks to a database directly. It reads and writes records
(plain dictionaries keyed by column name) through a ``DataStore``, and
submits multi-step changes as a batch of operations that the store applies
all-or-nothing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from uuid import UUID

# Table names
ACCOUNTS = "accounts"
BUSINESSES = "businesses"
BUSINESS_FILES = "business_files"
NDAS = "ndas"
DELETION_REQUESTS = "deletion_requests"
APPROVAL_HISTORY = "approval_history"

Record = Dict[str, Any]
Filter = Mapping[str, Any]


@dataclass(frozen=True)
class Insert:
    table: str
    values: Record


@dataclass(frozen=True)
class Update:
    """Patch one row.

    ``expect`` is a precondition on the row's current column values. When the
    row no longer matches it, the store raises ``StaleRecordError`` and the
    surrounding transaction is rolled back.
    """

    table: str
    id: UUID
    patch: Record
    expect: Optional[Record] = None


@dataclass(frozen=True)
class Delete:
    table: str
    id: UUID


@dataclass(frozen=True)
class DeleteWhere:
    table: str
    filter: Record


Operation = Union[Insert, Update, Delete, DeleteWhere]


class DataStore(ABC):
    """Narrow persistence capability.

    Filters map column names to values; a list, tuple or set value matches
    any of its members. ``order_by`` names a column, prefixed with ``-`` for
    descending order.

    Errors:
        NotFoundError: ``get``/``update``/``Delete`` on a missing id, or a
            write referencing a record that does not exist
        ConflictError: a write violates a uniqueness constraint
        StaleRecordError: an ``Update.expect`` precondition failed
        StorageFailureError: anything else the backend could not complete
    """

    @abstractmethod
    def get(self, table: str, id: UUID) -> Record:
        """Fetch one record by primary key."""

    @abstractmethod
    def query(
        self,
        table: str,
        filter: Optional[Filter] = None,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> List[Record]:
        """Fetch the records matching ``filter``, one page at a time."""

    @abstractmethod
    def count(self, table: str, filter: Optional[Filter] = None) -> int:
        """Count the records matching ``filter``."""

    @abstractmethod
    def insert(self, table: str, record: Record) -> Record:
        """Insert a record and return it with generated columns filled in."""

    @abstractmethod
    def update(self, table: str, id: UUID, patch: Record) -> Record:
        """Apply ``patch`` to one record and return the updated record."""

    @abstractmethod
    def transaction(self, ops: Sequence[Operation]) -> List[Any]:
        """Apply ``ops`` in order as one atomic unit.

        Returns one result per operation: the written record for ``Insert``
        and ``Update``, ``None`` for ``Delete`` and the number of removed
        rows for ``DeleteWhere``. If any operation fails, none of them is
        observable afterwards.
        """

    def first(self, table: str, filter: Filter, *, order_by: Optional[str] = None) -> Optional[Record]:
        rows = self.query(table, filter, limit=1, order_by=order_by)
        return rows[0] if rows else None
