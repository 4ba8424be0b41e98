"""A small in-memory relational store for the hub's records."""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import fields, is_dataclass
from datetime import datetime
from typing import Any, Optional, Union

from cohorthub.models import (
    Contest,
    ContestStanding,
    Country,
    Group,
    Problem,
    Rating,
    Role,
    Submission,
    SuperGroup,
    SuperToGroup,
    Track,
    User,
)

Where = Optional[Union[Mapping[str, Any], Callable[[Any], bool]]]

_MODELS = (
    User,
    Track,
    Contest,
    Rating,
    Problem,
    Country,
    Role,
    SuperGroup,
    SuperToGroup,
    Group,
    Submission,
    ContestStanding,
)


class RecordNotFound(LookupError):
    """No record matched the lookup."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


class ConflictError(ValueError):
    """A record clashes with one already stored."""


def _predicate(where: Where) -> Callable[[Any], bool]:
    if where is None:
        return lambda record: True
    if callable(where):
        return where
    conditions = dict(where)
    return lambda record: all(getattr(record, key) == value for key, value in conditions.items())


def _stamp(record: Any, name: str, now: datetime, only_if_empty: bool) -> None:
    if hasattr(record, name) and (not only_if_empty or getattr(record, name) is None):
        setattr(record, name, now)


class Database:
    """Tables of dataclass records keyed by their integer ``id``.

    Records are copied on the way in and out, so callers never share
    state with what is stored.
    """

    def __init__(self) -> None:
        self._tables: dict[type, dict[int, Any]] = {}
        self._next_ids: dict[type, int] = {}
        self._lock = threading.RLock()

    def register(self, model: type) -> None:
        """Create the table for ``model`` if it does not exist yet."""
        if not (is_dataclass(model) and isinstance(model, type)):
            raise TypeError(f"{model!r} is not a dataclass type")
        if "id" not in {f.name for f in fields(model)}:
            raise TypeError(f"{model.__name__} has no id field")
        with self._lock:
            self._tables.setdefault(model, {})
            self._next_ids.setdefault(model, 1)

    def _table(self, model: type) -> dict[int, Any]:
        try:
            return self._tables[model]
        except KeyError:
            raise KeyError(f"table for {model.__name__} is not registered") from None

    def create(self, record: Any) -> Any:
        """Insert ``record``, assigning an id when it has none."""
        model = type(record)
        with self._lock:
            table = self._table(model)
            if record.id:
                if record.id in table:
                    raise ConflictError(f"{model.__name__} with id {record.id} already exists")
            else:
                record.id = self._next_ids[model]
            self._next_ids[model] = max(self._next_ids[model], record.id + 1)
            now = datetime.now()
            _stamp(record, "created_at", now, only_if_empty=True)
            _stamp(record, "updated_at", now, only_if_empty=True)
            table[record.id] = copy.deepcopy(record)
        return record

    def get(self, model: type, record_id: int) -> Any:
        """Return the record of ``model`` with ``record_id``."""
        with self._lock:
            table = self._table(model)
            try:
                return copy.deepcopy(table[record_id])
            except KeyError:
                raise RecordNotFound() from None

    def first(self, model: type, where: Where = None) -> Any:
        """Return the matching record with the lowest id."""
        matches = self.find(model, where)
        if not matches:
            raise RecordNotFound()
        return matches[0]

    def find(self, model: type, where: Where = None) -> list[Any]:
        """Return all matching records ordered by id."""
        predicate = _predicate(where)
        with self._lock:
            table = self._table(model)
            return [copy.deepcopy(record) for _, record in sorted(table.items()) if predicate(record)]

    def save(self, record: Any) -> Any:
        """Insert or replace ``record``."""
        if not record.id:
            return self.create(record)
        with self._lock:
            table = self._table(type(record))
            _stamp(record, "updated_at", datetime.now(), only_if_empty=False)
            table[record.id] = copy.deepcopy(record)
        return record

    def delete(self, record: Any) -> bool:
        """Remove ``record``; return whether anything was removed."""
        with self._lock:
            return self._table(type(record)).pop(record.id, None) is not None

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Roll every change back if the block raises."""
        with self._lock:
            tables = copy.deepcopy(self._tables)
            next_ids = dict(self._next_ids)
            try:
                yield self
            except BaseException:
                self._tables = tables
                self._next_ids = next_ids
                raise


def migrate_models(db: Database) -> None:
    """Register every record type of the hub with ``db``."""
    for model in _MODELS:
        db.register(model)