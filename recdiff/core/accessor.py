"""
accessor.py — The capability interface the diff engine reads records through.

The engine never touches record storage directly.  Hosts subclass
:class:`RecordAccessor` for their record representation; see
``recdiff.data.records`` for an in-memory binding.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from recdiff.errors import MissingField


class RecordAccessor(ABC):
    """Read-only view over host records."""

    @abstractmethod
    def type_of(self, record: Any) -> str:
        """Return the registered type name of *record*."""

    @abstractmethod
    def attributes(self, record: Any) -> Mapping[str, Any]:
        """Return every persisted scalar field of *record*, including ``id``."""

    @abstractmethod
    def eligible_associations(self, record: Any) -> Sequence[str]:
        """Names of owned associations of *record* with a diffable target."""

    @abstractmethod
    def collection(self, record: Any, name: str) -> Sequence[Any]:
        """Children of *record* under association *name*.

        Must return an empty sequence, not fail, when the record's type
        does not support the association.
        """

    def field_value(self, record: Any, field: str) -> Any:
        """Read a single named field.

        Raises:
            MissingField: If *record* has no such field.
        """
        attrs = self.attributes(record)
        if field not in attrs:
            raise MissingField(self.type_of(record), field)
        return attrs[field]

    def identity_value(self, record: Any, field: str) -> Any:
        """Read the identity field *field* of *record*."""
        return self.field_value(record, field)
