"""
records.py — In-memory records and the accessor that reads them.

:class:`Record` is a plain value: a type name, a flat attribute dict and
named child collections.  :class:`InMemoryAccessor` exposes records to the
diff engine using the association metadata held by a
:class:`~recdiff.core.registry.TypeRegistry`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from recdiff.core.accessor import RecordAccessor
from recdiff.core.registry import TypeRegistry, default_registry
from recdiff.errors import ConfigurationError


@dataclass
class Record:
    """A record with scalar attributes and owned child collections."""

    type: str
    attributes: dict[str, Any] = field(default_factory=dict)
    collections: dict[str, list[Record]] = field(default_factory=dict)

    def add(self, association: str, *children: Record) -> Record:
        """Append *children* to *association* and return ``self``."""
        self.collections.setdefault(association, []).extend(children)
        return self

    def as_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict for JSON output."""
        return {
            "type": self.type,
            "attributes": dict(self.attributes),
            "collections": {
                name: [child.as_dict() for child in children]
                for name, children in self.collections.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Record:
        """Build a record tree from the dict produced by :meth:`as_dict`.

        Raises:
            ConfigurationError: If a record has no ``type`` key.
        """
        if "type" not in data:
            raise ConfigurationError("Record is missing its 'type' key")
        return cls(
            type=data["type"],
            attributes=dict(data.get("attributes") or {}),
            collections={
                name: [cls.from_dict(child) for child in children]
                for name, children in (data.get("collections") or {}).items()
            },
        )


class InMemoryAccessor(RecordAccessor):
    """:class:`RecordAccessor` over :class:`Record` trees."""

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry

    def type_of(self, record: Record) -> str:
        return record.type

    def attributes(self, record: Record) -> dict[str, Any]:
        return record.attributes

    def eligible_associations(self, record: Record) -> list[str]:
        return [assoc.name for assoc in self.registry.eligible_associations(record.type)]

    def collection(self, record: Record, name: str) -> list[Record]:
        # Children stored under an association the type does not declare
        # are invisible.
        if self.registry.config_for(record.type).association(name) is None:
            return []
        return list(record.collections.get(name, ()))
