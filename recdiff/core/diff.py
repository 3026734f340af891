"""
diff.py — Recursive, identity-matched record diff.

Compares a *current* record with an *other* (replacement) record and
describes what must be set on current to reach other.  Owned collections
are matched child by child on each type's identity field:

- children only on the current side are reported as ``new`` by identity;
- children on both sides are diffed recursively and reported as
  ``modified`` when anything below them differs;
- children only on the other side are reported as ``deleted`` with a full
  snapshot, since they will not be seen again.

The result is a plain nested dict, empty when nothing differs.
"""
from __future__ import annotations

import logging
import numbers
from typing import Any, Iterable, Mapping, Sequence

from recdiff.core.accessor import RecordAccessor
from recdiff.core.registry import TypeRegistry, default_registry
from recdiff.errors import MissingIdentityConfiguration

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_warn = _log.warning

# Surrogate primary key, never compared or preserved.
PRIMARY_KEY = "id"

CHANGE_TYPE = "change_type"
NEW = "new"
MODIFIED = "modified"
DELETED = "deleted"

DiffResult = dict[str, Any]


# ── Attribute differ ──────────────────────────────────────────────────────────

def _domain(value: Any) -> type:
    # bool is a numbers.Number subclass but compares as its own domain.
    if isinstance(value, bool):
        return bool
    if isinstance(value, numbers.Number):
        return numbers.Number
    return type(value)


def values_differ(current: Any, other: Any) -> bool:
    """Value equality within a domain; values of different domains always differ."""
    if _domain(current) is not _domain(other):
        return True
    return current != other


def diff_attributes(
    current_attrs: Mapping[str, Any],
    other_attrs: Mapping[str, Any],
) -> DiffResult:
    """Return ``{field: other_value}`` for every field of *other_attrs* that differs.

    A field missing from *current_attrs* counts as different.  Fields only
    present in *current_attrs* never appear: the delta is always expressed
    in the other side's values.
    """
    delta: DiffResult = {}
    for name, value in other_attrs.items():
        if name == PRIMARY_KEY:
            continue
        if name not in current_attrs or values_differ(current_attrs[name], value):
            delta[name] = value
    return delta


# ── Orchestrator ──────────────────────────────────────────────────────────────

class Differ:
    """Diff engine bound to a record accessor and a type registry."""

    def __init__(
        self,
        accessor: RecordAccessor,
        registry: TypeRegistry | None = None,
    ) -> None:
        self.accessor = accessor
        self.registry = registry if registry is not None else default_registry

    def diff(self, current: Any, other: Any) -> DiffResult:
        """Describe the changes that turn *current* into *other*.

        Raises:
            IncompatibleTypes: If the two record types are unrelated.
            MissingIdentityConfiguration: If an owned collection's element
                type has no identity field.
            MissingField: If a record lacks an identity or conditional field.
        """
        current_type = self.accessor.type_of(current)
        other_type = self.accessor.type_of(other)
        self.registry.check_compatible(current_type, other_type)
        _log_debug("Diffing %s against %s", current_type, other_type)

        result = self._compare(current, other)
        _log_debug("Diff of %s produced %d top-level key(s)", current_type, len(result))
        return result

    def _compare(
        self,
        current: Any,
        other: Any,
        identity: tuple[str, Any] | None = None,
    ) -> DiffResult:
        change = diff_attributes(self._comparable(current), self._comparable(other))

        nested: DiffResult = {}
        for name in self._association_names(current, other):
            entries = self.match_collection(
                name,
                self.accessor.collection(current, name),
                self.accessor.collection(other, name),
            )
            if entries:
                nested[name] = entries

        # The identity follows the attribute delta and precedes collections.
        if identity is not None and (change or nested):
            field, ident = identity
            change[field] = ident
        change.update(nested)

        return self._with_conditional_fields(change, other)

    def _comparable(self, record: Any) -> dict[str, Any]:
        excluded = self.registry.config_for(self.accessor.type_of(record)).excluded_fields
        return {
            name: value for name, value in self.accessor.attributes(record).items()
            if name != PRIMARY_KEY and name not in excluded
        }

    def _association_names(self, current: Any, other: Any) -> list[str]:
        # Comparable records need not declare the same associations.
        names = list(self.accessor.eligible_associations(current))
        for name in self.accessor.eligible_associations(other):
            if name not in names:
                names.append(name)
        return names

    def _with_conditional_fields(self, change: DiffResult, source: Any) -> DiffResult:
        """Add *source*'s conditional fields to *change*, unless it is empty."""
        if not change:
            return change
        config = self.registry.config_for(self.accessor.type_of(source))
        for name in config.conditional_fields:
            change[name] = self.accessor.field_value(source, name)
        return change

    # ── Collection matcher ────────────────────────────────────────────────

    def match_collection(
        self,
        name: str,
        current_records: Sequence[Any],
        other_records: Sequence[Any],
    ) -> list[DiffResult]:
        """Match two snapshots of association *name* by identity.

        Returns new and modified entries in current-side order, followed
        by deleted entries in the order they first appear on the other side.
        """
        current_index = self._index_by_identity(name, current_records)
        other_index = self._index_by_identity(name, other_records)

        entries: list[DiffResult] = []
        for key, (field, ident, current_sub) in current_index.items():
            if key in other_index:
                _field, _ident, other_sub = other_index[key]
                change = self._compare(current_sub, other_sub, (field, ident))
                if change:
                    change[CHANGE_TYPE] = MODIFIED
                    entries.append(change)
            else:
                entries.append({field: ident, CHANGE_TYPE: NEW})

        for key, (_field, _ident, other_sub) in other_index.items():
            if key not in current_index:
                entries.append(self._deleted_entry(other_sub))

        _log_debug(
            "Matched %s: %d current, %d other, %d change(s)",
            name, len(current_index), len(other_index), len(entries),
        )
        return entries

    def _index_by_identity(
        self,
        name: str,
        records: Iterable[Any],
    ) -> dict[tuple[type, Any], tuple[str, Any, Any]]:
        """Map ``(domain, identity)`` -> ``(identity_field, identity, record)``.

        Keying on the value domain keeps ``True`` and ``1`` apart. The first
        record with a given identity wins.
        """
        index: dict[tuple[type, Any], tuple[str, Any, Any]] = {}
        for record in records:
            type_name = self.accessor.type_of(record)
            field = self.registry.config_for(type_name).identity_field
            if field is None:
                raise MissingIdentityConfiguration(type_name, name)
            ident = self.accessor.identity_value(record, field)
            key = (_domain(ident), ident)
            if key in index:
                _log_warn("Duplicate identity %r in %s; keeping the first", ident, name)
                continue
            index[key] = (field, ident, record)
        return index

    # ── Deletion preserver ────────────────────────────────────────────────

    def preserve(self, record: Any) -> DiffResult:
        """Snapshot *record* and everything it owns, omitting null values.

        Returns an empty dict when there is nothing to preserve.
        """
        config = self.registry.config_for(self.accessor.type_of(record))
        snapshot: DiffResult = {
            name: value for name, value in self.accessor.attributes(record).items()
            if name != PRIMARY_KEY and name not in config.excluded_fields and value is not None
        }

        # Everything reachable from a deleted record is deleted too.
        for name in self.accessor.eligible_associations(record):
            children = [
                self._deleted_entry(child)
                for child in self.accessor.collection(record, name)
            ]
            if children:
                snapshot[name] = children

        return self._with_conditional_fields(snapshot, record)

    def _deleted_entry(self, record: Any) -> DiffResult:
        entry = self.preserve(record)
        entry[CHANGE_TYPE] = DELETED
        return entry


def diff(
    current: Any,
    other: Any,
    accessor: RecordAccessor,
    registry: TypeRegistry | None = None,
) -> DiffResult:
    """Convenience wrapper around :meth:`Differ.diff`."""
    return Differ(accessor, registry).diff(current, other)
