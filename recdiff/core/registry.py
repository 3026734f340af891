"""
registry.py — Per-type diff configuration and type relationships.

A :class:`TypeRegistry` holds one immutable :class:`TypeConfig` per record
type: the fields never compared, the identity field used to match children
across two collection snapshots, the conditional fields that ride along on
a real change, the optional base type, and the associations the type
declares.  Types and their relationships are also kept in a NetworkX graph
so the whole configuration can be checked for structural problems.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal

import networkx as nx

from recdiff.errors import ConfigurationError, IncompatibleTypes

_log = logging.getLogger(__name__)

_log_debug = _log.debug

AssociationKind = Literal["has_many", "has_one", "belongs_to"]

ASSOCIATION_KINDS: tuple[str, ...] = ("has_many", "has_one", "belongs_to")

# Edge ``rel_type`` for inheritance links (derived -> base).
INHERITS = "inherits"


@dataclass(frozen=True)
class Association:
    """A named relation from an owning type to a target type."""

    name: str
    target: str
    kind: AssociationKind = "has_many"

    @property
    def owned(self) -> bool:
        return self.kind != "belongs_to"


@dataclass(frozen=True)
class TypeConfig:
    """Diff configuration for a single record type."""

    name: str
    base: str | None = None
    excluded_fields: frozenset[str] = field(default_factory=frozenset)
    identity_field: str | None = None
    conditional_fields: tuple[str, ...] = ()
    associations: tuple[Association, ...] = ()

    def association(self, name: str) -> Association | None:
        for assoc in self.associations:
            if assoc.name == name:
                return assoc
        return None


class TypeRegistry:
    """Registry of diffable record types.

    Registration is expected to happen once, at start-up.  Lookups for a
    type that was never registered return an empty configuration rather
    than failing.
    """

    def __init__(self) -> None:
        self._configs: dict[str, TypeConfig] = {}
        self._graph = nx.MultiDiGraph()

    # ── Registration ──────────────────────────────────────────────────────

    def register_type(
        self,
        name: str,
        *,
        base: str | None = None,
        excluded_fields: Iterable[str] = (),
        identity_field: str | None = None,
        conditional_fields: Iterable[str] = (),
        associations: Iterable[Association] = (),
    ) -> TypeConfig:
        """Register *name* and return its frozen configuration.

        Raises:
            ConfigurationError: If *name* is already registered, or an
                association is declared twice or with an unknown kind.
        """
        if name in self._configs:
            raise ConfigurationError(f"Type {name} is already registered")

        assocs = tuple(associations)
        seen: set[str] = set()
        for assoc in assocs:
            if assoc.kind not in ASSOCIATION_KINDS:
                raise ConfigurationError(
                    f"{name}.{assoc.name}: unknown association kind '{assoc.kind}'"
                )
            if assoc.name in seen:
                raise ConfigurationError(f"{name}.{assoc.name} is declared twice")
            seen.add(assoc.name)

        config = TypeConfig(
            name=name,
            base=base,
            excluded_fields=frozenset(excluded_fields),
            identity_field=identity_field,
            conditional_fields=tuple(conditional_fields),
            associations=assocs,
        )
        self._configs[name] = config

        self._graph.add_node(name)
        if base is not None:
            self._graph.add_edge(name, base, rel_type=INHERITS, name=None)
        for assoc in assocs:
            self._graph.add_edge(name, assoc.target, rel_type=assoc.kind, name=assoc.name)

        _log_debug("Registered type %s (base=%s, identity=%s)", name, base, identity_field)
        return config

    # ── Lookups ───────────────────────────────────────────────────────────

    def config_for(self, name: str) -> TypeConfig:
        """Return the configuration for *name*, empty if unregistered."""
        config = self._configs.get(name)
        if config is None:
            return TypeConfig(name=name)
        return config

    def is_registered(self, name: str) -> bool:
        return name in self._configs

    def registered_types(self) -> list[str]:
        return sorted(self._configs)

    def base_type_of(self, name: str) -> str | None:
        return self.config_for(name).base

    def eligible_associations(self, name: str) -> list[Association]:
        """Owned associations of *name* whose target type is diffable.

        ``belongs_to`` relations point toward a parent and are never
        descended into.
        """
        return [
            assoc for assoc in self.config_for(name).associations
            if assoc.owned and self.is_registered(assoc.target)
        ]

    def check_compatible(self, current_type: str, other_type: str) -> None:
        """Raise :class:`IncompatibleTypes` unless the two types may be diffed.

        Allowed pairs are identical types, a base type against a type
        derived directly from it, and two siblings sharing an immediate
        base.  Unrelated lineages are rejected.
        """
        current_base = self.base_type_of(current_type)
        other_base = self.base_type_of(other_type)
        if current_base is None or other_base is None:
            compatible = (
                other_type == current_type
                or other_type == current_base
                or other_base == current_type
            )
        else:
            compatible = current_type == other_type or other_base == current_base
        if not compatible:
            raise IncompatibleTypes(current_type, other_type)

    # ── Structural validation ─────────────────────────────────────────────

    def validate(self) -> list[str]:
        """Check the registered configuration for structural problems.

        The diff itself assumes the owned-association graph is acyclic and
        that every owned collection target declares an identity field; this
        reports where either assumption does not hold.

        Returns:
            Human-readable problem descriptions, empty when the
            configuration is sound.
        """
        problems: list[str] = []

        for name in self.registered_types():
            config = self._configs[name]
            if config.base is not None and not self.is_registered(config.base):
                problems.append(f"{name}: base type {config.base} is not registered")
            for assoc in self.eligible_associations(name):
                target = self._configs[assoc.target]
                if target.identity_field is None:
                    problems.append(
                        f"{name}.{assoc.name}: target {assoc.target} has no identity field"
                    )

        inherits = self._subgraph(lambda rel: rel == INHERITS)
        problems.extend(_describe_cycle("inheritance", inherits))

        owned = self._subgraph(lambda rel: rel not in (INHERITS, "belongs_to"))
        problems.extend(_describe_cycle("owned association", owned))

        return problems

    def _subgraph(self, keep) -> nx.DiGraph:
        g = nx.DiGraph()
        g.add_nodes_from(self._graph.nodes)
        for u, v, data in self._graph.edges(data=True):
            if keep(data["rel_type"]):
                g.add_edge(u, v, **data)
        return g


def _describe_cycle(label: str, graph: nx.DiGraph) -> list[str]:
    try:
        cycle = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return []
    path = " -> ".join([u for u, _v in cycle] + [cycle[-1][1]])
    return [f"{label} cycle: {path}"]


# ── Process-wide registry ─────────────────────────────────────────────────────

default_registry = TypeRegistry()

register_type = default_registry.register_type
config_for = default_registry.config_for
