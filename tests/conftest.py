"""Shared pytest fixtures for record diff tests."""
from __future__ import annotations

import pytest

from recdiff.core.diff import Differ
from recdiff.core.registry import Association, TypeRegistry
from recdiff.data.records import InMemoryAccessor


@pytest.fixture
def registry() -> TypeRegistry:
    """Types mirroring a small parent/child model.

    ``Multidiff`` owns ``subrecs`` and ``alt_subrecs``; ``subrec_no_diffs``
    targets an unregistered type and is never descended into.
    ``Altdiff`` and ``AltdiffToo`` both derive from ``Hazdiff``.
    """
    reg = TypeRegistry()
    reg.register_type("Hazdiff")
    reg.register_type("Altdiff", base="Hazdiff")
    reg.register_type("AltdiffToo", base="Hazdiff")
    reg.register_type(
        "Multidiff",
        associations=[
            Association("subrecs", "Subrec"),
            Association("alt_subrecs", "AltSubrec"),
            Association("subrec_no_diffs", "SubrecNoDiff"),
        ],
    )
    reg.register_type(
        "Subrec",
        identity_field="ident",
        associations=[
            Association("multidiff", "Multidiff", kind="belongs_to"),
            Association("parts", "Part"),
        ],
    )
    reg.register_type(
        "AltSubrec",
        identity_field="ident",
        excluded_fields=["ignore_me"],
        conditional_fields=["tracker"],
    )
    reg.register_type("Part", identity_field="code", conditional_fields=["revision"])
    return reg


@pytest.fixture
def accessor(registry) -> InMemoryAccessor:
    return InMemoryAccessor(registry)


@pytest.fixture
def differ(accessor, registry) -> Differ:
    return Differ(accessor, registry)
