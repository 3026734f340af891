"""
errors.py — Typed error taxonomy for record diffing.

Every failure raised by the library derives from :class:`RecDiffError`.
Any raised error aborts the whole ``diff`` call; there are no partial
results.
"""
from __future__ import annotations

__all__ = [
    "RecDiffError",
    "ConfigurationError",
    "IncompatibleTypes",
    "MissingIdentityConfiguration",
    "MissingField",
    "format_error",
]


class RecDiffError(Exception):
    """Base class for all record diff errors."""


class ConfigurationError(RecDiffError):
    """Type registration or configuration file is invalid."""


class IncompatibleTypes(RecDiffError):
    """The two root records belong to unrelated type lineages."""

    def __init__(self, current_type: str, other_type: str) -> None:
        self.current_type = current_type
        self.other_type = other_type
        super().__init__(f"Unable to compare {current_type} to {other_type}")


class MissingIdentityConfiguration(RecDiffError):
    """A collection element type declares no identity field."""

    def __init__(self, type_name: str, association: str) -> None:
        self.type_name = type_name
        self.association = association
        super().__init__(
            f"Type {type_name} has no identity field configured "
            f"(required to match association '{association}')"
        )


class MissingField(RecDiffError):
    """A record does not expose a field it was expected to have."""

    def __init__(self, type_name: str, field_name: str) -> None:
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(f"{type_name} has no field '{field_name}'")


def format_error(e: BaseException) -> str:
    """Return a short operator-facing message like 'MissingField: detail'."""
    name = e.__class__.__name__
    msg = str(e).strip()
    return f"{name}: {msg}" if msg else name
