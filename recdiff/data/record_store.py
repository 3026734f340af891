"""
record_store.py — Load and save records and type configuration as JSON.

A record file holds a single record tree (see ``Record.as_dict``).  A type
configuration file maps type names to their diff settings::

    {
      "types": {
        "Order": {
          "identity_field": null,
          "conditional_fields": ["revision"],
          "associations": {"lines": {"target": "OrderLine", "kind": "has_many"}}
        },
        "OrderLine": {
          "identity_field": "sku",
          "excluded_fields": ["updated_at"],
          "associations": {"order": {"target": "Order", "kind": "belongs_to"}}
        }
      }
    }

Pure data I/O; the diff itself lives in ``recdiff.core``.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from recdiff.core.registry import Association, TypeRegistry
from recdiff.data.records import Record
from recdiff.errors import ConfigurationError

_log = logging.getLogger(__name__)

_log_debug = _log.debug

_TYPE_KEYS = {"base", "excluded_fields", "identity_field", "conditional_fields", "associations"}


def _read_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        return json.loads(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigurationError(f"File not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path}: invalid JSON ({exc})") from exc


# ── Records ───────────────────────────────────────────────────────────────────

def load_record(path: str | Path) -> Record:
    """Load a single record tree from *path*.

    Raises:
        ConfigurationError: If the file is missing or malformed.
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    return Record.from_dict(data)


def save_record(path: str | Path, record: Record) -> Path:
    """Persist *record* as JSON at *path* (parent directories are created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record.as_dict(), indent=2, default=str))
    return path


# ── Type configuration ────────────────────────────────────────────────────────

def parse_type_config(data: dict[str, Any], registry: TypeRegistry | None = None) -> TypeRegistry:
    """Register every type described by *data* and return the registry.

    Args:
        data: Parsed configuration, ``{"types": {name: settings}}``.
        registry: Registry to populate; a fresh one when omitted.

    Raises:
        ConfigurationError: On unknown keys, wrongly typed settings or
            malformed associations.
    """
    registry = registry if registry is not None else TypeRegistry()
    types = data.get("types")
    if not isinstance(types, dict):
        raise ConfigurationError("Type configuration needs a 'types' object")

    for name, settings in types.items():
        settings = settings or {}
        if not isinstance(settings, dict):
            raise ConfigurationError(f"{name}: settings must be an object")
        unknown = set(settings) - _TYPE_KEYS
        if unknown:
            raise ConfigurationError(f"{name}: unknown key(s) {', '.join(sorted(unknown))}")
        for key in ("excluded_fields", "conditional_fields"):
            if not isinstance(settings.get(key) or [], list):
                raise ConfigurationError(f"{name}.{key} must be a list")
        if not isinstance(settings.get("associations") or {}, dict):
            raise ConfigurationError(f"{name}.associations must be an object")

        associations = []
        for assoc_name, assoc in (settings.get("associations") or {}).items():
            if not isinstance(assoc, dict) or "target" not in assoc:
                raise ConfigurationError(f"{name}.{assoc_name}: association needs a 'target'")
            associations.append(Association(
                name=assoc_name,
                target=assoc["target"],
                kind=assoc.get("kind", "has_many"),
            ))

        registry.register_type(
            name,
            base=settings.get("base"),
            excluded_fields=settings.get("excluded_fields") or (),
            identity_field=settings.get("identity_field"),
            conditional_fields=settings.get("conditional_fields") or (),
            associations=associations,
        )

    _log_debug("Loaded %d type(s)", len(types))
    return registry


def load_registry(path: str | Path, registry: TypeRegistry | None = None) -> TypeRegistry:
    """Load a type configuration file into a registry."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    return parse_type_config(data, registry)


def dump_type_config(registry: TypeRegistry) -> dict[str, Any]:
    """Inverse of :func:`parse_type_config`, with types sorted by name."""
    types: dict[str, Any] = {}
    for name in registry.registered_types():
        config = registry.config_for(name)
        types[name] = {
            "base": config.base,
            "excluded_fields": sorted(config.excluded_fields),
            "identity_field": config.identity_field,
            "conditional_fields": list(config.conditional_fields),
            "associations": {
                assoc.name: {"target": assoc.target, "kind": assoc.kind}
                for assoc in config.associations
            },
        }
    return {"types": types}
