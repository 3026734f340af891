"""Record builders shared by the test modules."""
from __future__ import annotations

from recdiff.data.records import Record


def multidiff(name: str = "test1", **attrs) -> Record:
    return Record("Multidiff", {"id": None, "name": name, "price": None, **attrs})


def subrec(ident: str | None, name: str, **attrs) -> Record:
    return Record("Subrec", {"id": None, "multidiff_id": None, "name": name, "ident": ident, **attrs})


def alt_subrec(ident: str, name: str, tracker: str | None = None, ignore_me: str | None = None) -> Record:
    return Record("AltSubrec", {
        "id": None, "multidiff_id": None, "name": name, "ident": ident,
        "ignore_me": ignore_me, "tracker": tracker,
    })


def part(code: str, qty: int, revision: int = 1) -> Record:
    return Record("Part", {"id": None, "code": code, "qty": qty, "revision": revision})
