"""Merge per-statement source references into one sorted, deduplicated name list."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from sourcetables.extract._types import TableReference


class ResultSet:
    """Case-insensitive set of qualified table names, keeping first-seen casing."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def add(self, name: str) -> bool:
        """Add `name`. Returns False if an equal name (ignoring case) was already present."""
        key = name.casefold()
        if key in self._names:
            return False
        self._names[key] = name
        return True

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def sorted(self) -> list[str]:
        return sorted(self._names.values(), key=lambda n: (n.casefold(), n))


def qualified_name(ref: TableReference, database: str | None = None) -> str:
    """`schema.table` when qualified, else `table` (or `<database>.table` after USE)."""
    name = ref.name
    if database and not ref.is_qualified and "." not in name:
        return f"{database}.{name}"
    return name


def resolve(
    references: Iterable[TableReference],
    *,
    database: str | None = None,
    into: ResultSet | None = None,
) -> ResultSet:
    """Add every source reference to a ResultSet (a new one unless `into` is given)."""
    result = into if into is not None else ResultSet()
    for ref in references:
        if ref.is_source:
            result.add(qualified_name(ref, database))
    return result
