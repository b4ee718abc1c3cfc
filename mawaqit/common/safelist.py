"""Per-entity column safelists for the list-query engine.

A ``ColumnSafelist`` maps the public names clients may use in ``filters``,
``searchFields`` and ``sort`` to the SQLAlchemy column expressions they stand
for. Safelists are module-level constants built at import time; request input
is only ever looked up in them, never turned into SQL text.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from sqlalchemy.sql.elements import ColumnElement


class ColumnSafelist(Mapping[str, Any]):
    """Immutable ``name → column`` mapping with lenient lookups."""

    __slots__ = ("_columns",)

    def __init__(self, columns: Mapping[str, Any]) -> None:
        for name in columns:
            if not name or not name.replace("_", "").isalnum():
                raise ValueError(f"Invalid safelist column name: {name!r}")
        self._columns = MappingProxyType(dict(columns))

    def __getitem__(self, name: str) -> Any:
        return self._columns[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f"ColumnSafelist({list(self._columns)!r})"

    def resolve(self, name: Optional[str]) -> Optional[ColumnElement]:
        """Return the column for *name*, or ``None`` if it is not safelisted."""
        if not name:
            return None
        return self._columns.get(name.strip())

    def pick(self, names: Iterable[str]) -> list[tuple[str, ColumnElement]]:
        """Resolve *names* in order, dropping unknown and duplicate entries."""
        picked: list[tuple[str, ColumnElement]] = []
        seen: set[str] = set()
        for raw in names:
            name = raw.strip()
            if name in seen or name not in self._columns:
                continue
            seen.add(name)
            picked.append((name, self._columns[name]))
        return picked
