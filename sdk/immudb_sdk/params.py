"""
Named statement parameters for the immudb SDK.

Example:
    >>> params = Params().bind("id", 7).bind("name", "alice")
    >>> await sql.exec("INSERT INTO users(id, name) VALUES (@id, @name)", params)

    >>> @dataclass
    ... class InsertUser:
    ...     id: int
    ...     name: str = field(metadata={"sql": {"rename": "username"}})
    ...     note: str | None = field(default=None, metadata={"sql": {"skip_if_none": True}})
    >>> await sql.exec("INSERT INTO users(id, username) VALUES (@id, @username)", InsertUser(7, "alice"))

Invariants:
    - Names are stored without the '@' sigil
    - Declaration order is preserved; duplicate names are not rejected
    - Values are encoded when bound, so an unsupported type fails at bind()

How to change safely:
    - Per-field options live under the "sql" key of dataclass field metadata
      or pydantic json_schema_extra: rename, skip, skip_if_none
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ._generated import NamedParam
from .codec import WireValue, encode, wire_to_proto
from .errors import InvalidInputError


@dataclass(frozen=True)
class BoundParam:
    """A placeholder name and its encoded value."""

    name: str
    value: WireValue

    def to_proto(self) -> Any:
        return NamedParam(name=self.name, value=wire_to_proto(self.value))


class Params:
    """Ordered collection of named parameters."""

    def __init__(self) -> None:
        self._items: list[BoundParam] = []

    def bind(self, name: str, value: Any) -> Params:
        """Bind ``value`` to placeholder ``@name``.

        Returns:
            Self for chaining

        Raises:
            InvalidInputError: If the value has no wire representation
        """
        self._items.append(BoundParam(name.lstrip("@"), encode(value)))
        return self

    def bind_dt(self, name: str, value: datetime) -> Params:
        if not isinstance(value, datetime):
            raise InvalidInputError(f"expected datetime for @{name}", value=value)
        return self.bind(name, value)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> Params:
        params = cls()
        for name, value in values.items():
            params.bind(name, value)
        return params

    @classmethod
    def from_object(cls, obj: Any) -> Params:
        """Bind every field of a dataclass instance or pydantic model.

        Raises:
            InvalidInputError: If ``obj`` is neither
        """
        params = cls()
        for name, value, options in _object_fields(obj):
            if options.get("skip"):
                continue
            if options.get("skip_if_none") and value is None:
                continue
            params.bind(options.get("rename", name), value)
        return params

    def values(self) -> list[WireValue]:
        return [p.value for p in self._items]

    def names(self) -> list[str]:
        return [p.name for p in self._items]

    def to_proto(self) -> list[Any]:
        return [p.to_proto() for p in self._items]

    def __iter__(self) -> Iterator[BoundParam]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Params({self._items!r})"


def _object_fields(obj: Any) -> Iterator[tuple[str, Any, dict[str, Any]]]:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        for f in dataclasses.fields(obj):
            yield f.name, getattr(obj, f.name), dict(f.metadata.get("sql", {}))
        return
    if isinstance(obj, BaseModel):
        for name, info in type(obj).model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            yield name, getattr(obj, name), dict(extra.get("sql", {}))
        return
    raise InvalidInputError(
        f"cannot build params from {type(obj).__name__}",
        value=obj,
    )


def to_params(params: Any) -> Params:
    """Coerce the ``params`` argument of exec()/query().

    Accepts None, Params, an object with ``to_params()``, a mapping, a
    dataclass instance or a pydantic model.
    """
    if params is None:
        return Params()
    if isinstance(params, Params):
        return params
    if hasattr(params, "to_params"):
        return to_params(params.to_params())
    if isinstance(params, Mapping):
        return Params.from_mapping(params)
    return Params.from_object(params)
