"""
Query results for the immudb SDK.

This module provides the materialized result of a SQL query and the pure
post-processing helpers built on top of the value codec:
- Column / Row / QueryResult: aggregated result of a streamed query
- normalize_column(): turn server column labels into mapping keys
- row_to_document(): one row as an ordered JSON-compatible dict

Invariants:
    - A row without labels falls back to the result-level columns
    - Missing labels are synthesized positionally as col1, col2, ...
    - Helpers never issue RPCs; their failures are DecodeError

How to change safely:
    - Struct mapping always goes through row_to_document() so that every
      target (dataclass, pydantic model, TypedDict, dict) sees the same keys
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import PydanticSchemaGenerationError, PydanticUserError, TypeAdapter, ValidationError

from .codec import WireValue, decode, wire_from_proto
from .errors import DecodeError, InvalidInputError

T = TypeVar("T")

_QUOTES = '"`[]'


def _enclosed(label: str) -> bool:
    """True if the outer parentheses of ``label`` match each other."""
    if len(label) < 2 or label[0] != "(" or label[-1] != ")":
        return False
    depth = 0
    for i, ch in enumerate(label):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and i != len(label) - 1:
                return False
    return depth == 0


def normalize_column(label: str) -> str:
    """Reduce a server column label to a plain key.

    ``'  ("groups"."name")  '`` becomes ``"name"``, ``"(a.b)"`` becomes
    ``"b"``. Parentheses belonging to an expression such as ``COUNT(*)``
    are kept.

    Raises:
        DecodeError: If nothing is left after normalization
    """
    name = label.strip()
    while _enclosed(name):
        name = name[1:-1].strip()
    name = name.strip(_QUOTES)
    name = name.rsplit(".", 1)[-1].strip().strip(_QUOTES)
    if name.count("(") != name.count(")"):
        name = name.strip("()").strip()
    if not name:
        raise DecodeError(f"malformed column name: {label!r}", label=label)
    return name


@dataclass(frozen=True)
class Column:
    """Result column metadata.

    Attributes:
        name: Label as returned by the server
        type: Server type tag (INTEGER, VARCHAR, ...)
    """

    name: str
    type: str

    @classmethod
    def from_proto(cls, proto: Any) -> Column:
        return cls(name=proto.name, type=proto.type)


@dataclass
class Row:
    """A single result row.

    Attributes:
        values: Cell values in column order
        columns: Per-row labels, empty when the result-level columns apply
    """

    values: list[WireValue]
    columns: list[str] = field(default_factory=list)

    @classmethod
    def from_proto(cls, proto: Any) -> Row:
        return cls(
            values=[wire_from_proto(v) for v in proto.values],
            columns=list(proto.columns),
        )


def row_to_document(row: Row, fallback_columns: list[Column] | None = None) -> dict[str, Any]:
    """Build an ordered dict of normalized column name to JSON value.

    A later duplicate key overwrites an earlier one.
    """
    labels = row.columns or [c.name for c in fallback_columns or []]
    document: dict[str, Any] = {}
    for i, value in enumerate(row.values):
        raw = labels[i] if i < len(labels) else f"col{i + 1}"
        document[normalize_column(raw)] = value.to_json()
    return document


@lru_cache(maxsize=256)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def _validate(model: Any, document: dict[str, Any]) -> Any:
    try:
        adapter = _adapter(model)
    except (PydanticSchemaGenerationError, PydanticUserError, TypeError) as e:
        raise InvalidInputError(
            f"cannot map rows onto {getattr(model, '__name__', model)}: {e}", value=model
        ) from e
    try:
        return adapter.validate_python(document)
    except ValidationError as e:
        raise DecodeError(
            f"row does not match {getattr(model, '__name__', model)}: {e}",
            errors=e.errors(include_url=False),
        ) from e


@dataclass
class QueryResult:
    """Aggregated result of a query.

    Example:
        >>> result = await sql.query("SELECT id, name FROM users")
        >>> users = result.rows_as(User)
        >>> count = (await sql.query("SELECT COUNT(*) FROM users")).scalar(int)
    """

    columns: list[Column] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def is_empty(self) -> bool:
        return not self.rows

    def row_as_document(self, idx: int) -> dict[str, Any]:
        """Row ``idx`` as a JSON-compatible dict.

        Raises:
            DecodeError: If ``idx`` is out of bounds
        """
        if not 0 <= idx < len(self.rows):
            raise DecodeError("row out of bounds", index=idx, rows=len(self.rows))
        return row_to_document(self.rows[idx], self.columns)

    def documents(self) -> list[dict[str, Any]]:
        return [row_to_document(row, self.columns) for row in self.rows]

    def scalar(self, target: type[T] = WireValue, *, nullable: bool = False) -> T:  # type: ignore[assignment]
        """First cell of the first row, decoded as ``target``.

        Raises:
            DecodeError: If the result is empty or the row has no values
            TypeMismatchError: If the cell variant does not fit ``target``
        """
        if not self.rows:
            raise DecodeError("empty result")
        values = self.rows[0].values
        if not values:
            raise DecodeError("no columns")
        return decode(values[0], target, nullable=nullable)

    def first_column(self, target: type[T] = WireValue, *, nullable: bool = False) -> list[T]:  # type: ignore[assignment]
        """First cell of every row, decoded as ``target``."""
        out = []
        for row in self.rows:
            if not row.values:
                raise DecodeError("no columns")
            out.append(decode(row.values[0], target, nullable=nullable))
        return out

    def one_as(self, model: type[T]) -> T:
        """Map the only row onto ``model``.

        Raises:
            DecodeError: If the result does not have exactly one row
        """
        if len(self.rows) != 1:
            raise DecodeError(f"expected 1 row, got {len(self.rows)}", rows=len(self.rows))
        return _validate(model, self.row_as_document(0))

    def rows_as(self, model: type[T]) -> list[T]:
        """Map every row onto ``model`` (dataclass, pydantic model, TypedDict or dict).

        Before Python 3.12 a TypedDict must come from ``typing_extensions``.

        Raises:
            InvalidInputError: If pydantic cannot build a validator for ``model``
            DecodeError: If a row does not validate
        """
        return [_validate(model, doc) for doc in self.documents()]
