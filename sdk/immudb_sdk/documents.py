"""
Document collections for the immudb SDK.

This module wraps the DocumentService:
- DocClient: list/create/delete collections, insert and search documents
- CreateCollection / CollectionField: collection definition builder
- SearchDocuments: search request builder over the JSON query DSL
- build_query(): JSON query DSL -> Query message

Query DSL:
    {
        "collection_name": "users",                 # required
        "limit": 10,                                # default 100
        "order_by": [{"field": "age", "desc": true}],
        "where": {"AND": [{"field": "age", "op": "GT", "value": 30}]}
    }

Example:
    >>> doc = client.doc()
    >>> await (
    ...     CreateCollection("users", document_id_field_name="id")
    ...     .field(CollectionField("id", FieldType.INTEGER))
    ...     .field(CollectionField("email", FieldType.STRING, unique=True))
    ...     .create(doc)
    ... )
    >>> await doc.insert_documents("users", [{"id": 1, "email": "a@example.com"}])
    >>> result = await SearchDocuments({"collection_name": "users"}).execute(doc)

Invariants:
    - Only the flat conjunctive "where": {"AND": [...]} form is accepted
    - Operators are matched case-insensitively by name
    - Document roots are JSON objects
    - A search with a search_id always keeps the server cursor open

How to change safely:
    - Supporting OR means a new expression shape in build_query(), not a
      looser validation of the existing one
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ._generated import (
    ComparisonOperator,
    CreateCollectionRequest,
    DeleteCollectionRequest,
    Field,
    FieldComparison,
    GetCollectionsRequest,
    Index,
    InsertDocumentsRequest,
    OrderByClause,
    Query,
    QueryExpression,
    SearchDocumentsRequest,
)
from ._generated import FieldType as _ProtoFieldType
from ._grpc_client import rpc_errors
from .errors import InvalidInputError
from .structs import from_struct, to_struct, value_to_document

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
DEFAULT_PAGE_SIZE = 50

_U32_MAX = 2**32 - 1
_OPERATORS = ("EQ", "NE", "GT", "GE", "LT", "LE")


class FieldType(Enum):
    """Type of a collection field."""

    STRING = "STRING"
    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    DOUBLE = "DOUBLE"
    UUID = "UUID"

    @classmethod
    def parse(cls, text: str) -> FieldType:
        """Parse a type name; accepts STR, BOOL, INT and FLOAT aliases."""
        name = _FIELD_TYPE_ALIASES.get(text.upper(), text.upper())
        try:
            return cls(name)
        except ValueError:
            raise InvalidInputError(f"unknown field type: {text}", value=text) from None

    def to_proto(self) -> int:
        return _ProtoFieldType.Value(self.value)


_FIELD_TYPE_ALIASES = {"STR": "STRING", "BOOL": "BOOLEAN", "INT": "INTEGER", "FLOAT": "DOUBLE"}


@dataclass(frozen=True)
class CollectionField:
    """A field of a collection.

    Attributes:
        name: Field name
        field_type: Value type
        unique: Create a unique index on the field
        indexed: Create a non-unique index on the field
    """

    name: str
    field_type: FieldType = FieldType.STRING
    unique: bool = False
    indexed: bool = False

    def to_proto(self) -> Any:
        return Field(name=self.name, type=self.field_type.to_proto())

    def index(self) -> Any | None:
        """Index message for this field, or None when it is not indexed."""
        if not (self.indexed or self.unique):
            return None
        return Index(fields=[self.name], isUnique=self.unique)


@dataclass
class CreateCollection:
    """Collection definition builder."""

    name: str
    document_id_field_name: str = ""
    fields: list[CollectionField] = field(default_factory=list)

    def field(self, collection_field: CollectionField) -> CreateCollection:
        """Add a field.

        Returns:
            Self for chaining
        """
        self.fields.append(collection_field)
        return self

    def to_proto(self) -> Any:
        indexes = [idx for idx in (f.index() for f in self.fields) if idx is not None]
        return CreateCollectionRequest(
            name=self.name,
            documentIdFieldName=self.document_id_field_name,
            fields=[f.to_proto() for f in self.fields],
            indexes=indexes,
        )

    async def create(self, doc: DocClient) -> None:
        await doc.create_collection(self)

    @classmethod
    def from_schema(cls, schema: Any) -> CreateCollection:
        """Build a definition from a JSON schema.

        ``{"name": ..., "document_id_field_name": ..., "fields": [{"name",
        "type", "indexed", "unique"}]}``. The id field is always indexed
        and unique.

        Raises:
            InvalidInputError: If the schema is malformed
        """
        if not isinstance(schema, Mapping):
            raise InvalidInputError("root must be an object", value=schema)
        name = _require_str(schema, "name")
        id_field = _require_str(schema, "document_id_field_name")
        fields_json = schema.get("fields")
        if not isinstance(fields_json, list):
            raise InvalidInputError("Missing or invalid 'fields' array")

        definition = cls(name, document_id_field_name=id_field)
        for item in fields_json:
            if not isinstance(item, Mapping):
                raise InvalidInputError("Field definition must be an object", value=item)
            field_name = _require_str(item, "name")
            is_id = field_name == id_field
            definition.field(
                CollectionField(
                    field_name,
                    FieldType.parse(_require_str(item, "type")),
                    unique=item.get("unique") is True or is_id,
                    indexed=item.get("indexed") is True or is_id,
                )
            )
        return definition


def create_collection_from_schema(schema: Any) -> CreateCollection:
    return CreateCollection.from_schema(schema)


def _require_str(mapping: Mapping[str, Any], key: str) -> str:
    value = mapping.get(key)
    if not isinstance(value, str):
        raise InvalidInputError(f"Missing or invalid '{key}'", value=value)
    return value


def _uint32(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U32_MAX:
        raise InvalidInputError(f"'{name}' must be an unsigned 32-bit integer", value=value)
    return value


def _comparison(item: Any) -> Any:
    if not isinstance(item, Mapping):
        raise InvalidInputError("comparison must be an object", value=item)
    field_name = item.get("field")
    if not isinstance(field_name, str):
        raise InvalidInputError("Missing 'field'", value=item)
    op = item.get("op")
    if not isinstance(op, str):
        raise InvalidInputError("Missing 'op'", value=item)
    if op.upper() not in _OPERATORS:
        raise InvalidInputError(f"Unknown comparison operator: {op}", value=op)
    if "value" not in item:
        raise InvalidInputError("Missing 'value'", value=item)
    return FieldComparison(
        field=field_name,
        operator=ComparisonOperator.Value(op.upper()),
        value=value_to_document(item["value"]),
    )


def build_query(query: Any) -> Any:
    """Translate the JSON query DSL into a Query message.

    The AND items become the field comparisons of a single expression.
    The server ORs separate expressions and ANDs the comparisons inside
    one. Malformed order_by items are skipped.

    Raises:
        InvalidInputError: For a malformed query or any combinator other
            than a flat AND list
    """
    if not isinstance(query, Mapping):
        raise InvalidInputError("Query must be a JSON object", value=query)
    collection_name = query.get("collection_name")
    if not isinstance(collection_name, str):
        raise InvalidInputError("Missing 'collection_name'")

    limit = _uint32(query.get("limit", DEFAULT_LIMIT), "limit")

    order_by = []
    clauses = query.get("order_by") or []
    if not isinstance(clauses, list):
        raise InvalidInputError("'order_by' must be an array", value=clauses)
    for clause in clauses:
        if not isinstance(clause, Mapping) or not isinstance(clause.get("field"), str):
            continue
        order_by.append(OrderByClause(field=clause["field"], desc=clause.get("desc") is True))

    expressions = []
    where = query.get("where")
    if where is not None:
        if not isinstance(where, Mapping):
            raise InvalidInputError("'where' must be an object", value=where)
        unsupported = set(where) - {"AND"}
        if unsupported:
            raise InvalidInputError(
                f"unsupported where combinator(s): {', '.join(sorted(unsupported))}",
                value=where,
            )
        conjuncts = where.get("AND", [])
        if not isinstance(conjuncts, list):
            raise InvalidInputError("'AND' must be an array", value=conjuncts)
        if conjuncts:
            expressions.append(QueryExpression(fieldComparisons=[_comparison(item) for item in conjuncts]))

    return Query(
        collectionName=collection_name,
        expressions=expressions,
        orderBy=order_by,
        limit=limit,
    )


@dataclass
class SearchDocuments:
    """Search request builder.

    Attributes:
        query: JSON query DSL
        search_id: Server cursor to continue; empty for a new search
        page: 1-based page number
        page_size: Documents per page
        keep_open: Keep the server cursor open after this page
    """

    query: Any
    search_id: str = ""
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    keep_open: bool = False

    def to_proto(self) -> Any:
        return SearchDocumentsRequest(
            searchId=self.search_id,
            query=build_query(self.query),
            page=_uint32(self.page, "page"),
            pageSize=_uint32(self.page_size, "page_size"),
            keepOpen=self.keep_open or bool(self.search_id),
        )

    async def execute(self, doc: DocClient) -> SearchResult:
        return await doc.search(self)


@dataclass
class CollectionInfo:
    """A collection as described by the server."""

    name: str
    document_id_field_name: str
    fields: list[CollectionField] = field(default_factory=list)

    @classmethod
    def from_proto(cls, proto: Any) -> CollectionInfo:
        unique = {idx.fields[0] for idx in proto.indexes if len(idx.fields) == 1 and idx.isUnique}
        indexed = {name for idx in proto.indexes for name in idx.fields}
        return cls(
            name=proto.name,
            document_id_field_name=proto.documentIdFieldName,
            fields=[
                CollectionField(
                    f.name,
                    FieldType(_ProtoFieldType.Name(f.type)),
                    unique=f.name in unique,
                    indexed=f.name in indexed,
                )
                for f in proto.fields
            ],
        )


@dataclass
class InsertResult:
    """Result of inserting documents."""

    transaction_id: int
    document_ids: list[str] = field(default_factory=list)


@dataclass
class DocumentRevision:
    """A document at a given revision."""

    transaction_id: int
    revision: int
    document: dict[str, Any]


@dataclass
class SearchResult:
    """A page of search results."""

    search_id: str
    revisions: list[DocumentRevision] = field(default_factory=list)

    def documents(self) -> list[dict[str, Any]]:
        return [r.document for r in self.revisions]


class DocClient:
    """Client for document collections over the shared session."""

    def __init__(self, stub: Any) -> None:
        self._stub = stub

    async def list_collections(self) -> list[CollectionInfo]:
        with rpc_errors():
            response = await self._stub.GetCollections(GetCollectionsRequest())
        return [CollectionInfo.from_proto(c) for c in response.collections]

    async def create_collection(self, definition: CreateCollection) -> None:
        with rpc_errors():
            await self._stub.CreateCollection(definition.to_proto())
        logger.debug(f"Created collection {definition.name}")

    async def delete_collection(self, name: str) -> None:
        with rpc_errors():
            await self._stub.DeleteCollection(DeleteCollectionRequest(name=name))
        logger.debug(f"Deleted collection {name}")

    async def insert_documents(
        self,
        collection: str,
        documents: Sequence[Mapping[str, Any]],
    ) -> InsertResult:
        """Insert documents into ``collection``.

        Raises:
            InvalidInputError: If a document is not a JSON object
        """
        structs = []
        for document in documents:
            if not isinstance(document, Mapping):
                raise InvalidInputError("root of document must be a JSON object", value=document)
            structs.append(to_struct(document))
        with rpc_errors():
            response = await self._stub.InsertDocuments(
                InsertDocumentsRequest(collectionName=collection, documents=structs)
            )
        return InsertResult(
            transaction_id=response.transactionId,
            document_ids=list(response.documentIds),
        )

    async def search(self, request: SearchDocuments) -> SearchResult:
        proto = request.to_proto()
        with rpc_errors():
            response = await self._stub.SearchDocuments(proto)
        return SearchResult(
            search_id=response.searchId,
            revisions=[
                DocumentRevision(
                    transaction_id=r.transactionId,
                    revision=r.revision,
                    document=from_struct(r.document),
                )
                for r in response.revisions
            ],
        )
