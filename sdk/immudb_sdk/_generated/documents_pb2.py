# mypy: ignore-errors
"""Messages of the ``immudb.model`` package used by the document API."""

from __future__ import annotations

from ._builder import (
    BOOL,
    ENUM,
    MESSAGE,
    STRING,
    UINT32,
    UINT64,
    enum,
    enum_wrapper,
    field,
    message,
    message_class,
    register,
)

_P = ".immudb.model."
_STRUCT = ".google.protobuf.Struct"

DESCRIPTOR = register(
    "immudb/documents.proto",
    "immudb.model",
    messages=[
        message("Field", field("name", 1, STRING), field("type", 2, ENUM, type_name=_P + "FieldType")),
        message("Index", field("fields", 1, STRING, repeated=True), field("isUnique", 2, BOOL)),
        message(
            "Collection",
            field("name", 1, STRING),
            field("documentIdFieldName", 2, STRING),
            field("fields", 3, MESSAGE, repeated=True, type_name=_P + "Field"),
            field("indexes", 4, MESSAGE, repeated=True, type_name=_P + "Index"),
        ),
        message(
            "CreateCollectionRequest",
            field("name", 1, STRING),
            field("documentIdFieldName", 2, STRING),
            field("fields", 3, MESSAGE, repeated=True, type_name=_P + "Field"),
            field("indexes", 4, MESSAGE, repeated=True, type_name=_P + "Index"),
        ),
        message("CreateCollectionResponse"),
        message("GetCollectionsRequest"),
        message(
            "GetCollectionsResponse",
            field("collections", 1, MESSAGE, repeated=True, type_name=_P + "Collection"),
        ),
        message("DeleteCollectionRequest", field("name", 1, STRING)),
        message("DeleteCollectionResponse"),
        message(
            "InsertDocumentsRequest",
            field("collectionName", 1, STRING),
            field("documents", 2, MESSAGE, repeated=True, type_name=_STRUCT),
        ),
        message(
            "InsertDocumentsResponse",
            field("transactionId", 1, UINT64),
            field("documentIds", 2, STRING, repeated=True),
        ),
        message(
            "FieldComparison",
            field("field", 1, STRING),
            field("operator", 2, ENUM, type_name=_P + "ComparisonOperator"),
            field("value", 3, MESSAGE, type_name=".google.protobuf.Value"),
        ),
        message(
            "QueryExpression",
            field("fieldComparisons", 1, MESSAGE, repeated=True, type_name=_P + "FieldComparison"),
        ),
        message("OrderByClause", field("field", 1, STRING), field("desc", 2, BOOL)),
        message(
            "Query",
            field("collectionName", 1, STRING),
            field("expressions", 2, MESSAGE, repeated=True, type_name=_P + "QueryExpression"),
            field("orderBy", 3, MESSAGE, repeated=True, type_name=_P + "OrderByClause"),
            field("limit", 4, UINT32),
        ),
        message(
            "SearchDocumentsRequest",
            field("searchId", 1, STRING),
            field("query", 2, MESSAGE, type_name=_P + "Query"),
            field("page", 3, UINT32),
            field("pageSize", 4, UINT32),
            field("keepOpen", 5, BOOL),
        ),
        message(
            "DocumentAtRevision",
            field("transactionId", 1, UINT64),
            field("revision", 2, UINT64),
            field("document", 4, MESSAGE, type_name=_STRUCT),
        ),
        message(
            "SearchDocumentsResponse",
            field("searchId", 1, STRING),
            field("revisions", 2, MESSAGE, repeated=True, type_name=_P + "DocumentAtRevision"),
        ),
    ],
    enums=[
        enum("FieldType", "STRING", "BOOLEAN", "INTEGER", "DOUBLE", "UUID"),
        enum("ComparisonOperator", "EQ", "NE", "LT", "LE", "GT", "GE", "LIKE", "NOT_LIKE"),
    ],
)

FieldType = enum_wrapper(DESCRIPTOR, "FieldType")
ComparisonOperator = enum_wrapper(DESCRIPTOR, "ComparisonOperator")

Field = message_class(DESCRIPTOR, "Field")
Index = message_class(DESCRIPTOR, "Index")
Collection = message_class(DESCRIPTOR, "Collection")
CreateCollectionRequest = message_class(DESCRIPTOR, "CreateCollectionRequest")
CreateCollectionResponse = message_class(DESCRIPTOR, "CreateCollectionResponse")
GetCollectionsRequest = message_class(DESCRIPTOR, "GetCollectionsRequest")
GetCollectionsResponse = message_class(DESCRIPTOR, "GetCollectionsResponse")
DeleteCollectionRequest = message_class(DESCRIPTOR, "DeleteCollectionRequest")
DeleteCollectionResponse = message_class(DESCRIPTOR, "DeleteCollectionResponse")
InsertDocumentsRequest = message_class(DESCRIPTOR, "InsertDocumentsRequest")
InsertDocumentsResponse = message_class(DESCRIPTOR, "InsertDocumentsResponse")
FieldComparison = message_class(DESCRIPTOR, "FieldComparison")
QueryExpression = message_class(DESCRIPTOR, "QueryExpression")
OrderByClause = message_class(DESCRIPTOR, "OrderByClause")
Query = message_class(DESCRIPTOR, "Query")
SearchDocumentsRequest = message_class(DESCRIPTOR, "SearchDocumentsRequest")
DocumentAtRevision = message_class(DESCRIPTOR, "DocumentAtRevision")
SearchDocumentsResponse = message_class(DESCRIPTOR, "SearchDocumentsResponse")
