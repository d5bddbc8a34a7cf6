# mypy: ignore-errors
"""Protocol messages and stubs for the immudb SDK.

The immudb ``schema`` and ``model`` messages are declared as descriptor
protos in this package instead of being produced by protoc.

This module is internal to the SDK. Users should not import from here.
"""

from .documents_pb2 import (
    Collection,
    ComparisonOperator,
    # Collections
    CreateCollectionRequest,
    DeleteCollectionRequest,
    DocumentAtRevision,
    Field,
    FieldComparison,
    FieldType,
    GetCollectionsRequest,
    Index,
    # Documents
    InsertDocumentsRequest,
    InsertDocumentsResponse,
    OrderByClause,
    Query,
    QueryExpression,
    SearchDocumentsRequest,
)
from .schema_pb2 import (
    CommittedSQLTx,
    # Session
    Database,
    DatabaseInfo,
    DatabaseListRequestV2,
    NamedParam,
    # Transactions
    NewTxRequest,
    OpenSessionRequest,
    # SQL
    SQLExecRequest,
    SQLExecResult,
    SQLQueryRequest,
    SQLQueryResult,
    SQLValue,
    TxMode,
)
from .services import DocumentServiceStub, ImmuServiceStub

__all__ = [
    "OpenSessionRequest",
    "Database",
    "DatabaseInfo",
    "DatabaseListRequestV2",
    "NewTxRequest",
    "TxMode",
    "CommittedSQLTx",
    "SQLExecRequest",
    "SQLExecResult",
    "SQLQueryRequest",
    "SQLQueryResult",
    "SQLValue",
    "NamedParam",
    "CreateCollectionRequest",
    "DeleteCollectionRequest",
    "GetCollectionsRequest",
    "Collection",
    "Field",
    "FieldType",
    "Index",
    "InsertDocumentsRequest",
    "InsertDocumentsResponse",
    "SearchDocumentsRequest",
    "DocumentAtRevision",
    "Query",
    "QueryExpression",
    "FieldComparison",
    "ComparisonOperator",
    "OrderByClause",
    "ImmuServiceStub",
    "DocumentServiceStub",
]
