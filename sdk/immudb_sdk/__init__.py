"""
immudb Python SDK - asyncio client library for the immudb database.

This SDK provides a typed, session-aware interface to immudb over gRPC:
- ImmuClient for connecting and managing the session
- SqlClient for statements, queries and transactions
- DocClient for document collections
- A value codec between Python types and the wire representation

Example:
    >>> from immudb_sdk import ImmuClient, Params
    >>>
    >>> async with ImmuClient("localhost:3322") as client:
    ...     sql = client.sql()
    ...     await sql.exec(
    ...         "INSERT INTO users(id, name) VALUES (@id, @name)",
    ...         Params().bind("id", 7).bind("name", "alice"),
    ...     )
    ...     names = await sql.query_col("SELECT name FROM users", str)

Invariants:
    - One session and one liveness task per connected client
    - Statements inside a transaction always carry its id
    - Nothing in the SDK retries on failure

Version: 0.1.0
"""

__version__ = "0.1.0"

from .client import DatabaseInfo, ImmuClient
from .codec import WireKind, WireValue, decode, encode
from .config import ConnectOptions
from .documents import (
    CollectionField,
    CollectionInfo,
    CreateCollection,
    DocClient,
    DocumentRevision,
    FieldType,
    InsertResult,
    SearchDocuments,
    SearchResult,
    build_query,
    create_collection_from_schema,
)
from .errors import (
    DecodeError,
    ImmuDbError,
    InvalidInputError,
    ProtocolError,
    TransportError,
    TypeMismatchError,
    UnexpectedError,
)
from .params import BoundParam, Params
from .results import Column, QueryResult, Row, normalize_column, row_to_document
from .session import Credentials, LivenessTask, Session, SessionInterceptor
from .sql import CommittedTx, ExecResult, SqlClient, TxMode, TxState
from .structs import document_to_value, from_struct, to_struct, value_to_document

__all__ = [
    # Version
    "__version__",
    # Client
    "ImmuClient",
    "ConnectOptions",
    "DatabaseInfo",
    # Session
    "Credentials",
    "Session",
    "SessionInterceptor",
    "LivenessTask",
    # SQL
    "SqlClient",
    "TxMode",
    "TxState",
    "ExecResult",
    "CommittedTx",
    "Params",
    "BoundParam",
    "QueryResult",
    "Column",
    "Row",
    "normalize_column",
    "row_to_document",
    # Codec
    "WireKind",
    "WireValue",
    "encode",
    "decode",
    "value_to_document",
    "document_to_value",
    "to_struct",
    "from_struct",
    # Documents
    "DocClient",
    "CreateCollection",
    "CollectionField",
    "CollectionInfo",
    "FieldType",
    "SearchDocuments",
    "SearchResult",
    "DocumentRevision",
    "InsertResult",
    "build_query",
    "create_collection_from_schema",
    # Errors
    "ImmuDbError",
    "TransportError",
    "ProtocolError",
    "DecodeError",
    "TypeMismatchError",
    "InvalidInputError",
    "UnexpectedError",
]
