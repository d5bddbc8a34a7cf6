# mypy: ignore-errors
"""Messages of the ``immudb.schema`` package used by the SQL and session APIs.

Only the fields the SDK reads or writes are declared; unknown fields sent by
newer servers are skipped by the protobuf runtime.
"""

from __future__ import annotations

from ._builder import (
    BOOL,
    BYTES,
    DOUBLE,
    ENUM,
    INT32,
    INT64,
    MESSAGE,
    STRING,
    UINT32,
    UINT64,
    enum,
    enum_wrapper,
    field,
    map_entry,
    message,
    message_class,
    register,
)

_P = ".immudb.schema."

DESCRIPTOR = register(
    "immudb/schema.proto",
    "immudb.schema",
    messages=[
        message(
            "OpenSessionRequest",
            field("username", 1, BYTES),
            field("password", 2, BYTES),
            field("databaseName", 3, STRING),
        ),
        message(
            "OpenSessionResponse",
            field("sessionID", 1, STRING),
            field("serverUUID", 2, STRING),
        ),
        message("Database", field("databaseName", 1, STRING)),
        message("UseDatabaseReply", field("token", 1, STRING)),
        message("DatabaseListRequestV2"),
        message(
            "DatabaseInfo",
            field("name", 1, STRING),
            field("loaded", 3, BOOL),
            field("diskSize", 4, UINT64),
            field("numTransactions", 5, UINT64),
            field("createdAt", 6, UINT64),
            field("createdBy", 7, STRING),
        ),
        message(
            "DatabaseListResponseV2",
            field("databases", 1, MESSAGE, repeated=True, type_name=_P + "DatabaseInfo"),
        ),
        message("NewTxRequest", field("mode", 1, ENUM, type_name=_P + "TxMode")),
        message("NewTxResponse", field("transactionID", 1, STRING)),
        message(
            "SQLValue",
            field("null", 1, ENUM, type_name=".google.protobuf.NullValue", oneof_index=0),
            field("n", 2, INT64, oneof_index=0),
            field("s", 3, STRING, oneof_index=0),
            field("b", 4, BOOL, oneof_index=0),
            field("bs", 5, BYTES, oneof_index=0),
            field("ts", 6, INT64, oneof_index=0),
            field("f", 7, DOUBLE, oneof_index=0),
            oneofs=("value",),
        ),
        message(
            "NamedParam",
            field("name", 1, STRING),
            field("value", 2, MESSAGE, type_name=_P + "SQLValue"),
        ),
        message(
            "SQLExecRequest",
            field("sql", 1, STRING),
            field("params", 2, MESSAGE, repeated=True, type_name=_P + "NamedParam"),
            field("noWait", 3, BOOL),
        ),
        message(
            "TxHeader",
            field("id", 1, UINT64),
            field("ts", 3, INT64),
            field("nentries", 4, INT32),
        ),
        message(
            "CommittedSQLTx",
            field("header", 1, MESSAGE, type_name=_P + "TxHeader"),
            field("updatedRows", 2, UINT32),
            field(
                "lastInsertedPKs",
                3,
                MESSAGE,
                repeated=True,
                type_name=_P + "CommittedSQLTx.LastInsertedPKsEntry",
            ),
            field(
                "firstInsertedPKs",
                4,
                MESSAGE,
                repeated=True,
                type_name=_P + "CommittedSQLTx.FirstInsertedPKsEntry",
            ),
            nested=(
                map_entry("LastInsertedPKsEntry", MESSAGE, value_type_name=_P + "SQLValue"),
                map_entry("FirstInsertedPKsEntry", MESSAGE, value_type_name=_P + "SQLValue"),
            ),
        ),
        message(
            "SQLExecResult",
            field("txs", 5, MESSAGE, repeated=True, type_name=_P + "CommittedSQLTx"),
            field("ongoingTx", 6, BOOL),
        ),
        message(
            "SQLQueryRequest",
            field("sql", 1, STRING),
            field("params", 2, MESSAGE, repeated=True, type_name=_P + "NamedParam"),
            field("reuseSnapshot", 3, BOOL),
            field("acceptStream", 4, BOOL),
        ),
        message("Column", field("name", 1, STRING), field("type", 2, STRING)),
        message(
            "Row",
            field("columns", 1, STRING, repeated=True),
            field("values", 2, MESSAGE, repeated=True, type_name=_P + "SQLValue"),
        ),
        message(
            "SQLQueryResult",
            field("rows", 1, MESSAGE, repeated=True, type_name=_P + "Row"),
            field("columns", 2, MESSAGE, repeated=True, type_name=_P + "Column"),
        ),
    ],
    enums=[enum("TxMode", "ReadOnly", "WriteOnly", "ReadWrite")],
)

TxMode = enum_wrapper(DESCRIPTOR, "TxMode")

OpenSessionRequest = message_class(DESCRIPTOR, "OpenSessionRequest")
OpenSessionResponse = message_class(DESCRIPTOR, "OpenSessionResponse")
Database = message_class(DESCRIPTOR, "Database")
UseDatabaseReply = message_class(DESCRIPTOR, "UseDatabaseReply")
DatabaseListRequestV2 = message_class(DESCRIPTOR, "DatabaseListRequestV2")
DatabaseInfo = message_class(DESCRIPTOR, "DatabaseInfo")
DatabaseListResponseV2 = message_class(DESCRIPTOR, "DatabaseListResponseV2")
NewTxRequest = message_class(DESCRIPTOR, "NewTxRequest")
NewTxResponse = message_class(DESCRIPTOR, "NewTxResponse")
SQLValue = message_class(DESCRIPTOR, "SQLValue")
NamedParam = message_class(DESCRIPTOR, "NamedParam")
SQLExecRequest = message_class(DESCRIPTOR, "SQLExecRequest")
TxHeader = message_class(DESCRIPTOR, "TxHeader")
CommittedSQLTx = message_class(DESCRIPTOR, "CommittedSQLTx")
SQLExecResult = message_class(DESCRIPTOR, "SQLExecResult")
SQLQueryRequest = message_class(DESCRIPTOR, "SQLQueryRequest")
Column = message_class(DESCRIPTOR, "Column")
Row = message_class(DESCRIPTOR, "Row")
SQLQueryResult = message_class(DESCRIPTOR, "SQLQueryResult")
