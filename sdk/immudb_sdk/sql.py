"""
Transactional SQL execution for the immudb SDK.

This module provides SqlClient, which issues statements and queries over
the authenticated channel and owns the transaction state machine:

    AUTOCOMMIT --begin()--> IN_TRANSACTION --commit()/rollback()--> AUTOCOMMIT

Example:
    >>> sql = client.sql()
    >>> await sql.exec("CREATE TABLE users(id INTEGER, name VARCHAR, PRIMARY KEY id)")
    >>> await sql.exec(
    ...     "INSERT INTO users(id, name) VALUES (@id, @name)",
    ...     {"id": 7, "name": "alice"},
    ... )
    >>> users = await sql.query_as("SELECT id, name FROM users", User)

    >>> async def transfer(tx: SqlClient) -> None:
    ...     await tx.exec("UPDATE accounts SET balance = balance - 10 WHERE id = 1")
    ...     await tx.exec("UPDATE accounts SET balance = balance + 10 WHERE id = 2")
    >>> await sql.with_transaction(transfer)

Invariants:
    - While a transaction is open every call carries its id as metadata
    - commit() and rollback() always leave the client in AUTOCOMMIT
    - Only rollback failures are swallowed
    - query() returns everything or raises; partial streams are dropped
    - A SqlClient is not safe for concurrent use; create one per task

How to change safely:
    - Every RPC goes through rpc_errors()
    - Read helpers must stay pure post-processing over QueryResult
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from google.protobuf import empty_pb2

from ._generated import NewTxRequest, SQLExecRequest, SQLQueryRequest
from ._generated import TxMode as _ProtoTxMode
from ._grpc_client import rpc_errors
from .codec import WireValue, wire_from_proto
from .errors import ImmuDbError, UnexpectedError
from .params import to_params
from .results import Column, QueryResult, Row
from .session import TRANSACTION_ID_KEY, is_ascii_metadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TxState(Enum):
    """Transaction state of a SqlClient."""

    AUTOCOMMIT = "autocommit"
    IN_TRANSACTION = "in_transaction"


class TxMode(Enum):
    """Access mode requested when a transaction is opened."""

    READ_ONLY = "ReadOnly"
    WRITE_ONLY = "WriteOnly"
    READ_WRITE = "ReadWrite"

    def to_proto(self) -> int:
        return _ProtoTxMode.Value(self.value)


@dataclass
class CommittedTx:
    """A transaction committed by the server.

    Attributes:
        tx_id: Transaction number
        ts: Commit timestamp (Unix seconds)
        entries: Number of entries written
        updated_rows: Rows touched by the statement
        last_inserted_pks: Last primary key inserted per table
        first_inserted_pks: First primary key inserted per table
    """

    tx_id: int
    ts: int = 0
    entries: int = 0
    updated_rows: int = 0
    last_inserted_pks: dict[str, WireValue] = field(default_factory=dict)
    first_inserted_pks: dict[str, WireValue] = field(default_factory=dict)

    @classmethod
    def from_proto(cls, proto: Any) -> CommittedTx:
        return cls(
            tx_id=proto.header.id,
            ts=proto.header.ts,
            entries=proto.header.nentries,
            updated_rows=proto.updatedRows,
            last_inserted_pks={k: wire_from_proto(v) for k, v in proto.lastInsertedPKs.items()},
            first_inserted_pks={k: wire_from_proto(v) for k, v in proto.firstInsertedPKs.items()},
        )


@dataclass
class ExecResult:
    """Result of a statement executed in autocommit mode."""

    txs: list[CommittedTx] = field(default_factory=list)
    ongoing_tx: bool = False

    @classmethod
    def from_proto(cls, proto: Any) -> ExecResult:
        return cls(
            txs=[CommittedTx.from_proto(tx) for tx in proto.txs],
            ongoing_tx=proto.ongoingTx,
        )

    @property
    def updated_rows(self) -> int:
        return sum(tx.updated_rows for tx in self.txs)

    def last_inserted_pk(self, table: str) -> WireValue | None:
        for tx in reversed(self.txs):
            if table in tx.last_inserted_pks:
                return tx.last_inserted_pks[table]
        return None


class SqlClient:
    """Executes SQL statements, optionally inside a transaction.

    Obtain instances from ImmuClient.sql(); each call returns a fresh
    client with its own transaction state over the shared session.
    """

    def __init__(self, stub: Any) -> None:
        """Initialize the client.

        Args:
            stub: ImmuService stub on an authenticated channel
        """
        self._stub = stub
        self._tx_id: str | None = None

    @property
    def state(self) -> TxState:
        return TxState.AUTOCOMMIT if self._tx_id is None else TxState.IN_TRANSACTION

    @property
    def transaction_id(self) -> str | None:
        return self._tx_id

    @property
    def in_transaction(self) -> bool:
        return self._tx_id is not None

    def _tx_metadata(self) -> tuple[tuple[str, str], ...]:
        return ((TRANSACTION_ID_KEY, self._tx_id),)

    async def exec(self, sql: str, params: Any = None) -> ExecResult | None:
        """Execute a statement.

        Args:
            sql: Statement text with @name placeholders
            params: Params, mapping, dataclass, pydantic model or None

        Returns:
            ExecResult in autocommit mode, None inside a transaction
        """
        request = SQLExecRequest(sql=sql, params=to_params(params).to_proto())
        if self._tx_id is None:
            with rpc_errors():
                response = await self._stub.SQLExec(request)
            return ExecResult.from_proto(response)

        with rpc_errors():
            await self._stub.TxSQLExec(request, metadata=self._tx_metadata())
        return None

    async def query(self, sql: str, params: Any = None) -> QueryResult:
        """Run a query and collect the whole streamed result.

        Columns come from the first chunk that carries any; rows are kept
        in arrival order.
        """
        request = SQLQueryRequest(
            sql=sql,
            params=to_params(params).to_proto(),
            acceptStream=True,
        )
        columns: list[Column] = []
        rows: list[Row] = []
        with rpc_errors():
            if self._tx_id is None:
                call = self._stub.SQLQuery(request)
            else:
                call = self._stub.TxSQLQuery(request, metadata=self._tx_metadata())
            async for chunk in call:
                if not columns and chunk.columns:
                    columns = [Column.from_proto(c) for c in chunk.columns]
                rows.extend(Row.from_proto(r) for r in chunk.rows)
        return QueryResult(columns=columns, rows=rows)

    async def begin(self, mode: TxMode = TxMode.READ_WRITE) -> str:
        """Open a transaction.

        Returns:
            The server-issued transaction id

        Raises:
            UnexpectedError: If a transaction is already open or the id is
                not valid metadata
        """
        if self._tx_id is not None:
            raise UnexpectedError(f"transaction {self._tx_id} is already open")
        with rpc_errors():
            response = await self._stub.NewTx(NewTxRequest(mode=mode.to_proto()))
        tx_id = response.transactionID
        if not tx_id or not is_ascii_metadata(tx_id):
            raise UnexpectedError(f"server returned an invalid transaction id: {tx_id!r}")
        self._tx_id = tx_id
        logger.debug(f"Began {mode.value} transaction {tx_id}")
        return tx_id

    async def commit(self) -> CommittedTx | None:
        """Commit the open transaction; no-op in autocommit.

        The transaction is cleared even when the RPC fails.
        """
        if self._tx_id is None:
            return None
        tx_id = self._tx_id
        try:
            with rpc_errors():
                response = await self._stub.Commit(empty_pb2.Empty(), metadata=self._tx_metadata())
        finally:
            self._tx_id = None
        logger.debug(f"Committed transaction {tx_id}")
        return CommittedTx.from_proto(response)

    async def rollback(self) -> None:
        """Roll back the open transaction; no-op in autocommit.

        RPC failures are logged and swallowed.
        """
        if self._tx_id is None:
            return
        tx_id = self._tx_id
        try:
            with rpc_errors():
                await self._stub.Rollback(empty_pb2.Empty(), metadata=self._tx_metadata())
        except ImmuDbError as e:
            logger.warning(f"Rollback of transaction {tx_id} failed: {e}")
        finally:
            self._tx_id = None

    async def with_transaction(
        self,
        body: Callable[[SqlClient], Awaitable[T]],
        mode: TxMode = TxMode.READ_WRITE,
    ) -> T:
        """Run ``body`` inside a transaction.

        Commits when ``body`` returns; on any exception rolls back and
        re-raises the original exception.
        """
        await self.begin(mode)
        try:
            result = await body(self)
        except BaseException:
            await self.rollback()
            raise
        await self.commit()
        return result

    async def query_scalar(
        self, sql: str, target: type[T] = WireValue, params: Any = None  # type: ignore[assignment]
    ) -> T:
        return (await self.query(sql, params)).scalar(target)

    async def query_col(
        self, sql: str, target: type[T] = WireValue, params: Any = None  # type: ignore[assignment]
    ) -> list[T]:
        return (await self.query(sql, params)).first_column(target)

    async def query_one_as(self, sql: str, model: type[T], params: Any = None) -> T:
        return (await self.query(sql, params)).one_as(model)

    async def query_as(self, sql: str, model: type[T], params: Any = None) -> list[T]:
        return (await self.query(sql, params)).rows_as(model)

    def __repr__(self) -> str:
        return f"SqlClient(state={self.state.value}, transaction_id={self._tx_id!r})"
