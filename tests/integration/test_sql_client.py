"""
Integration tests for SqlClient with a fake ImmuService stub.

Tests cover:
- Autocommit statements and parameter binding
- Transaction lifecycle and metadata threading
- Streamed query aggregation
- with_transaction commit and rollback paths
- Read helpers over query results
"""

import logging
from dataclasses import dataclass
from unittest.mock import AsyncMock, MagicMock

import grpc
import pytest

from sdk.immudb_sdk._generated import SQLQueryResult, SQLValue, TxMode
from sdk.immudb_sdk._generated.schema_pb2 import (
    CommittedSQLTx,
    NewTxResponse,
    SQLExecResult,
    TxHeader,
)
from sdk.immudb_sdk.codec import WireKind, WireValue, wire_from_proto
from sdk.immudb_sdk.errors import (
    DecodeError,
    ProtocolError,
    TransportError,
    TypeMismatchError,
    UnexpectedError,
)
from sdk.immudb_sdk.params import Params
from sdk.immudb_sdk.sql import SqlClient, TxMode as SqlTxMode, TxState

TX_METADATA = (("transactionid", "tx-1"),)


def rpc_error(code: grpc.StatusCode, details: str = "failed") -> grpc.aio.AioRpcError:
    return grpc.aio.AioRpcError(code, grpc.aio.Metadata(), grpc.aio.Metadata(), details=details)


class FakeStream:
    """Server-streaming call that yields chunks, then optionally fails."""

    def __init__(self, chunks, error=None):
        self._chunks = chunks
        self._error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


def int_chunk(*values, columns=()):
    chunk = SQLQueryResult()
    for name, type_ in columns:
        chunk.columns.add(name=name, type=type_)
    for value in values:
        chunk.rows.add().values.add(n=value)
    return chunk


def make_stub():
    stub = MagicMock()
    committed = CommittedSQLTx(header=TxHeader(id=42, ts=1700000000, nentries=1), updatedRows=1)
    committed.lastInsertedPKs["users"].CopyFrom(SQLValue(n=7))
    stub.SQLExec = AsyncMock(return_value=SQLExecResult(txs=[committed]))
    stub.TxSQLExec = AsyncMock()
    stub.NewTx = AsyncMock(return_value=NewTxResponse(transactionID="tx-1"))
    stub.Commit = AsyncMock(return_value=CommittedSQLTx(header=TxHeader(id=43)))
    stub.Rollback = AsyncMock()
    stub.SQLQuery = MagicMock(return_value=FakeStream([]))
    stub.TxSQLQuery = MagicMock(return_value=FakeStream([]))
    return stub


@dataclass
class User:
    id: int
    name: str


class TestAutocommit:
    """Tests for statements outside a transaction."""

    @pytest.fixture
    def stub(self):
        return make_stub()

    @pytest.mark.asyncio
    async def test_insert_binds_params_in_order(self, stub):
        """Bound parameters reach the server in declaration order."""
        sql = SqlClient(stub)

        await sql.exec(
            "INSERT INTO users(id, name) VALUES (@id, @name)",
            {"id": 7, "name": "alice"},
        )

        request = stub.SQLExec.call_args.args[0]
        assert request.sql == "INSERT INTO users(id, name) VALUES (@id, @name)"
        assert [p.name for p in request.params] == ["id", "name"]
        assert [wire_from_proto(p.value) for p in request.params] == [
            WireValue(WireKind.INTEGER, 7),
            WireValue(WireKind.STRING, "alice"),
        ]

    @pytest.mark.asyncio
    async def test_exec_returns_result(self, stub):
        """Autocommit exec returns the committed transactions."""
        result = await SqlClient(stub).exec("INSERT INTO users(id) VALUES (7)")

        assert result.updated_rows == 1
        assert result.txs[0].tx_id == 42
        assert result.last_inserted_pk("users") == WireValue.int64(7)
        assert result.last_inserted_pk("other") is None
        assert "metadata" not in stub.SQLExec.call_args.kwargs

    @pytest.mark.asyncio
    async def test_exec_server_error(self, stub):
        """Server failures surface as ProtocolError."""
        stub.SQLExec.side_effect = rpc_error(grpc.StatusCode.INVALID_ARGUMENT, "table does not exist")

        with pytest.raises(ProtocolError) as exc_info:
            await SqlClient(stub).exec("DELETE FROM missing")

        assert exc_info.value.server_details == "table does not exist"

    @pytest.mark.asyncio
    async def test_commit_and_rollback_are_noops(self, stub):
        """commit() and rollback() without a transaction do nothing."""
        sql = SqlClient(stub)

        assert await sql.commit() is None
        await sql.rollback()

        stub.Commit.assert_not_awaited()
        stub.Rollback.assert_not_awaited()
        assert sql.state is TxState.AUTOCOMMIT


class TestTransactionLifecycle:
    """Tests for begin/commit/rollback."""

    @pytest.fixture
    def stub(self):
        return make_stub()

    @pytest.mark.asyncio
    async def test_begin_commit(self, stub):
        """begin then commit returns to autocommit."""
        sql = SqlClient(stub)

        assert await sql.begin() == "tx-1"
        assert sql.state is TxState.IN_TRANSACTION
        assert stub.NewTx.call_args.args[0].mode == TxMode.Value("ReadWrite")

        committed = await sql.commit()

        assert committed.tx_id == 43
        assert stub.Commit.call_args.kwargs["metadata"] == TX_METADATA
        assert sql.state is TxState.AUTOCOMMIT
        assert sql.transaction_id is None

        await sql.exec("SELECT 1")
        assert "metadata" not in stub.SQLExec.call_args.kwargs
        stub.TxSQLExec.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_begin_rollback(self, stub):
        """begin then rollback returns to autocommit."""
        sql = SqlClient(stub)
        await sql.begin(SqlTxMode.READ_ONLY)

        await sql.rollback()

        assert stub.NewTx.call_args.args[0].mode == TxMode.Value("ReadOnly")
        assert stub.Rollback.call_args.kwargs["metadata"] == TX_METADATA
        assert sql.state is TxState.AUTOCOMMIT

        await sql.query("SELECT 1")
        stub.SQLQuery.assert_called_once()
        stub.TxSQLQuery.assert_not_called()

    @pytest.mark.asyncio
    async def test_statements_carry_transaction_id(self, stub):
        """Statements inside a transaction use the tx RPCs and metadata."""
        sql = SqlClient(stub)
        await sql.begin()

        result = await sql.exec("INSERT INTO t(id) VALUES (@id)", Params().bind("id", 1))
        await sql.query("SELECT * FROM t")

        assert result is None
        stub.SQLExec.assert_not_awaited()
        assert stub.TxSQLExec.call_args.kwargs["metadata"] == TX_METADATA
        assert stub.TxSQLQuery.call_args.kwargs["metadata"] == TX_METADATA

    @pytest.mark.asyncio
    async def test_begin_twice(self, stub):
        """A second begin() is an invariant violation."""
        sql = SqlClient(stub)
        await sql.begin()

        with pytest.raises(UnexpectedError):
            await sql.begin()

        assert sql.transaction_id == "tx-1"
        assert stub.NewTx.await_count == 1

    @pytest.mark.asyncio
    async def test_begin_non_ascii_id(self, stub):
        """A transaction id that cannot be metadata leaves state unchanged."""
        stub.NewTx.return_value = NewTxResponse(transactionID="tx-é")
        sql = SqlClient(stub)

        with pytest.raises(UnexpectedError):
            await sql.begin()

        assert sql.state is TxState.AUTOCOMMIT

    @pytest.mark.asyncio
    async def test_commit_failure_still_clears(self, stub):
        """A failed commit propagates but abandons the transaction."""
        stub.Commit.side_effect = rpc_error(grpc.StatusCode.ABORTED, "conflict")
        sql = SqlClient(stub)
        await sql.begin()

        with pytest.raises(ProtocolError):
            await sql.commit()

        assert sql.state is TxState.AUTOCOMMIT

    @pytest.mark.asyncio
    async def test_rollback_failure_swallowed(self, stub, caplog):
        """A failed rollback is logged, not raised."""
        stub.Rollback.side_effect = rpc_error(grpc.StatusCode.UNAVAILABLE)
        sql = SqlClient(stub)
        await sql.begin()

        with caplog.at_level(logging.WARNING, logger="sdk.immudb_sdk.sql"):
            await sql.rollback()

        assert sql.state is TxState.AUTOCOMMIT
        assert "Rollback of transaction tx-1 failed" in caplog.text


class TestQueryAggregation:
    """Tests for streamed query results."""

    @pytest.fixture
    def stub(self):
        return make_stub()

    @pytest.mark.asyncio
    async def test_three_chunks(self, stub):
        """Columns come from the first chunk; rows keep chunk-then-row order."""
        stub.SQLQuery.return_value = FakeStream(
            [
                int_chunk(1, 2, columns=[("id", "INT")]),
                int_chunk(3, 4),
                int_chunk(5, 6),
            ]
        )

        result = await SqlClient(stub).query("SELECT id FROM t")

        assert [(c.name, c.type) for c in result.columns] == [("id", "INT")]
        assert len(result) == 6
        assert result.first_column(int) == [1, 2, 3, 4, 5, 6]
        assert stub.SQLQuery.call_args.args[0].acceptStream

    @pytest.mark.asyncio
    async def test_later_columns_ignored(self, stub):
        stub.SQLQuery.return_value = FakeStream(
            [
                int_chunk(columns=[("a", "INT")]),
                int_chunk(1, columns=[("b", "INT")]),
            ]
        )

        result = await SqlClient(stub).query("SELECT a FROM t")

        assert [c.name for c in result.columns] == ["a"]
        assert result.documents() == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_stream_error_discards_partial(self, stub):
        """A failure mid-stream raises instead of returning partial rows."""
        stub.SQLQuery.return_value = FakeStream(
            [int_chunk(1, columns=[("id", "INT")])],
            error=rpc_error(grpc.StatusCode.UNAVAILABLE, "connection reset"),
        )

        with pytest.raises(TransportError):
            await SqlClient(stub).query("SELECT id FROM t")

    @pytest.mark.asyncio
    async def test_bool_cell_as_str(self, stub):
        """Decoding a boolean cell as str names bool."""
        chunk = SQLQueryResult()
        chunk.columns.add(name="active", type="BOOLEAN")
        chunk.rows.add().values.add(b=True)
        stub.SQLQuery.return_value = FakeStream([chunk])

        with pytest.raises(TypeMismatchError) as exc_info:
            await SqlClient(stub).query_scalar("SELECT active FROM t", str)

        assert exc_info.value.actual == "bool"


class TestWithTransaction:
    """Tests for with_transaction()."""

    @pytest.fixture
    def stub(self):
        return make_stub()

    @pytest.mark.asyncio
    async def test_commits_and_returns_value(self, stub):
        sql = SqlClient(stub)

        async def body(tx):
            await tx.exec("INSERT INTO t(id) VALUES (1)")
            return "done"

        assert await sql.with_transaction(body) == "done"
        stub.Commit.assert_awaited_once()
        stub.Rollback.assert_not_awaited()
        assert sql.state is TxState.AUTOCOMMIT

    @pytest.mark.asyncio
    async def test_rolls_back_and_preserves_error(self, stub):
        """After three execs, a failing body rolls back and re-raises."""
        sql = SqlClient(stub)

        class BodyError(Exception):
            pass

        async def body(tx):
            for i in range(3):
                await tx.exec("INSERT INTO t(id) VALUES (@id)", {"id": i})
            raise BodyError("business rule violated")

        with pytest.raises(BodyError, match="business rule violated"):
            await sql.with_transaction(body)

        assert stub.TxSQLExec.await_count == 3
        stub.Rollback.assert_awaited_once()
        stub.Commit.assert_not_awaited()
        assert sql.transaction_id is None

    @pytest.mark.asyncio
    async def test_rollback_failure_does_not_mask_error(self, stub):
        stub.Rollback.side_effect = rpc_error(grpc.StatusCode.INTERNAL, "rollback failed")
        sql = SqlClient(stub)

        async def body(tx):
            raise ValueError("original")

        with pytest.raises(ValueError, match="original"):
            await sql.with_transaction(body)

        assert sql.state is TxState.AUTOCOMMIT


class TestReadHelpers:
    """Tests for query_* helpers."""

    @pytest.fixture
    def stub(self):
        stub = make_stub()
        chunk = SQLQueryResult()
        chunk.columns.add(name="(users.id)", type="INTEGER")
        chunk.columns.add(name="(users.name)", type="VARCHAR")
        for user_id, name in ((1, "alice"), (2, "bob")):
            row = chunk.rows.add()
            row.values.add(n=user_id)
            row.values.add(s=name)
        stub.SQLQuery.side_effect = lambda *args, **kwargs: FakeStream([chunk])
        return stub

    @pytest.mark.asyncio
    async def test_query_as(self, stub):
        users = await SqlClient(stub).query_as("SELECT id, name FROM users", User)
        assert users == [User(1, "alice"), User(2, "bob")]

    @pytest.mark.asyncio
    async def test_query_scalar_and_col(self, stub):
        sql = SqlClient(stub)
        assert await sql.query_scalar("SELECT id FROM users", int) == 1
        assert await sql.query_col("SELECT id FROM users", int) == [1, 2]

    @pytest.mark.asyncio
    async def test_query_one_as_requires_one_row(self, stub):
        with pytest.raises(DecodeError, match="expected 1 row, got 2"):
            await SqlClient(stub).query_one_as("SELECT id, name FROM users", User)

    @pytest.mark.asyncio
    async def test_query_params(self, stub):
        await SqlClient(stub).query_as(
            "SELECT id, name FROM users WHERE id = @id", User, {"id": 1}
        )
        request = stub.SQLQuery.call_args.args[0]
        assert [p.name for p in request.params] == ["id"]
