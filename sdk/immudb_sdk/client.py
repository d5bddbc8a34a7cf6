"""
immudb client for the Python SDK.

This module provides the main client interface:
- ImmuClient: authenticated connection to an immudb server
- DatabaseInfo: a database as listed by the server

Example:
    >>> async with ImmuClient("localhost:3322", username="immudb", password="immudb") as client:
    ...     sql = client.sql()
    ...     await sql.exec("CREATE TABLE IF NOT EXISTS t(id INTEGER, PRIMARY KEY id)")
    ...     count = await sql.query_scalar("SELECT COUNT(*) FROM t", int)

Invariants:
    - One session and one liveness task per connected client
    - sql() and doc() handles share the session; a use_database() call is
      visible to all of them immediately
    - close() cancels the liveness task before closing the channel and
      does not call CloseSession
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ._generated import DatabaseListRequestV2
from ._grpc_client import GrpcClient, rpc_errors
from .config import ConnectOptions
from .documents import DocClient
from .errors import InvalidInputError, UnexpectedError
from .session import LivenessTask, Session, SessionInterceptor, establish, select_database
from .sql import SqlClient

logger = logging.getLogger(__name__)


@dataclass
class DatabaseInfo:
    """A database on the server.

    Attributes:
        name: Database name
        loaded: Whether the database is loaded
        disk_size: Size on disk in bytes
        num_transactions: Committed transactions
        created_at: Creation time (Unix seconds)
        created_by: User that created the database
    """

    name: str
    loaded: bool = False
    disk_size: int = 0
    num_transactions: int = 0
    created_at: int = 0
    created_by: str = ""


def _parse_address(address: str) -> dict[str, Any]:
    if ":" not in address:
        return {"host": address}
    host, port_str = address.rsplit(":", 1)
    try:
        port = int(port_str)
    except ValueError:
        raise InvalidInputError(f"invalid port in address {address!r}", value=address) from None
    return {"host": host, "port": port}


class ImmuClient:
    """Client for connecting to an immudb server.

    Handles the channel, the session and its liveness task, and hands out
    SQL and document clients bound to the session.
    """

    def __init__(
        self,
        address: str | None = None,
        *,
        options: ConnectOptions | None = None,
        **settings: Any,
    ) -> None:
        """Initialize client.

        Args:
            address: Server address (host:port or just host)
            options: Base connection options; defaults come from the environment
            **settings: Overrides for individual ConnectOptions fields
        """
        if address:
            settings = {**_parse_address(address), **settings}
        if options is None:
            options = ConnectOptions(**settings)
        elif settings:
            options = ConnectOptions(**{**options.model_dump(), **settings})

        self._options = options
        self._interceptor = SessionInterceptor()
        self._grpc = GrpcClient(
            host=options.host,
            port=options.port,
            interceptors=[self._interceptor],
            options=options.channel_options,
            connect_timeout=options.connect_timeout,
        )
        self._session: Session | None = None
        self._liveness: LivenessTask | None = None

    @classmethod
    async def open(cls, address: str | None = None, **kwargs: Any) -> ImmuClient:
        """Create a client and connect it."""
        client = cls(address, **kwargs)
        await client.connect()
        return client

    @property
    def options(self) -> ConnectOptions:
        return self._options

    @property
    def connected(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Session:
        return self._ensure_connected()

    def _ensure_connected(self) -> Session:
        """Ensure we're connected and return the session."""
        if self._session is None:
            raise UnexpectedError("Not connected. Call connect() first.")
        return self._session

    async def connect(self) -> None:
        """Open the channel, the session and the liveness task.

        Raises:
            TransportError: If the server cannot be reached
            ProtocolError: If login or database selection is rejected
        """
        if self._session is not None:
            return

        await self._grpc.connect()
        try:
            stub = self._grpc.immu()
            session = await establish(stub, self._options.credentials())
            self._interceptor.bind(session)
            await select_database(stub, session, self._options.database)
        except BaseException:
            self._interceptor.unbind()
            await self._grpc.close()
            raise

        self._session = session
        self._liveness = LivenessTask.spawn(stub, self._options.keepalive_interval)
        logger.debug(f"Session {session.session_id} ready on {self._grpc.address}")

    async def close(self) -> None:
        """Cancel the liveness task and close the channel."""
        if self._liveness is not None:
            self._liveness.cancel()
            self._liveness = None
        self._interceptor.unbind()
        if self._session is not None:
            self._session = None
            await self._grpc.close()

    async def __aenter__(self) -> ImmuClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def sql(self) -> SqlClient:
        """Return a new SqlClient with its own transaction state."""
        self._ensure_connected()
        return SqlClient(self._grpc.immu())

    def doc(self) -> DocClient:
        self._ensure_connected()
        return DocClient(self._grpc.documents())

    async def use_database(self, name: str) -> None:
        """Switch every handle of this client to database ``name``."""
        session = self._ensure_connected()
        await select_database(self._grpc.immu(), session, name)

    async def list_databases(self) -> list[DatabaseInfo]:
        self._ensure_connected()
        with rpc_errors(self._grpc.address):
            response = await self._grpc.immu().DatabaseListV2(DatabaseListRequestV2())
        return [
            DatabaseInfo(
                name=db.name,
                loaded=db.loaded,
                disk_size=db.diskSize,
                num_transactions=db.numTransactions,
                created_at=db.createdAt,
                created_by=db.createdBy,
            )
            for db in response.databases
        ]
