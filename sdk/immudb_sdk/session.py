"""
Session management for the immudb SDK.

This module owns the identity a connection presents to the server:
- Session: session id, server uuid and the current database token
- SessionInterceptor: adds the session metadata to every outgoing call
- establish() / select_database(): the OpenSession and UseDatabase RPCs
- LivenessTask: background KeepAlive loop, one per connection

Invariants:
    - Metadata values are printable ASCII
    - The session is shared by reference; only the token ever changes,
      and it is replaced under a lock
    - The interceptor never issues I/O
    - KeepAlive failures never reach foreground callers

How to change safely:
    - New per-call metadata belongs in Session.metadata()
    - Keep LivenessTask.cancel() synchronous so teardown cannot block on it
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any

import grpc
from google.protobuf import empty_pb2

from ._generated import Database, OpenSessionRequest
from ._grpc_client import rpc_errors
from .errors import InvalidInputError, UnexpectedError

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "sessionid"
SERVER_UUID_KEY = "immudb-uuid"
AUTHORIZATION_KEY = "authorization"
TRANSACTION_ID_KEY = "transactionid"

_SESSION_KEYS = frozenset({SESSION_ID_KEY, SERVER_UUID_KEY, AUTHORIZATION_KEY})

DEFAULT_KEEPALIVE_INTERVAL = 30.0


def is_ascii_metadata(value: str) -> bool:
    """True if ``value`` can be sent as a gRPC metadata value."""
    return all(0x20 <= ord(ch) <= 0x7E for ch in value)


@dataclass(frozen=True)
class Credentials:
    """Login credentials exchanged for a session."""

    username: str
    password: str
    database: str = "defaultdb"

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, database={self.database!r})"


class Session:
    """Server-granted identity for one connection.

    Attributes:
        session_id: Session identifier returned by OpenSession
        server_uuid: Identifier of the server instance
    """

    def __init__(self, session_id: str, server_uuid: str) -> None:
        for label, value in (("session id", session_id), ("server uuid", server_uuid)):
            if not is_ascii_metadata(value):
                raise UnexpectedError(f"server returned a non-ASCII {label}")
        self._session_id = session_id
        self._server_uuid = server_uuid
        self._token: str | None = None
        self._lock = threading.Lock()

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def server_uuid(self) -> str:
        return self._server_uuid

    @property
    def token(self) -> str | None:
        with self._lock:
            return self._token

    def set_token(self, token: str) -> None:
        """Replace the database token.

        Raises:
            InvalidInputError: If the token is not ASCII
        """
        if not is_ascii_metadata(token):
            raise InvalidInputError("database token is not ASCII")
        with self._lock:
            self._token = token

    def metadata(self) -> list[tuple[str, str]]:
        pairs = [
            (SESSION_ID_KEY, self._session_id),
            (SERVER_UUID_KEY, self._server_uuid),
        ]
        token = self.token
        if token is not None:
            pairs.append((AUTHORIZATION_KEY, token))
        return pairs

    def __repr__(self) -> str:
        return f"Session(session_id={self._session_id!r}, server_uuid={self._server_uuid!r})"


class SessionInterceptor(
    grpc.aio.UnaryUnaryClientInterceptor,
    grpc.aio.UnaryStreamClientInterceptor,
):
    """Adds session metadata to unary and server-streaming calls.

    The interceptor is installed when the channel is created, before the
    session exists; calls made before bind() go out unchanged.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session | None:
        return self._session

    def bind(self, session: Session) -> None:
        self._session = session

    def unbind(self) -> None:
        """Stop adding session metadata; calls go out unchanged again."""
        self._session = None

    def augment(self, details: grpc.aio.ClientCallDetails) -> grpc.aio.ClientCallDetails:
        """Return ``details`` with the session metadata set.

        Other metadata already on the call, such as ``transactionid``, is kept.
        """
        if self._session is None:
            return details
        metadata = grpc.aio.Metadata()
        for key, value in details.metadata or ():
            if key not in _SESSION_KEYS:
                metadata.add(key, value)
        for key, value in self._session.metadata():
            metadata.add(key, value)
        return grpc.aio.ClientCallDetails(
            method=details.method,
            timeout=details.timeout,
            metadata=metadata,
            credentials=details.credentials,
            wait_for_ready=details.wait_for_ready,
        )

    async def intercept_unary_unary(self, continuation, client_call_details, request):
        return await continuation(self.augment(client_call_details), request)

    async def intercept_unary_stream(self, continuation, client_call_details, request):
        return await continuation(self.augment(client_call_details), request)


async def establish(stub: Any, credentials: Credentials) -> Session:
    """Exchange credentials for a session.

    Raises:
        TransportError: If the server is unreachable
        ProtocolError: If the server rejects the credentials
        UnexpectedError: If the returned identifiers are not ASCII
    """
    request = OpenSessionRequest(
        username=credentials.username.encode("utf-8"),
        password=credentials.password.encode("utf-8"),
        databaseName=credentials.database,
    )
    with rpc_errors():
        response = await stub.OpenSession(request)
    session = Session(response.sessionID, response.serverUUID)
    logger.debug(f"Opened session {session.session_id} on database {credentials.database}")
    return session


async def select_database(stub: Any, session: Session, name: str) -> None:
    """Switch the active database and store the new token.

    Raises:
        InvalidInputError: If the returned token is not ASCII
    """
    with rpc_errors():
        reply = await stub.UseDatabase(Database(databaseName=name))
    session.set_token(reply.token)
    logger.debug(f"Using database {name}")


class LivenessTask:
    """Background loop that keeps the session alive.

    Example:
        >>> liveness = LivenessTask.spawn(stub)
        >>> ...
        >>> liveness.cancel()
    """

    def __init__(self, stub: Any, interval: float = DEFAULT_KEEPALIVE_INTERVAL) -> None:
        if interval <= 0:
            raise InvalidInputError("keepalive interval must be positive", value=interval)
        self._stub = stub
        self._interval = interval
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task | None = None

    @classmethod
    def spawn(cls, stub: Any, interval: float = DEFAULT_KEEPALIVE_INTERVAL) -> LivenessTask:
        liveness = cls(stub, interval)
        liveness.start()
        return liveness

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())

    def cancel(self) -> None:
        """Fire the cancellation signal without waiting for the loop to exit."""
        self._cancelled.set()
        if self._task is not None:
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel and wait until the loop has exited."""
        self.cancel()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        try:
            while not self._cancelled.is_set():
                try:
                    await asyncio.wait_for(self._cancelled.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    pass
                if self._cancelled.is_set():
                    break
                try:
                    await self._stub.KeepAlive(empty_pb2.Empty())
                except grpc.aio.UsageError:
                    logger.debug("Channel closed, stopping keepalive")
                    break
                except grpc.RpcError as e:
                    logger.debug(f"Keepalive skipped: {e}")
                except Exception as e:
                    logger.debug(f"Keepalive failed: {e}")
        except asyncio.CancelledError:
            pass
