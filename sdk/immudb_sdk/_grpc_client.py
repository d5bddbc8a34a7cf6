"""
Internal gRPC client for the immudb SDK.

This module provides the low-level gRPC communication layer:
- GrpcClient: owns the channel and the service stubs
- rpc_errors(): translates grpc.aio failures into SDK errors

It is internal to the SDK and should not be used directly by users.
Users should use ImmuClient instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import grpc
from grpc import aio as grpc_aio

from ._generated import DocumentServiceStub, ImmuServiceStub
from .errors import ProtocolError, TransportError, UnexpectedError

logger = logging.getLogger(__name__)

_TRANSPORT_CODES = frozenset({grpc.StatusCode.UNAVAILABLE, grpc.StatusCode.DEADLINE_EXCEEDED})


@contextmanager
def rpc_errors(address: str | None = None) -> Iterator[None]:
    """Translate gRPC failures raised inside the block.

    UNAVAILABLE and DEADLINE_EXCEEDED become TransportError; every other
    status becomes ProtocolError carrying the status name and details.
    """
    try:
        yield
    except grpc.aio.AioRpcError as e:
        code = e.code()
        details = e.details()
        if code in _TRANSPORT_CODES:
            raise TransportError(f"{code.name}: {details}", address=address) from e
        raise ProtocolError(
            f"{code.name}: {details}",
            status_code=code.name,
            server_details=details,
        ) from e
    except grpc.aio.UsageError as e:
        raise TransportError(str(e), address=address) from e


class GrpcClient:
    """Internal gRPC client for immudb.

    This class manages the channel lifecycle and exposes the generated
    stubs. Interceptors are supplied by the caller and installed when the
    channel is created.

    This is an internal class - users should use ImmuClient instead.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3322,
        *,
        interceptors: Sequence[grpc_aio.ClientInterceptor] = (),
        options: Sequence[tuple[str, Any]] = (),
        connect_timeout: float = 5.0,
    ) -> None:
        """Initialize the gRPC client.

        Args:
            host: Server hostname
            port: Server port
            interceptors: Client interceptors applied to every call
            options: gRPC channel options
            connect_timeout: Seconds to wait for the channel to become ready
        """
        self._host = host
        self._port = port
        self._interceptors = list(interceptors)
        self._options = list(options)
        self._connect_timeout = connect_timeout
        self._channel: grpc_aio.Channel | None = None
        self._immu: ImmuServiceStub | None = None
        self._documents: DocumentServiceStub | None = None

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def connected(self) -> bool:
        return self._channel is not None

    async def connect(self) -> None:
        """Open the channel and wait until it is ready.

        Raises:
            TransportError: If the channel is not ready within connect_timeout
        """
        if self._channel is not None:
            return

        channel = grpc_aio.insecure_channel(
            self.address,
            options=self._options,
            interceptors=self._interceptors,
        )
        try:
            await asyncio.wait_for(channel.channel_ready(), timeout=self._connect_timeout)
        except asyncio.TimeoutError as e:
            await channel.close()
            raise TransportError(
                f"Could not connect to {self.address} within {self._connect_timeout}s",
                address=self.address,
            ) from e

        self._channel = channel
        self._immu = ImmuServiceStub(channel)
        self._documents = DocumentServiceStub(channel)
        logger.debug(f"Connected to immudb server at {self.address}")

    async def close(self) -> None:
        """Close the channel."""
        if self._channel:
            await self._channel.close()
            self._channel = None
            self._immu = None
            self._documents = None
            logger.debug("Disconnected from immudb server")

    async def __aenter__(self) -> GrpcClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def immu(self) -> ImmuServiceStub:
        """Return the ImmuService stub."""
        if self._immu is None:
            raise UnexpectedError("Not connected. Call connect() first.")
        return self._immu

    def documents(self) -> DocumentServiceStub:
        """Return the DocumentService stub."""
        if self._documents is None:
            raise UnexpectedError("Not connected. Call connect() first.")
        return self._documents
