"""
Connection options for the immudb SDK.

Uses pydantic-settings so every option can come from the environment
with the IMMUDB_ prefix (IMMUDB_HOST, IMMUDB_PASSWORD, ...).
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

from .session import Credentials

_MIB = 1024 * 1024


class ConnectOptions(BaseSettings):
    """Connection configuration loaded from arguments or environment."""

    # Server
    host: str = Field(default="localhost", description="immudb gRPC host")
    port: int = Field(default=3322, ge=1, le=65535, description="immudb gRPC port")

    # Login
    username: str = Field(default="immudb", min_length=1)
    password: SecretStr = Field(default=SecretStr("immudb"))
    database: str = Field(default="defaultdb", min_length=1)

    # Channel
    connect_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for the channel")
    keepalive_while_idle: bool = Field(default=True, description="Send HTTP/2 pings while idle")
    keepalive_interval: float = Field(default=30.0, gt=0, description="Seconds between KeepAlive RPCs")
    max_message_size: int = Field(default=32 * _MIB, gt=0, description="Max gRPC message bytes")

    model_config = {"env_prefix": "IMMUDB_"}

    @property
    def address(self) -> str:
        """Full gRPC endpoint."""
        return f"{self.host}:{self.port}"

    @property
    def channel_options(self) -> list[tuple[str, Any]]:
        options: list[tuple[str, Any]] = [
            ("grpc.max_send_message_length", self.max_message_size),
            ("grpc.max_receive_message_length", self.max_message_size),
        ]
        if self.keepalive_while_idle:
            interval_ms = int(self.keepalive_interval * 1000)
            options += [
                ("grpc.keepalive_time_ms", interval_ms),
                ("grpc.keepalive_timeout_ms", int(self.connect_timeout * 1000)),
                ("grpc.keepalive_permit_without_calls", 1),
            ]
        return options

    def credentials(self) -> Credentials:
        return Credentials(
            username=self.username,
            password=self.password.get_secret_value(),
            database=self.database,
        )
