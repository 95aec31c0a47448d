"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    def write(self, data: bytes) -> int:
        """Write all of ``data``, bounded by the send timeout."""

    def read(self, max_bytes: int, timeout_s: float | None = None) -> bytes:
        """Read up to ``max_bytes``; empty bytes means the peer closed the stream.

        ``timeout_s`` shortens the wait below the transport's receive timeout
        but never extends it.
        """

    def close(self) -> None:
        """Release the stream."""


class ConnectableTransport(Transport, Protocol):
    def connect(self, address: str, channel: int) -> None:
        """Open the stream to ``address`` on ``channel``."""
