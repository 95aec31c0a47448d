"""RFCOMM transport implementation using Python sockets."""

from __future__ import annotations

import logging
import socket

from basedctl.core.errors import (
    TransportConnectError,
    TransportReceiveError,
    TransportSendError,
    TransportTimeoutError,
)

LOGGER = logging.getLogger(__name__)


class RFCOMMTransport:
    """Blocking RFCOMM stream with separate send and receive timeouts."""

    def __init__(self, *, send_timeout_s: float = 5.0, receive_timeout_s: float = 1.0) -> None:
        self.send_timeout_s = send_timeout_s
        self.receive_timeout_s = receive_timeout_s
        self._socket: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self, address: str, channel: int) -> None:
        try:
            af_bluetooth = socket.AF_BLUETOOTH
            btproto_rfcomm = socket.BTPROTO_RFCOMM
        except AttributeError as exc:
            raise TransportConnectError(
                "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
            ) from exc

        try:
            bt_socket = socket.socket(
                af_bluetooth,
                socket.SOCK_STREAM,
                btproto_rfcomm,
            )
        except OSError as exc:
            raise TransportConnectError(f"Could not create RFCOMM socket: {exc}") from exc
        bt_socket.settimeout(self.send_timeout_s)
        try:
            bt_socket.connect((address, channel))
        except TimeoutError as exc:
            bt_socket.close()
            raise TransportTimeoutError(
                f"RFCOMM connect timed out for {address} on channel {channel}"
            ) from exc
        except OSError as exc:
            bt_socket.close()
            raise TransportConnectError(
                f"Could not connect to Bluetooth device {address} on channel {channel}: {exc}"
            ) from exc
        LOGGER.debug("Connected to %s on RFCOMM channel %d", address, channel)
        self._socket = bt_socket

    def write(self, data: bytes) -> int:
        bt_socket = self._require_socket()
        bt_socket.settimeout(self.send_timeout_s)
        try:
            bt_socket.sendall(data)
        except TimeoutError as exc:
            raise TransportTimeoutError("RFCOMM send timed out") from exc
        except OSError as exc:
            raise TransportSendError(f"RFCOMM send failed: {exc}") from exc
        return len(data)

    def read(self, max_bytes: int, timeout_s: float | None = None) -> bytes:
        bt_socket = self._require_socket()
        if timeout_s is None:
            timeout_s = self.receive_timeout_s
        bt_socket.settimeout(min(self.receive_timeout_s, timeout_s))
        try:
            return bt_socket.recv(max_bytes)
        except TimeoutError as exc:
            raise TransportTimeoutError("RFCOMM receive timed out") from exc
        except OSError as exc:
            raise TransportReceiveError(f"RFCOMM receive failed: {exc}") from exc

    def close(self) -> None:
        if self._socket is None:
            return
        bt_socket, self._socket = self._socket, None
        bt_socket.close()

    def __enter__(self) -> RFCOMMTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise TransportConnectError("RFCOMM transport is not connected")
        return self._socket
