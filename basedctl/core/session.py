"""One connection lifecycle: handshake, then settings one request at a time."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from enum import Enum

from basedctl.core.errors import (
    HandshakeFailed,
    InputTruncated,
    SessionNotActive,
    TransportError,
    TransportReceiveError,
    TransportTimeoutError,
)
from basedctl.core.model import ApplyResult, BatchResult, Outcome, OutcomeKind, Setting
from basedctl.protocol import frame
from basedctl.protocol.commands import (
    DEFAULT_MAX_NAME_LEN,
    EncodedCommand,
    encode_setting,
    handshake,
    nack_reason,
)
from basedctl.protocol.frame import DecodeComplete, DecodeError, Operator
from basedctl.transports.base import Transport

LOGGER = logging.getLogger(__name__)

READ_CHUNK = 256
MAX_RETRIES = 2


class SessionState(str, Enum):
    UNESTABLISHED = "unestablished"
    ACTIVE = "active"
    CLOSED = "closed"


class Session:
    """Drive one connected transport through handshake and setting changes.

    The session writes exactly one frame per attempt and waits for the
    matching reply, up to ``receive_timeout_s``. Closing the session closes
    the transport once.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        receive_timeout_s: float = 1.0,
        max_name_len: int = DEFAULT_MAX_NAME_LEN,
        retries: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not 0 <= retries <= MAX_RETRIES:
            raise ValueError(f"retries must be between 0 and {MAX_RETRIES}, got {retries}")
        self._transport = transport
        self._receive_timeout_s = receive_timeout_s
        self._max_name_len = max_name_len
        self._retries = retries
        self._clock = clock
        self._state = SessionState.UNESTABLISHED
        self._buffer = bytearray()
        self.warnings: list[InputTruncated] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def init(self) -> Outcome:
        if self._state is not SessionState.UNESTABLISHED:
            raise SessionNotActive(f"Cannot initialize a session in state '{self._state.value}'")

        command = handshake()
        try:
            outcome, _, _ = self._exchange(command)
        except TransportError:
            self.close()
            raise

        if not outcome.ok:
            self.close()
            raise HandshakeFailed(f"Connection handshake failed: {outcome}", outcome)

        LOGGER.debug("Handshake acknowledged")
        self._state = SessionState.ACTIVE
        return outcome

    def apply(self, setting: Setting) -> ApplyResult:
        if self._state is not SessionState.ACTIVE:
            raise SessionNotActive(
                f"Cannot apply {setting.label}: session is {self._state.value}, not active"
            )

        command = encode_setting(setting, max_name_len=self._max_name_len)
        if command.truncated:
            warning = InputTruncated(
                f"Name exceeds {self._max_name_len} byte maximum. Truncating."
            )
            LOGGER.warning(str(warning))
            self.warnings.append(warning)

        attempts = 0
        while True:
            attempts += 1
            try:
                outcome, request, response = self._exchange(command)
            except TransportError:
                self.close()
                raise
            if outcome.kind is not OutcomeKind.TIMED_OUT or attempts > self._retries:
                break
            LOGGER.debug("No response for %s, retrying (%d/%d)", setting.label, attempts, self._retries)

        if not outcome.ok:
            LOGGER.debug("%s failed: %s", setting.label, outcome)
        return ApplyResult(
            setting=setting,
            outcome=outcome,
            request_hex=request.hex(),
            response_hex=response.hex() if response else None,
            attempts=attempts,
            truncated=command.truncated,
        )

    def apply_all(self, settings: Iterable[Setting]) -> BatchResult:
        """Apply settings in order, stopping after the first failure."""
        pending = list(settings)
        results: list[ApplyResult] = []
        while pending:
            result = self.apply(pending.pop(0))
            results.append(result)
            if not result.ok:
                break
        return BatchResult(
            results=tuple(results),
            skipped=tuple(pending),
            warnings=tuple(str(warning) for warning in self.warnings),
        )

    def close(self) -> None:
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        self._buffer.clear()
        self._transport.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _exchange(self, command: EncodedCommand) -> tuple[Outcome, bytes, bytes | None]:
        request = frame.encode(command.opcode, command.payload, command.operator)
        LOGGER.debug("-> %s", request.hex(" "))
        self._transport.write(request)

        deadline = self._clock() + self._receive_timeout_s
        while True:
            result = frame.decode(self._buffer)
            if isinstance(result, DecodeError):
                self._buffer.clear()
                return Outcome.malformed(result.reason), request, None

            if isinstance(result, DecodeComplete):
                raw = bytes(self._buffer[: result.consumed])
                del self._buffer[: result.consumed]
                LOGGER.debug("<- %s", raw.hex(" "))
                reply = result.frame
                if reply.opcode != command.opcode:
                    LOGGER.debug("Skipping unsolicited frame %r", reply)
                    continue
                if reply.operator == Operator.PROCESSING:
                    continue
                if reply.operator == Operator.STATUS:
                    return Outcome.acked(), request, raw
                if reply.operator == Operator.ERROR:
                    return Outcome.nacked(nack_reason(reply.payload)), request, raw
                return (
                    Outcome.malformed(f"unexpected operator 0x{reply.operator:02X}"),
                    request,
                    raw,
                )

            remaining = deadline - self._clock()
            if remaining <= 0:
                self._buffer.clear()
                return Outcome.timed_out(), request, None
            try:
                chunk = self._transport.read(READ_CHUNK, timeout_s=remaining)
            except TransportTimeoutError:
                self._buffer.clear()
                return Outcome.timed_out(), request, None
            if not chunk:
                if not self._buffer:
                    raise TransportReceiveError("Device closed the connection")
                final = frame.decode(self._buffer, at_boundary=True)
                self._buffer.clear()
                reason = final.reason if isinstance(final, DecodeError) else "stream ended mid-frame"
                return Outcome.malformed(reason), request, None
            self._buffer.extend(chunk)
