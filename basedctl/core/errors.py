"""Domain-specific errors for basedctl."""


class BasedctlError(Exception):
    """Base error for basedctl."""


class BasedctlWarning(UserWarning):
    """Base class for non-fatal conditions reported alongside results."""


class InputTruncated(BasedctlWarning):
    """Reported when a setting value was shortened to fit the device limit."""


class SettingValueError(BasedctlError):
    """Raised when a raw setting token is not in the setting's domain."""


class AddressError(BasedctlError):
    """Raised when a Bluetooth address string is malformed."""


class ProfileValidationError(BasedctlError):
    """Raised when a profile file does not conform to schema or semantics."""


class ProfileLoadError(BasedctlError):
    """Raised when loading profile sources fails."""


class ProfileSelectionError(BasedctlError):
    """Raised when a requested profile id is unknown."""


class TransportError(BasedctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on RFCOMM connect failures."""


class TransportSendError(TransportError):
    """Raised when payload sending fails."""


class TransportReceiveError(TransportError):
    """Raised when reading from the stream fails or the peer hangs up."""


class TransportTimeoutError(TransportError):
    """Raised when RFCOMM connect, send or receive times out."""


class ProtocolError(BasedctlError):
    """Base error for the device control protocol."""


class FrameEncodeError(ProtocolError):
    """Raised when a frame cannot be built from the given opcode/payload."""


class SessionNotActive(ProtocolError):
    """Raised when a setting is applied outside of an active session."""


class HandshakeFailed(ProtocolError):
    """Raised when the device does not acknowledge the connection handshake."""

    def __init__(self, message: str, outcome: object | None = None) -> None:
        super().__init__(message)
        self.outcome = outcome


class SettingFailed(ProtocolError):
    """Base error for a setting whose terminal outcome was not an ack."""

    def __init__(self, message: str, result: object | None = None) -> None:
        super().__init__(message)
        self.result = result


class SettingRejected(SettingFailed):
    """Raised when the device nacked a setting."""


class SettingTimedOut(SettingFailed):
    """Raised when the device did not answer within the receive timeout."""


class MalformedResponse(SettingFailed):
    """Raised when the device reply failed framing or integrity checks."""
