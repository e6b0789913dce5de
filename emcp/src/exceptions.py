"""
Exceptions raised by the charge-controller client.

All errors inherit from :class:`EmcpError` so callers can use a single
``except EmcpError`` to catch Modbus, HTTP and decoding failures.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations


class EmcpError(Exception):
    """Base exception for all charge-controller client errors."""


class TransportError(EmcpError):
    """Modbus or HTTP I/O failure.

    The message names the register region (or URL) being accessed.
    """

    def __init__(self, region: str, detail: str) -> None:
        self.region = region
        self.detail = detail
        super().__init__(f"{region}: {detail}")


class DecodeError(EmcpError):
    """A wire payload does not match the fixed register layout."""


class InvalidLength(DecodeError):
    """Payload length differs from the fixed length of its register region."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid length of status byte array - expected {expected}, got {actual}"
        )


class InvalidVehicleState(DecodeError):
    """Vehicle state code outside the ASCII range 'A'..'F'."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"Invalid vehicle state '{code}'")


class StatusParseError(EmcpError):
    """A status refresh stage failed to decode its payload.

    The underlying :class:`DecodeError` is available as ``__cause__``.
    """

    def __init__(self, stage: str, cause: DecodeError) -> None:
        self.stage = stage
        super().__init__(f"Failed to {stage}: {cause}")
