"""
Pure decoders for the EM-CP-PP-ETH status register blocks.

Converts the raw big-endian byte payloads returned by the transport into
the typed values of :mod:`emcp.src.models`.  Only wire-level checks are
performed: the payload length must match its register block exactly and
the vehicle state code must be one of 'A'..'F'.  Scaled measurement
values are passed through unchecked.

These are pure functions: no side effects, no I/O, no clock.

CHANGELOG:
- 2026-10-17: Add encode_measurement inverse for round-trip tests
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging

from emcp.src.exceptions import InvalidLength, InvalidVehicleState
from emcp.src.models import (
    DIGITAL_INPUT_MASK,
    DIGITAL_OUTPUT_MASK,
    DigitalInput,
    DigitalOutput,
    Errorcode,
    InputRegisterStatus,
    VehicleState,
)
from emcp.src.registers import (
    CHARGE_TIME_HOURS_OFFSET,
    CHARGE_TIME_SECONDS_OFFSET,
    DIP_CONFIGURATION_OFFSET,
    DISCRETE_STATUS_BLOCK,
    ERROR_CODE_OFFSET,
    FIRMWARE_VERSION_OFFSET,
    INPUT_STATUS_BLOCK,
    MEASUREMENTS,
    PROXIMITY_CURRENT_OFFSET,
    VEHICLE_STATE_OFFSET,
    MeasurementDef,
)

logger = logging.getLogger(__name__)

_VEHICLE_STATES: dict[int, VehicleState] = {ord(s.value): s for s in VehicleState}
"""Wire code (ASCII 'A'..'F' = 65..70) -> VehicleState."""


# ---------------------------------------------------------------------------
# Primitive helpers
# ---------------------------------------------------------------------------


def _u16(buf: bytes, offset: int) -> int:
    """Big-endian unsigned 16-bit value at *offset*."""
    return int.from_bytes(buf[offset : offset + 2], "big")


def _u32(buf: bytes, offset: int) -> int:
    """Big-endian unsigned 32-bit value at *offset*, no word swap."""
    return int.from_bytes(buf[offset : offset + 4], "big")


def swap_words(data: bytes) -> bytes:
    """Exchange the two 16-bit words of a 4-byte value.

    The controller transmits 32-bit measurements low word first; swapping
    yields a standard big-endian 32-bit value.  The transform is its own
    inverse.

    Raises:
        ValueError: If *data* is not exactly 4 bytes long.
    """
    if len(data) != 4:
        raise ValueError(f"word swap needs exactly 4 bytes, got {len(data)}")
    return bytes(data[2:4]) + bytes(data[0:2])


# ---------------------------------------------------------------------------
# Field decoders
# ---------------------------------------------------------------------------


def decode_vehicle_state(code: int) -> VehicleState:
    """Map a vehicle state code (65..70) to :class:`VehicleState`.

    Raises:
        InvalidVehicleState: For any other code.
    """
    try:
        return _VEHICLE_STATES[code]
    except KeyError:
        raise InvalidVehicleState(code) from None


def decode_errorcode(word: int) -> Errorcode:
    """Wrap the 16-bit fault word; see :class:`~emcp.src.models.Errorcode`."""
    return Errorcode(raw=word & 0xFFFF)


def decode_register_value(buf: bytes) -> int:
    """Decode a single holding register payload as unsigned 16-bit.

    Raises:
        InvalidLength: If *buf* is not exactly 2 bytes.
    """
    if len(buf) != 2:
        raise InvalidLength(2, len(buf))
    return _u16(buf, 0)


def decode_coil_state(buf: bytes) -> bool:
    """A coil read is on when its first byte is non-zero.

    Raises:
        InvalidLength: If *buf* is empty.
    """
    if not buf:
        raise InvalidLength(1, 0)
    return buf[0] != 0


def decode_measurement(buf: bytes, definition: MeasurementDef) -> float:
    """Word-swap, decode and scale one 32-bit measurement from the status block."""
    group = buf[definition.offset : definition.offset + 4]
    raw = int.from_bytes(swap_words(group), "big")
    return raw * definition.multiplier / definition.divisor


def encode_measurement(value: float, definition: MeasurementDef) -> bytes:
    """Inverse of :func:`decode_measurement`: scale back and word-swap.

    Raises:
        ValueError: If the unscaled value does not fit an unsigned 32-bit
            integer.
    """
    raw = round(value * definition.divisor / definition.multiplier)
    if not 0 <= raw <= 0xFFFFFFFF:
        raise ValueError(f"{definition.name}: raw value {raw} out of U32 range")
    return swap_words(raw.to_bytes(4, "big"))


# ---------------------------------------------------------------------------
# Block decoders
# ---------------------------------------------------------------------------


def decode_input_register_block(buf: bytes) -> InputRegisterStatus:
    """Decode the 84-byte input register status block (registers 100-141).

    Args:
        buf: Raw big-endian payload of the input register read.

    Returns:
        The decoded :class:`~emcp.src.models.InputRegisterStatus`.

    Raises:
        InvalidLength: If *buf* is not exactly 84 bytes.
        InvalidVehicleState: If the vehicle state code is not 'A'..'F'.
    """
    if len(buf) != INPUT_STATUS_BLOCK.byte_length:
        raise InvalidLength(INPUT_STATUS_BLOCK.byte_length, len(buf))

    ev_status = decode_vehicle_state(_u16(buf, VEHICLE_STATE_OFFSET))

    measurements = {m.name: decode_measurement(buf, m) for m in MEASUREMENTS}

    # over_current_protection stays None: its register (offset 84) lies
    # one word past the 42-register block.
    status = InputRegisterStatus(
        ev_status=ev_status,
        proximity_current=_u16(buf, PROXIMITY_CURRENT_OFFSET),
        # Not really minutes; see InputRegisterStatus.charge_time_minutes.
        charge_time_minutes=_u16(buf, CHARGE_TIME_SECONDS_OFFSET) // 60,
        charge_time_hours=_u16(buf, CHARGE_TIME_HOURS_OFFSET),
        dip_configuration=_u16(buf, DIP_CONFIGURATION_OFFSET),
        firmware_version=_u32(buf, FIRMWARE_VERSION_OFFSET),
        errorcode=decode_errorcode(_u16(buf, ERROR_CODE_OFFSET)),
        **measurements,
    )
    logger.debug(
        "Decoded input register status: ev_status=%s errorcode=0x%04x",
        status.ev_status,
        status.errorcode.raw,
    )
    return status


def decode_discrete_input_block(buf: bytes) -> tuple[DigitalInput, DigitalOutput]:
    """Decode the 1-byte discrete input status block (inputs 200-207).

    Args:
        buf: Packed discrete input bits, input 200 in the least
            significant bit.

    Returns:
        ``(digital_inputs, digital_outputs)`` bitsets.

    Raises:
        InvalidLength: If *buf* is not exactly 1 byte.
    """
    if len(buf) != DISCRETE_STATUS_BLOCK.byte_length:
        raise InvalidLength(DISCRETE_STATUS_BLOCK.byte_length, len(buf))

    state = buf[0]
    return (
        DigitalInput(state & DIGITAL_INPUT_MASK),
        DigitalOutput(state & DIGITAL_OUTPUT_MASK),
    )
