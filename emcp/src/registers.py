"""
EM-CP-PP-ETH Modbus register map -- single source of truth.

Defines the register blocks the client reads and writes, the byte layout
of the 42-register status block, and the scaling of every 32-bit
measurement inside it.

All multi-byte values are big-endian.  32-bit measurements span a register
pair whose two words arrive low word first, so each 4-byte group has to be
word-swapped before the usual big-endian decode (see
:func:`~emcp.src.decoder.swap_words`).

References:
    - Phoenix Contact EM-CP-PP-ETH user manual, Modbus register table

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------

_BIT_REGIONS = frozenset({"discrete", "coil"})


@dataclass(frozen=True, slots=True)
class RegisterBlock:
    """A contiguous Modbus address range read or written in one call.

    Attributes:
        name: Human-readable identifier, used in error messages.
        region: Modbus table -- one of ``"input"``, ``"holding"``,
            ``"discrete"``, ``"coil"``.
        address: First Modbus address of the block.
        count: Number of registers (or bits) covered by the block.
        byte_length: Expected payload length in bytes.  Derived from
            *region* and *count*: two bytes per register, bits packed
            eight to a byte.
    """

    name: str
    region: str
    address: int
    count: int
    byte_length: int = field(default=0, repr=False)

    def __post_init__(self) -> None:  # noqa: D105
        if self.byte_length == 0:
            if self.region in _BIT_REGIONS:
                length = (self.count + 7) // 8
            else:
                length = self.count * 2
            # frozen=True requires object.__setattr__
            object.__setattr__(self, "byte_length", length)

    def describe(self) -> str:
        """Return ``"<name> (address=<a>, count=<n>)"`` for log/error text."""
        return f"{self.name} (address={self.address}, count={self.count})"


@dataclass(frozen=True, slots=True)
class MeasurementDef:
    """A word-swapped unsigned 32-bit measurement in the status block.

    The engineering value is ``raw * multiplier / divisor``.

    Attributes:
        name: Field name on :class:`~emcp.src.models.InputRegisterStatus`.
        offset: Byte offset of the 4-byte group inside the status block.
        unit: Engineering unit string (e.g. ``"V"``, ``"kWh"``).
        multiplier: Integer factor applied to the raw value.
        divisor: Integer divisor applied after the multiplier.
    """

    name: str
    offset: int
    unit: str
    multiplier: int = 1
    divisor: int = 1


# ---------------------------------------------------------------------------
# Register blocks
# ---------------------------------------------------------------------------

INPUT_STATUS_BLOCK = RegisterBlock(
    name="input register status",
    region="input",
    address=100,
    count=42,  # 84 bytes
)

DISCRETE_STATUS_BLOCK = RegisterBlock(
    name="discrete input status",
    region="discrete",
    address=200,
    count=8,  # 1 byte
)

CHARGING_CURRENT_REGISTER = RegisterBlock(
    name="actual charging current",
    region="holding",
    address=300,
    count=1,
)

DIGIMODE_COIL = RegisterBlock(
    name="digital communication mode",
    region="coil",
    address=401,
    count=1,
)

CHARGING_ENABLED_COIL = RegisterBlock(
    name="charging station availability",
    region="coil",
    address=402,
    count=1,
)

COIL_ON: int = 0xFF00
"""Wire value of a single-coil write that switches the coil on."""

COIL_OFF: int = 0x0000
"""Wire value of a single-coil write that switches the coil off."""

# ---------------------------------------------------------------------------
# Status block layout (byte offsets into the 84-byte input register block)
# ---------------------------------------------------------------------------

VEHICLE_STATE_OFFSET = 0
PROXIMITY_CURRENT_OFFSET = 2
CHARGE_TIME_SECONDS_OFFSET = 4
CHARGE_TIME_HOURS_OFFSET = 6
DIP_CONFIGURATION_OFFSET = 8
FIRMWARE_VERSION_OFFSET = 10  # U32, not word-swapped
ERROR_CODE_OFFSET = 14
MEASUREMENTS_OFFSET = 16

MEASUREMENTS: list[MeasurementDef] = [
    MeasurementDef("l1_voltage", 16, "V", divisor=100),
    MeasurementDef("l2_voltage", 20, "V", divisor=100),
    MeasurementDef("l3_voltage", 24, "V", divisor=100),
    MeasurementDef("l1_current", 28, "A", divisor=1000),
    MeasurementDef("l2_current", 32, "A", divisor=1000),
    MeasurementDef("l3_current", 36, "A", divisor=1000),
    MeasurementDef("active_power", 40, "W", multiplier=10),
    MeasurementDef("reactive_power", 44, "var"),
    MeasurementDef("apparent_power", 48, "VA", multiplier=10),
    MeasurementDef("power_factor", 52, "", divisor=1000),
    MeasurementDef("energy", 56, "kWh", divisor=100),
    MeasurementDef("max_power", 60, "W", multiplier=10),
    MeasurementDef("current_charge_power", 64, "kWh"),
    MeasurementDef("frequency", 68, "Hz", divisor=100),
    MeasurementDef("l1_max_current", 72, "A"),
    MeasurementDef("l2_max_current", 76, "A"),
    MeasurementDef("l3_max_current", 80, "A"),
]
"""All 32-bit measurements in wire order, 4 bytes apart from offset 16."""

ALL_MEASUREMENTS: dict[str, MeasurementDef] = {m.name: m for m in MEASUREMENTS}
"""Flat lookup of every measurement by name."""
