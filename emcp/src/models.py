"""
Typed status snapshot of the EM-CP-PP-ETH charge controller.

Defines the immutable :class:`Status` value produced by a status refresh,
together with the bitset types used for the fault word and the digital
I/O byte.  All values are in engineering units after scaling; no
validation beyond the wire-level checks in the decoder is applied.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag, StrEnum


class VehicleState(StrEnum):
    """IEC 61851 / SAE J1772 vehicle connection state reported by the controller."""

    A = "A"  # no vehicle connected
    B = "B"  # vehicle connected, not ready
    C = "C"  # charging
    D = "D"  # charging, ventilation required
    E = "E"  # short circuit on CP
    F = "F"  # controller fault


class FaultCode(IntFlag):
    """Bits of the 16-bit fault word at input register 107."""

    CABLE_13A_20A = 1 << 0
    CABLE_13A = 1 << 1
    INVALID_PP = 1 << 2
    INVALID_CP = 1 << 3
    STATE_F = 1 << 4
    LOCKING = 1 << 5
    UNLOCKING = 1 << 6
    LD_FAILURE = 1 << 7
    OVERCURRENT = 1 << 8
    COM_MEASUREMENT = 1 << 9
    STATE_D_REJECTED = 1 << 10
    CONTACTOR_FAILURE = 1 << 11
    CP_NO_DIODE = 1 << 12


class DigitalInput(IntFlag):
    """Digital input bits (low nibble of the discrete input status byte)."""

    EN = 0x01
    XR = 0x02
    LD = 0x04
    ML = 0x08


class DigitalOutput(IntFlag):
    """Digital output bits (high nibble of the discrete input status byte)."""

    CR = 0x10
    LR = 0x20
    VR = 0x40
    ER = 0x80


DIGITAL_INPUT_MASK: int = 0x0F
DIGITAL_OUTPUT_MASK: int = 0xF0


@dataclass(frozen=True, slots=True)
class Errorcode:
    """Decoded fault word.

    Each named fault maps to one bit of *raw*; faults are independent and
    several may be active at once.  ``ok`` is true only when the whole
    word is zero, so unnamed high bits still count as a fault.

    Attributes:
        raw: The 16-bit fault word as read from the wire.
    """

    raw: int = 0

    @property
    def ok(self) -> bool:
        return self.raw == 0

    @property
    def flags(self) -> FaultCode:
        """Named faults set in *raw*; unnamed bits are dropped."""
        return FaultCode(self.raw & _ALL_FAULTS)

    @property
    def active(self) -> list[str]:
        """Names of the active faults in bit order."""
        return [f.name for f in FaultCode if f in self.flags]

    def is_set(self, fault: FaultCode) -> bool:
        return bool(self.raw & fault)

    @property
    def cable_13a_20a(self) -> bool:
        return self.is_set(FaultCode.CABLE_13A_20A)

    @property
    def cable_13a(self) -> bool:
        return self.is_set(FaultCode.CABLE_13A)

    @property
    def invalid_pp(self) -> bool:
        return self.is_set(FaultCode.INVALID_PP)

    @property
    def invalid_cp(self) -> bool:
        return self.is_set(FaultCode.INVALID_CP)

    @property
    def state_f(self) -> bool:
        return self.is_set(FaultCode.STATE_F)

    @property
    def locking(self) -> bool:
        return self.is_set(FaultCode.LOCKING)

    @property
    def unlocking(self) -> bool:
        return self.is_set(FaultCode.UNLOCKING)

    @property
    def ld_failure(self) -> bool:
        return self.is_set(FaultCode.LD_FAILURE)

    @property
    def overcurrent(self) -> bool:
        return self.is_set(FaultCode.OVERCURRENT)

    @property
    def com_measurement_failure(self) -> bool:
        return self.is_set(FaultCode.COM_MEASUREMENT)

    @property
    def rejected_state_d(self) -> bool:
        return self.is_set(FaultCode.STATE_D_REJECTED)

    @property
    def contactor_failure(self) -> bool:
        return self.is_set(FaultCode.CONTACTOR_FAILURE)

    @property
    def cp_no_diode(self) -> bool:
        return self.is_set(FaultCode.CP_NO_DIODE)


_ALL_FAULTS: int = sum(FaultCode)


@dataclass(frozen=True, slots=True)
class InputRegisterStatus:
    """Fields decoded from the 42-register input status block.

    Attributes:
        ev_status: Vehicle connection/charge state.
        proximity_current: Raw proximity-pilot current code.
        charge_time_minutes: Raw register value divided by 60.  The
            register does not hold minutes and the result disagrees with
            the controller's web UI; kept as the documented conversion.
        charge_time_hours: Elapsed charge hours.
        dip_configuration: Raw DIP-switch configuration word.
        firmware_version: Raw 32-bit firmware version code.
        errorcode: Decoded fault word.
        over_current_protection: Over-current threshold, or ``None`` when
            the payload ends before its register.
    """

    ev_status: VehicleState
    proximity_current: int
    charge_time_minutes: int
    charge_time_hours: int
    dip_configuration: int
    firmware_version: int
    errorcode: Errorcode
    l1_voltage: float
    l2_voltage: float
    l3_voltage: float
    l1_current: float
    l2_current: float
    l3_current: float
    active_power: float
    reactive_power: float
    apparent_power: float
    power_factor: float
    energy: float
    max_power: float
    current_charge_power: float
    frequency: float
    l1_max_current: float
    l2_max_current: float
    l3_max_current: float
    over_current_protection: int | None = None


@dataclass(frozen=True, slots=True)
class Status(InputRegisterStatus):
    """A complete snapshot of the charge controller after a successful refresh.

    Carries every :class:`InputRegisterStatus` field plus the values read
    from the discrete input and holding register tables.

    Attributes:
        digital_inputs: Set digital input bits (EN, XR, LD, ML).
        digital_outputs: Set digital output bits (CR, LR, VR, ER).
        actual_charging_current: Holding register 300 in amps, or ``None``
            when the refresh skipped that stage.
    """

    digital_inputs: DigitalInput = DigitalInput(0)
    digital_outputs: DigitalOutput = DigitalOutput(0)
    actual_charging_current: int | None = None
