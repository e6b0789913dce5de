"""
Render a :class:`~emcp.src.models.Status` as human-readable text.

One line per field, in register order.  Values the controller did not
supply print as ``n/a``; the fault word prints as ``OK`` or as hex with
the names of the active faults.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import TextIO

from emcp.src.models import DigitalInput, DigitalOutput, Errorcode, Status


def _flags(value: DigitalInput | DigitalOutput, members: type) -> str:
    return " ".join(f"{m.name}={'on' if m in value else 'off'}" for m in members)


def _errorcode(errorcode: Errorcode) -> str:
    if errorcode.ok:
        return "OK"
    active = ", ".join(errorcode.active) or "unknown"
    return f"0x{errorcode.raw:04x} ({active})"


def format_status(status: Status) -> str:
    """Return a multi-line report of every status field."""
    s = status
    over_current = (
        "n/a" if s.over_current_protection is None else str(s.over_current_protection)
    )
    charging_current = (
        "n/a" if s.actual_charging_current is None else f"{s.actual_charging_current} A"
    )
    lines = [
        f"EV status: {s.ev_status}",
        f"Proximity current: {s.proximity_current} A",
        f"Charge time: {s.charge_time_hours}:{s.charge_time_minutes:02d}",
        f"DIP configuration: {s.dip_configuration}",
        f"Firmware version: {s.firmware_version}",
        f"Error state: {_errorcode(s.errorcode)}",
        f"Voltage [V]: L1 {s.l1_voltage:.2f}, L2 {s.l2_voltage:.2f}, L3 {s.l3_voltage:.2f}",
        f"Current [A]: L1 {s.l1_current:.2f}, L2 {s.l2_current:.2f}, L3 {s.l3_current:.2f}",
        f"Active power [W]: {s.active_power:.2f}",
        f"Reactive power [var]: {s.reactive_power:.2f}",
        f"Apparent power [VA]: {s.apparent_power:.2f}",
        f"Power factor: {s.power_factor:.2f}",
        f"Energy [kWh]: {s.energy:.2f}",
        f"Max power (charge sequence) [W]: {s.max_power:.2f}",
        f"Energy (charge sequence) [kWh]: {s.current_charge_power:.2f}",
        f"Frequency [Hz]: {s.frequency:.2f}",
        (
            f"Max current [A]: L1 {s.l1_max_current:.2f}, "
            f"L2 {s.l2_max_current:.2f}, L3 {s.l3_max_current:.2f}"
        ),
        f"Overcurrent protection: {over_current}",
        f"Digital inputs: {_flags(s.digital_inputs, DigitalInput)}",
        f"Digital outputs: {_flags(s.digital_outputs, DigitalOutput)}",
        f"Actual charging current: {charging_current}",
    ]
    return "\n".join(lines) + "\n"


def write_status(status: Status, out: TextIO) -> None:
    out.write(format_status(status))
