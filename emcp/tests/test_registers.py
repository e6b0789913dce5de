"""
Tests for the EM-CP-PP-ETH register map.

Verifies block addresses and payload lengths, and that the measurement
table tiles the status block without gaps or overlaps.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import fields

from emcp.src.models import InputRegisterStatus
from emcp.src.registers import (
    ALL_MEASUREMENTS,
    CHARGING_CURRENT_REGISTER,
    CHARGING_ENABLED_COIL,
    COIL_OFF,
    COIL_ON,
    DIGIMODE_COIL,
    DISCRETE_STATUS_BLOCK,
    INPUT_STATUS_BLOCK,
    MEASUREMENTS,
    MEASUREMENTS_OFFSET,
    RegisterBlock,
)


class TestRegisterBlocks:
    """Addresses, counts and derived payload lengths."""

    def test_input_status_block(self) -> None:
        assert INPUT_STATUS_BLOCK.region == "input"
        assert INPUT_STATUS_BLOCK.address == 100
        assert INPUT_STATUS_BLOCK.count == 42
        assert INPUT_STATUS_BLOCK.byte_length == 84

    def test_discrete_status_block(self) -> None:
        assert DISCRETE_STATUS_BLOCK.region == "discrete"
        assert DISCRETE_STATUS_BLOCK.address == 200
        assert DISCRETE_STATUS_BLOCK.count == 8
        assert DISCRETE_STATUS_BLOCK.byte_length == 1

    def test_single_value_addresses(self) -> None:
        assert CHARGING_CURRENT_REGISTER.address == 300
        assert CHARGING_CURRENT_REGISTER.byte_length == 2
        assert DIGIMODE_COIL.address == 401
        assert CHARGING_ENABLED_COIL.address == 402

    def test_bit_regions_round_up_to_whole_bytes(self) -> None:
        assert RegisterBlock("x", "coil", 0, 9).byte_length == 2
        assert RegisterBlock("x", "discrete", 0, 1).byte_length == 1

    def test_describe(self) -> None:
        assert DISCRETE_STATUS_BLOCK.describe() == (
            "discrete input status (address=200, count=8)"
        )

    def test_coil_wire_values(self) -> None:
        assert COIL_ON == 0xFF00
        assert COIL_OFF == 0x0000


class TestMeasurementTable:
    """17 word-swapped 32-bit values from offset 16 to the end of the block."""

    def test_offsets_are_contiguous(self) -> None:
        offsets = [m.offset for m in MEASUREMENTS]
        assert offsets == list(range(MEASUREMENTS_OFFSET, INPUT_STATUS_BLOCK.byte_length, 4))
        assert len(MEASUREMENTS) == 17

    def test_names_are_unique(self) -> None:
        assert len(ALL_MEASUREMENTS) == len(MEASUREMENTS)

    def test_every_measurement_is_a_status_field(self) -> None:
        status_fields = {f.name for f in fields(InputRegisterStatus)}
        assert set(ALL_MEASUREMENTS) <= status_fields

    def test_scaling_factors(self) -> None:
        expected = {
            "l1_voltage": (1, 100),
            "l1_current": (1, 1000),
            "active_power": (10, 1),
            "reactive_power": (1, 1),
            "apparent_power": (10, 1),
            "power_factor": (1, 1000),
            "energy": (1, 100),
            "max_power": (10, 1),
            "current_charge_power": (1, 1),
            "frequency": (1, 100),
            "l3_max_current": (1, 1),
        }
        for name, (multiplier, divisor) in expected.items():
            m = ALL_MEASUREMENTS[name]
            assert (m.multiplier, m.divisor) == (multiplier, divisor), name
