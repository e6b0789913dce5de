"""
Synchronous Modbus TCP transport for the EM-CP-PP-ETH charge controller.

Defines the :class:`Transport` contract consumed by the status cache and
the commander, and :class:`ModbusTcpTransport`, its implementation on top
of the pymodbus synchronous TCP client.

Every read returns the raw big-endian payload as ``bytes``:

- register reads pack each 16-bit word big-endian, two bytes per register;
- bit reads (coils, discrete inputs) pack eight bits per byte, the first
  address in the least significant bit (Modbus PDU convention).

Any Modbus error response or pymodbus exception is raised as
:class:`~emcp.src.exceptions.TransportError` naming the register region.
Nothing is retried; one session must not be shared between threads.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException

from emcp.src.exceptions import TransportError
from emcp.src.registers import COIL_OFF, COIL_ON

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_PORT: int = 502
"""Modbus TCP port of the controller."""

DEFAULT_SLAVE_ID: int = 180
"""Factory-default Modbus unit ID of the EM-CP-PP-ETH."""

MODBUS_TIMEOUT_S: float = 3.0
"""Timeout per Modbus TCP request in seconds."""


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class Transport(Protocol):
    """Blocking Modbus master operations returning raw big-endian payloads."""

    def read_input_registers(self, address: int, count: int) -> bytes: ...

    def read_holding_registers(self, address: int, count: int) -> bytes: ...

    def read_discrete_inputs(self, address: int, count: int) -> bytes: ...

    def read_coils(self, address: int, count: int) -> bytes: ...

    def write_single_register(self, address: int, value: int) -> bytes: ...

    def write_single_coil(self, address: int, value: int) -> bytes: ...


# ---------------------------------------------------------------------------
# Packing helpers
# ---------------------------------------------------------------------------


def pack_registers(registers: list[int]) -> bytes:
    """Pack 16-bit register values into a big-endian byte string."""
    return b"".join((r & 0xFFFF).to_bytes(2, "big") for r in registers)


def pack_bits(bits: list[bool], count: int) -> bytes:
    """Pack the first *count* bits, LSB first, into ``ceil(count / 8)`` bytes.

    pymodbus pads bit responses to a multiple of eight; the padding is
    dropped here.
    """
    out = bytearray((count + 7) // 8)
    for idx, bit in enumerate(bits[:count]):
        if bit:
            out[idx // 8] |= 1 << (idx % 8)
    return bytes(out)


# ---------------------------------------------------------------------------
# pymodbus implementation
# ---------------------------------------------------------------------------


class ModbusTcpTransport:
    """:class:`Transport` over a single pymodbus ``ModbusTcpClient`` session.

    Args:
        host: Controller IP address or hostname.
        port: Modbus TCP port (default 502).
        slave_id: Modbus unit ID (default 180).
        timeout_s: Per-request timeout in seconds.

    Usage::

        with ModbusTcpTransport("10.0.0.1") as transport:
            payload = transport.read_input_registers(100, 42)
    """

    def __init__(
        self,
        host: str,
        *,
        port: int = DEFAULT_PORT,
        slave_id: int = DEFAULT_SLAVE_ID,
        timeout_s: float = MODBUS_TIMEOUT_S,
    ) -> None:
        self._host = host
        self._port = port
        self._slave_id = slave_id
        self._client = ModbusTcpClient(host, port=port, timeout=timeout_s)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the TCP session.

        Raises:
            TransportError: If the controller cannot be reached.
        """
        try:
            ok = self._client.connect()
        except ModbusException as exc:
            raise TransportError(f"{self._host}:{self._port}", f"connect failed: {exc}") from exc
        if not ok:
            raise TransportError(f"{self._host}:{self._port}", "connect failed")
        logger.debug("Modbus connected to %s:%d", self._host, self._port)

    def close(self) -> None:
        self._client.close()
        logger.debug("Modbus disconnected from %s:%d", self._host, self._port)

    def __enter__(self) -> ModbusTcpTransport:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport operations
    # ------------------------------------------------------------------

    def read_input_registers(self, address: int, count: int) -> bytes:
        response = self._call(
            f"input registers (address={address}, count={count})",
            lambda: self._client.read_input_registers(
                address, count=count, device_id=self._slave_id
            ),
        )
        return pack_registers(response.registers)

    def read_holding_registers(self, address: int, count: int) -> bytes:
        response = self._call(
            f"holding registers (address={address}, count={count})",
            lambda: self._client.read_holding_registers(
                address, count=count, device_id=self._slave_id
            ),
        )
        return pack_registers(response.registers)

    def read_discrete_inputs(self, address: int, count: int) -> bytes:
        response = self._call(
            f"discrete inputs (address={address}, count={count})",
            lambda: self._client.read_discrete_inputs(
                address, count=count, device_id=self._slave_id
            ),
        )
        return pack_bits(response.bits, count)

    def read_coils(self, address: int, count: int) -> bytes:
        response = self._call(
            f"coils (address={address}, count={count})",
            lambda: self._client.read_coils(
                address, count=count, device_id=self._slave_id
            ),
        )
        return pack_bits(response.bits, count)

    def write_single_register(self, address: int, value: int) -> bytes:
        """Write one holding register; returns the echoed value (2 bytes)."""
        response = self._call(
            f"holding register write (address={address})",
            lambda: self._client.write_register(
                address, value, device_id=self._slave_id
            ),
        )
        return pack_registers(response.registers[:1])

    def write_single_coil(self, address: int, value: int) -> bytes:
        """Write one coil with its wire value (0xFF00 on, 0x0000 off).

        Returns the echoed wire value (2 bytes).
        """
        if value not in (COIL_ON, COIL_OFF):
            raise ValueError(f"coil value must be 0xFF00 or 0x0000, got 0x{value:04x}")
        response = self._call(
            f"coil write (address={address})",
            lambda: self._client.write_coil(
                address, value == COIL_ON, device_id=self._slave_id
            ),
        )
        echoed = COIL_ON if response.bits and response.bits[0] else COIL_OFF
        return echoed.to_bytes(2, "big")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _call(self, region: str, request: Callable[[], Any]) -> Any:
        """Run one pymodbus request, converting failures to TransportError."""
        label = f"Modbus {region}"
        logger.debug("Modbus request: %s", label)
        try:
            response = request()
        except ModbusException as exc:
            raise TransportError(label, f"Modbus com error: {exc}") from exc
        if response.isError():
            raise TransportError(label, f"Modbus error response: {response}")
        return response
