"""
Single-value commands for the EM-CP-PP-ETH charge controller.

Each operation is one Modbus call plus a decode, with no dependency on the
status cache:

- holding register 300: actual charging current in amps (raw U16);
- coil 401: digital communication mode;
- coil 402: charging station availability.

Coil writes use the Modbus single-coil convention (0xFF00 on, 0x0000 off).

:func:`hard_reset` is an out-of-band HTTP call to the
controller's embedded web configuration page.  The controller resets
before it answers, so a timeout on that request, or hitting the overall
deadline, means the reset was received.

CHANGELOG:
- 2026-10-17: Enforce one overall deadline on the hard reset; any timeout
  counts as delivered
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from emcp.src.decoder import decode_coil_state, decode_register_value
from emcp.src.exceptions import TransportError
from emcp.src.registers import (
    CHARGING_CURRENT_REGISTER,
    CHARGING_ENABLED_COIL,
    COIL_OFF,
    COIL_ON,
    DIGIMODE_COIL,
    RegisterBlock,
)

if TYPE_CHECKING:
    from emcp.src.transport import Transport

logger = logging.getLogger(__name__)

RESET_TIMEOUT_S: float = 1.0
"""Deadline for the HTTP hard-reset request in seconds."""

_RESET_URL = "http://{host}/config.html?reset=1"


def is_expected_reset_timeout(exc: httpx.HTTPError) -> bool:
    """Classify an HTTP failure of the hard-reset request.

    The controller resets before it answers, so any timeout (connect,
    read, write or pool) is the expected outcome.  Every other failure,
    such as a refused connection, means the reset was not delivered.
    """
    return isinstance(exc, httpx.TimeoutException)


async def _get_with_deadline(
    url: str, timeout_s: float, transport: httpx.AsyncBaseTransport | None
) -> httpx.Response:
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        # httpx timeouts apply per phase and per read; this bounds the whole call.
        async with asyncio.timeout(timeout_s):
            return await client.get(url)


def hard_reset(
    host: str,
    *,
    timeout_s: float = RESET_TIMEOUT_S,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Trigger a hard reset through the controller's web configuration page.

    Needs no Modbus session, so it still works when the Modbus side of the
    controller hangs.  Must not be called from a running event loop.

    Args:
        host: Controller IP address or hostname.
        timeout_s: Overall deadline for the request.  The controller
            never answers, so this bounds how long the call blocks.
        transport: Optional httpx transport, used by tests.

    Raises:
        TransportError: If the request could not be delivered.
    """
    url = _RESET_URL.format(host=host)
    logger.info("Resetting charge controller at %s", host)
    try:
        response = asyncio.run(_get_with_deadline(url, timeout_s, transport))
    except TimeoutError:
        logger.info("Reset sent (no answer within %.1f s, as expected)", timeout_s)
        return
    except httpx.HTTPError as exc:
        if is_expected_reset_timeout(exc):
            logger.info("Reset sent (controller did not answer, as expected)")
            return
        raise TransportError(f"HTTP GET {url}", str(exc) or type(exc).__name__) from exc
    logger.info("Reset sent (controller answered HTTP %d)", response.status_code)


class Commander:
    """Read and write the controller's single-value settings.

    Args:
        transport: Modbus session to the controller, shared with the
            status cache.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    # ------------------------------------------------------------------
    # Charging current (holding register 300)
    # ------------------------------------------------------------------

    def read_actual_charging_current(self) -> int:
        """Return the configured charging current in amps."""
        payload = self._transport.read_holding_registers(
            CHARGING_CURRENT_REGISTER.address, CHARGING_CURRENT_REGISTER.count
        )
        return decode_register_value(payload)

    def write_actual_charging_current(self, amps: int) -> int:
        """Set the charging current in amps.

        Returns:
            The value echoed back by the controller.

        Raises:
            ValueError: If *amps* does not fit an unsigned 16-bit register.
        """
        if not 0 <= amps <= 0xFFFF:
            raise ValueError(f"charging current must be 0..65535 A, got {amps}")
        payload = self._transport.write_single_register(
            CHARGING_CURRENT_REGISTER.address, amps
        )
        echoed = decode_register_value(payload)
        logger.info("Charging current set to %d A", echoed)
        return echoed

    # ------------------------------------------------------------------
    # Coils
    # ------------------------------------------------------------------

    def read_charging_enabled(self) -> bool:
        """Return ``True`` if the charging station is available."""
        return self._read_coil(CHARGING_ENABLED_COIL)

    def write_charging_enabled(self, enabled: bool) -> None:
        """Make the charging station available (``True``) or unavailable."""
        self._write_coil(CHARGING_ENABLED_COIL, enabled)

    def read_digimode_enabled(self) -> bool:
        """Return ``True`` if digital communication mode is enabled."""
        return self._read_coil(DIGIMODE_COIL)

    def write_digimode_enabled(self, enabled: bool) -> None:
        """Enable or disable digital communication mode."""
        self._write_coil(DIGIMODE_COIL, enabled)

    # ------------------------------------------------------------------
    # HTTP side channel
    # ------------------------------------------------------------------

    def hard_reset(self, host: str, *, timeout_s: float = RESET_TIMEOUT_S) -> None:
        """See :func:`hard_reset`."""
        hard_reset(host, timeout_s=timeout_s)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _read_coil(self, coil: RegisterBlock) -> bool:
        payload = self._transport.read_coils(coil.address, coil.count)
        return decode_coil_state(payload)

    def _write_coil(self, coil: RegisterBlock, enabled: bool) -> None:
        value = COIL_ON if enabled else COIL_OFF
        self._transport.write_single_coil(coil.address, value)
        logger.info("%s set to %s", coil.name, enabled)

