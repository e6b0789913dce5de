"""
Status cache for the EM-CP-PP-ETH charge controller.

Refreshing the cache is a multi-stage read because the status is spread
over several Modbus tables:

1. Input registers 100-141 (status and measurements).
2. Discrete inputs 200-207 (digital I/O).
3. Optionally holding register 300 (actual charging current).

Every stage is decoded into locals; the new :class:`~emcp.src.models.Status`
is committed only after all stages succeed.  A failed refresh leaves the
previously committed snapshot untouched and marks the cache stale.

The cache is not thread-safe and shares its transport with the commander;
callers must serialize all Modbus operations on one connection.

CHANGELOG:
- 2026-10-17: Commit status atomically after all stages succeed
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import TYPE_CHECKING

from emcp.src.decoder import (
    decode_discrete_input_block,
    decode_input_register_block,
    decode_register_value,
)
from emcp.src.exceptions import DecodeError, StatusParseError
from emcp.src.models import InputRegisterStatus, Status
from emcp.src.registers import (
    CHARGING_CURRENT_REGISTER,
    DISCRETE_STATUS_BLOCK,
    INPUT_STATUS_BLOCK,
)

if TYPE_CHECKING:
    from emcp.src.transport import Transport

logger = logging.getLogger(__name__)

PARSE_INPUT_STAGE = "parse input register status"
PARSE_DISCRETE_STAGE = "parse discrete input status"
PARSE_CHARGING_CURRENT_STAGE = "parse actual charging current"

_INPUT_FIELDS = tuple(f.name for f in fields(InputRegisterStatus))


class StatusCache:
    """Last known status of one charge controller.

    Args:
        transport: Modbus session to the controller.
        read_charging_current: Also read holding register 300 during
            :meth:`refresh` (default ``True``).  When ``False`` the
            committed status has ``actual_charging_current=None``.
    """

    def __init__(self, transport: Transport, *, read_charging_current: bool = True) -> None:
        self._transport = transport
        self._read_charging_current = read_charging_current
        self._status: Status | None = None
        self._fresh = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def status(self) -> Status | None:
        """Last committed status, or ``None`` before the first successful refresh.

        Returned regardless of freshness; a stale cache still holds the
        previous snapshot.
        """
        return self._status

    @property
    def fresh(self) -> bool:
        """``True`` if the most recent :meth:`refresh` completed every stage."""
        return self._fresh

    def refresh(self) -> Status:
        """Read all status blocks and commit a new snapshot.

        Returns:
            The newly committed :class:`~emcp.src.models.Status`.

        Raises:
            TransportError: A Modbus read failed; the error names the region.
            StatusParseError: A payload could not be decoded; ``stage``
                names the failing step and ``__cause__`` holds the
                :class:`~emcp.src.exceptions.DecodeError`.
        """
        self._fresh = False

        payload = self._transport.read_input_registers(
            INPUT_STATUS_BLOCK.address, INPUT_STATUS_BLOCK.count
        )
        try:
            inputs = decode_input_register_block(payload)
        except DecodeError as exc:
            raise StatusParseError(PARSE_INPUT_STAGE, exc) from exc

        payload = self._transport.read_discrete_inputs(
            DISCRETE_STATUS_BLOCK.address, DISCRETE_STATUS_BLOCK.count
        )
        try:
            digital_inputs, digital_outputs = decode_discrete_input_block(payload)
        except DecodeError as exc:
            raise StatusParseError(PARSE_DISCRETE_STAGE, exc) from exc

        charging_current: int | None = None
        if self._read_charging_current:
            payload = self._transport.read_holding_registers(
                CHARGING_CURRENT_REGISTER.address, CHARGING_CURRENT_REGISTER.count
            )
            try:
                charging_current = decode_register_value(payload)
            except DecodeError as exc:
                raise StatusParseError(PARSE_CHARGING_CURRENT_STAGE, exc) from exc

        status = Status(
            **{name: getattr(inputs, name) for name in _INPUT_FIELDS},
            digital_inputs=digital_inputs,
            digital_outputs=digital_outputs,
            actual_charging_current=charging_current,
        )

        # Commit only after every stage succeeded.
        self._status = status
        self._fresh = True
        logger.info(
            "Status refreshed: ev_status=%s ok=%s charging_current=%s",
            status.ev_status,
            status.errorcode.ok,
            status.actual_charging_current,
        )
        return status

