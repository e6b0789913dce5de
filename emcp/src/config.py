"""
Client configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every setting can come from an ``EMCP_``-prefixed environment variable or
a ``.env`` file; command-line flags override them (see
:mod:`emcp.src.main`).

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ControllerSettings(BaseSettings):
    """Connection and logging settings for one EM-CP-PP-ETH controller.

    Attributes:
        host: Controller IP address / hostname on the local LAN.
        port: Modbus TCP port (default 502).
        slave_id: Modbus unit ID (default 180, the controller's factory
            setting).
        timeout_s: Per-request Modbus timeout in seconds.
        reset_timeout_s: Deadline for the HTTP hard-reset request.
        read_charging_current: Read holding register 300 as the last stage
            of a status refresh.
        log_level: Root log level name (``DEBUG``, ``INFO``, ...).
        log_json: Emit structured JSON log lines instead of plain text.
    """

    host: str
    port: int = 502
    slave_id: int = 180
    timeout_s: float = 3.0
    reset_timeout_s: float = 1.0
    read_charging_current: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="EMCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        """Validate Modbus TCP port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("EMCP_PORT must be between 1 and 65535")
        return v

    @field_validator("slave_id")
    @classmethod
    def slave_id_must_be_valid(cls, v: int) -> int:
        """Validate Modbus unit ID is in valid range (1-247)."""
        if v < 1 or v > 247:
            raise ValueError("EMCP_SLAVE_ID must be between 1 and 247")
        return v

    @field_validator("timeout_s", "reset_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0 seconds")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalize to upper case and reject unknown level names."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"EMCP_LOG_LEVEL must be a logging level name (got: '{v}')")
        return level
