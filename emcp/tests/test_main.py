"""
Tests for the command-line entrypoint.

Verifies argument parsing, settings overrides, command dispatch and exit
codes.  The Modbus transport and the HTTP reset are patched out.

CHANGELOG:
- 2026-10-17: Cover pymodbus logging at debug level
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from emcp.src.exceptions import TransportError
from emcp.src.main import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_USAGE,
    _JsonFormatter,
    configure_logging,
    create_parser,
    load_settings,
    main,
    run_command,
)
from fakes import FakeTransport

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_logging_setup() -> Iterator[None]:
    """Keep main() from replacing the root handlers pytest installs."""
    with patch("emcp.src.main.configure_logging"):
        yield


@contextlib.contextmanager
def _restored_loggers() -> Iterator[None]:
    """Undo configure_logging() changes within a single test phase."""
    root = logging.getLogger()
    pymodbus = logging.getLogger("pymodbus")
    handlers, level, pymodbus_level = list(root.handlers), root.level, pymodbus.level
    try:
        yield
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
        pymodbus.setLevel(pymodbus_level)


@pytest.fixture()
def patched_transport() -> Iterator[tuple[MagicMock, FakeTransport]]:
    """Replace ModbusTcpTransport with a context manager yielding a fake."""
    fake = FakeTransport(coils={401: b"\x01", 402: b"\x00"})
    with patch("emcp.src.main.ModbusTcpTransport") as cls:
        cls.return_value.__enter__.return_value = fake
        yield cls, fake


# ===========================================================================
# Argument parsing
# ===========================================================================


class TestParser:
    def test_default_command_is_status(self) -> None:
        args = create_parser().parse_args(["-H", "10.0.0.1"])
        assert args.command == "status"
        assert args.action is None
        assert args.host == "10.0.0.1"
        assert args.port is None
        assert args.slave_id is None

    def test_connection_flags(self) -> None:
        args = create_parser().parse_args(["-H", "h", "-p", "1502", "-s", "1", "-v", "status"])
        assert (args.port, args.slave_id, args.verbose) == (1502, 1, True)

    def test_current_set(self) -> None:
        args = create_parser().parse_args(["current", "set", "16"])
        assert (args.command, args.action, args.amps) == ("current", "set", 16)

    @pytest.mark.parametrize(("text", "value"), [("true", True), ("Off", False), ("1", True)])
    def test_avail_set_bool(self, text: str, value: bool) -> None:
        args = create_parser().parse_args(["avail", "set", text])
        assert args.state is value

    def test_action_required(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["digimode"])

    @pytest.mark.parametrize("argv", [["avail", "set", "maybe"], ["current", "set", "70000"]])
    def test_invalid_values(self, argv: list[str]) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(argv)


class TestLoadSettings:
    def test_flags_override_env(self, env_vars_full: dict[str, str]) -> None:
        args = create_parser().parse_args(["-H", "10.9.9.9", "-s", "5"])
        settings = load_settings(args)
        assert settings.host == "10.9.9.9"
        assert settings.slave_id == 5
        assert settings.port == 1502

    def test_verbose_sets_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMCP_HOST", "10.0.0.1")
        args = create_parser().parse_args(["-v", "--json-logs"])
        settings = load_settings(args)
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True


# ===========================================================================
# Logging
# ===========================================================================


class TestLogging:
    def test_json_formatter(self) -> None:
        record = logging.LogRecord("emcp", logging.INFO, __file__, 1, "hello %s", ("x",), None)
        entry = json.loads(_JsonFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "emcp"
        assert entry["msg"] == "hello x"

    def test_configure_logging_quietens_pymodbus(self) -> None:
        with _restored_loggers():
            configure_logging("INFO", json_logs=True)
            root = logging.getLogger()
            assert root.level == logging.INFO
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, _JsonFormatter)
            assert logging.getLogger("pymodbus").level == logging.CRITICAL

    def test_debug_level_keeps_pymodbus_logging(self) -> None:
        with _restored_loggers():
            configure_logging("DEBUG")
            pymodbus = logging.getLogger("pymodbus")
            assert pymodbus.level == logging.NOTSET
            assert pymodbus.isEnabledFor(logging.DEBUG)


# ===========================================================================
# Dispatch
# ===========================================================================


class TestRunCommand:
    def _run(self, argv: list[str], transport: FakeTransport) -> None:
        args = create_parser().parse_args(["-H", "10.0.0.1", *argv])
        run_command(args, load_settings(args), transport)

    def test_status(self, transport: FakeTransport, capsys: pytest.CaptureFixture[str]) -> None:
        self._run(["status"], transport)
        assert "EV status: B" in capsys.readouterr().out
        assert [c[0] for c in transport.calls] == [
            "read_input_registers",
            "read_discrete_inputs",
            "read_holding_registers",
        ]

    def test_status_without_charging_current(
        self, transport: FakeTransport, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EMCP_READ_CHARGING_CURRENT", "false")
        self._run(["status"], transport)
        assert len(transport.calls) == 2

    def test_current_get(self, transport: FakeTransport, capsys: pytest.CaptureFixture[str]) -> None:
        self._run(["current", "get"], transport)
        assert "Actual charging current: 16 A" in capsys.readouterr().out

    def test_current_set(self, transport: FakeTransport, capsys: pytest.CaptureFixture[str]) -> None:
        self._run(["current", "set", "20"], transport)
        assert transport.calls == [("write_single_register", 300, 20)]
        assert "New charging current: 20 A" in capsys.readouterr().out

    def test_avail_set(self, transport: FakeTransport) -> None:
        self._run(["avail", "set", "false"], transport)
        assert transport.calls == [("write_single_coil", 402, 0x0000)]

    def test_digimode_get(self, capsys: pytest.CaptureFixture[str]) -> None:
        transport = FakeTransport(coils={401: b"\x01"})
        self._run(["digimode", "get"], transport)
        assert "Digital communication mode: True" in capsys.readouterr().out


class TestMain:
    def test_missing_host_is_usage_error(self) -> None:
        assert main(["status"]) == EXIT_USAGE

    def test_invalid_env_is_usage_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMCP_SLAVE_ID", "0")
        assert main(["-H", "10.0.0.1"]) == EXIT_USAGE

    def test_status_opens_one_session(
        self, patched_transport: tuple[MagicMock, FakeTransport]
    ) -> None:
        cls, fake = patched_transport
        assert main(["-H", "10.0.0.1", "-p", "1502"]) == EXIT_OK
        cls.assert_called_once_with("10.0.0.1", port=1502, slave_id=180, timeout_s=3.0)
        cls.return_value.__exit__.assert_called_once()
        assert fake.calls[0] == ("read_input_registers", 100, 42)

    def test_avail_get(
        self,
        patched_transport: tuple[MagicMock, FakeTransport],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["-H", "10.0.0.1", "avail", "get"]) == EXIT_OK
        assert "Charging station available: False" in capsys.readouterr().out

    def test_transport_error_exits_1(
        self, patched_transport: tuple[MagicMock, FakeTransport]
    ) -> None:
        _, fake = patched_transport
        fake.fail.add("read_discrete_inputs")
        assert main(["-H", "10.0.0.1", "status"]) == EXIT_ERROR

    def test_connect_failure_exits_1(self) -> None:
        with patch("emcp.src.main.ModbusTcpTransport") as cls:
            cls.return_value.__enter__.side_effect = TransportError("10.0.0.1:502", "connect failed")
            assert main(["-H", "10.0.0.1"]) == EXIT_ERROR

    def test_reset_skips_modbus(self) -> None:
        with (
            patch("emcp.src.main.hard_reset") as mock_reset,
            patch("emcp.src.main.ModbusTcpTransport") as cls,
        ):
            assert main(["-H", "10.0.0.1", "reset"]) == EXIT_OK
        mock_reset.assert_called_once_with("10.0.0.1", timeout_s=1.0)
        cls.assert_not_called()

    def test_reset_failure_exits_1(self) -> None:
        with patch("emcp.src.main.hard_reset") as mock_reset:
            mock_reset.side_effect = TransportError("HTTP GET", "refused")
            assert main(["-H", "10.0.0.1", "reset"]) == EXIT_ERROR
