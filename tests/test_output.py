"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose rules
- Records and tables in JSON and plain formats
- Device-flow user code instructions
- Logging configuration
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest

from alexa_util import output as output_module
from alexa_util.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("alexa_util.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("alexa_util.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty):
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_disables_color(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Data goes to stdout and diagnostics go to stderr."""

    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_data("Bearer Atza|abc")
        captured = capfd.readouterr()
        assert captured.out == "Bearer Atza|abc\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "error", "warning", "success", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("diagnostic text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic text" in captured.err

    def test_user_code_goes_to_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.user_code("https://amazon.com/us/code", "ABCD-1234", 600)
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Go to: https://amazon.com/us/code" in captured.err
        assert "Enter code: ABCD-1234" in captured.err
        assert "10 min" in captured.err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden")
        mgr.suggest("hidden")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_user_code(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("boom")
        mgr.user_code("https://amazon.com/us/code", "WXYZ", 60)
        err = capfd.readouterr().err
        assert "boom" in err
        assert "WXYZ" in err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("dbg")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("dbg")
        assert "[debug] dbg" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Records and tables
# ------------------------------------------------------------------ #


class TestRecordsAndTables:
    def test_record_as_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_record({"name": "dev", "vendor_id": None})
        assert json.loads(capfd.readouterr().out) == {"name": "dev", "vendor_id": None}

    def test_record_as_plain(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_record({"name": "dev", "vendor_id": None})
        lines = capfd.readouterr().out.splitlines()
        assert lines == ["Field\tValue", "name\tdev", "vendor_id\t-"]

    def test_table_as_json(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Profile", "Status"], [["dev", "valid"], ["prod", "expired"]])
        assert json.loads(capfd.readouterr().out) == [
            {"Profile": "dev", "Status": "valid"},
            {"Profile": "prod", "Status": "expired"},
        ]

    def test_table_as_rich(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.print_table(["Profile"], [["dev"]], title="Profiles")
        out = capfd.readouterr().out
        assert "dev" in out
        assert "Profiles" in out


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestConfigureLogging:
    def test_warning_level_by_default(self, non_tty):
        OutputManager(format=OutputFormat.PLAIN).configure_logging()
        logger = logging.getLogger("alexa_util")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_debug_level_when_verbose(self, non_tty):
        OutputManager(format=OutputFormat.PLAIN, verbose=True).configure_logging()
        assert logging.getLogger("alexa_util").level == logging.DEBUG

    def test_repeated_calls_do_not_stack_handlers(self, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN)
        mgr.configure_logging()
        mgr.configure_logging()
        assert len(logging.getLogger("alexa_util").handlers) == 1

    def test_records_reach_stderr(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).configure_logging()
        logging.getLogger("alexa_util.auth.gate").warning("refresh failed")
        captured = capfd.readouterr()
        assert "refresh failed" in captured.err
        assert captured.out == ""


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        assert isinstance(get_output(), OutputManager)

    def test_set_output_installs_instance(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.error("via helper")
        assert "Error: via helper" in capfd.readouterr().err

    @pytest.mark.parametrize("name", ["info", "error", "success", "suggest"])
    def test_module_helpers_write_to_stderr(self, capfd, non_tty, name):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        getattr(output_module, name)("helper text")
        captured = capfd.readouterr()
        assert "helper text" in captured.err
        assert captured.out == ""

    def test_manager_exposes_only_format(self, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, quiet=True, verbose=True)
        assert mgr.format == OutputFormat.PLAIN
        assert not hasattr(mgr, "is_quiet")
        assert not hasattr(output_module, "warning")
