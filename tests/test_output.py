"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response with JSON text, plain text, and decoded values
- print_table in all three modes
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from azrest import output as output_module
from azrest.output import (
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


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("azrest.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("azrest.output._is_tty", lambda: True)
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
    def test_no_color_env_any_value(self, monkeypatch):
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
# stdout / stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("payload")
        captured = capfd.readouterr()
        assert captured.out == "payload\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "error", "warning", "success"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(OutputManager(no_color=True), method)("note")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "note" in captured.err

    def test_quiet_suppresses_info_not_errors(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("info-msg")
        mgr.success("ok-msg")
        mgr.error("err-msg")
        mgr.print_data("data")
        captured = capfd.readouterr()
        assert "info-msg" not in captured.err
        assert "ok-msg" not in captured.err
        assert "err-msg" in captured.err
        assert captured.out == "data\n"

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "[debug] shown" in err


# ------------------------------------------------------------------ #
# format_response
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json_text_is_pretty_printed(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response('{"name":"rg","tags":{}}')
        out = capfd.readouterr().out
        assert json.loads(out) == {"name": "rg", "tags": {}}
        assert '\n  "name": "rg"' in out

    def test_plain_format_prints_json_documents(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response('[1, 2]')
        assert json.loads(capfd.readouterr().out) == [1, 2]

    def test_non_json_text_unchanged(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response("not json <html>")
        assert capfd.readouterr().out == "not json <html>\n"

    def test_empty_body_prints_nothing(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response("  ")
        assert capfd.readouterr().out == ""

    def test_plain_scalar(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response('"text"')
        assert capfd.readouterr().out == "text\n"

    def test_rich_contains_content(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"key": "value"})
        out = capfd.readouterr().out
        assert "key" in out and "value" in out


# ------------------------------------------------------------------ #
# print_table
# ------------------------------------------------------------------ #


class TestPrintTable:
    HEADERS = ["Name", "Endpoint"]
    ROWS = [["public", "https://management.azure.com"], ["china", "https://management.chinacloudapi.cn"]]

    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(self.HEADERS, self.ROWS)
        data = json.loads(capfd.readouterr().out)
        assert data[0] == {"Name": "public", "Endpoint": "https://management.azure.com"}

    def test_plain(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(self.HEADERS, self.ROWS)
        lines = capfd.readouterr().out.strip().split("\n")
        assert lines[0] == "Name\tEndpoint"
        assert lines[2] == "china\thttps://management.chinacloudapi.cn"

    def test_rich(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(self.HEADERS, self.ROWS, title="Profiles")
        out = capfd.readouterr().out
        assert "Profiles" in out
        assert "public" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self, non_tty):
        reset_output()
        assert get_output() is get_output()

    def test_set_and_reset(self, non_tty):
        mgr = OutputManager(quiet=True)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_module_helpers_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.JSON, no_color=True))
        output_module.print_data("x")
        output_module.error("bad")
        captured = capfd.readouterr()
        assert captured.out == "x\n"
        assert "bad" in captured.err
