import importlib.util
import subprocess
import sys

import pytest

from fmtlens.formatting import FormatOptions, FormatRequest
from fmtlens.formatting.providers import RuffFormatProvider
from fmtlens.formatting.providers import ruff_format_provider
from fmtlens.formatting.providers.ruff_format_provider import NON_CONVERGENT_MESSAGE


def test_command_carries_format_options():
    provider = RuffFormatProvider()
    options = FormatOptions(line_length=100, indent_width=2, quote_style="single", skip_magic_trailing_comma=True)
    cmd = provider._ruff_command_candidates(interpreter="/opt/py/bin/python", filename="demo.py", options=options)[0]
    assert cmd[:4] == ["/opt/py/bin/python", "-m", "ruff", "format"]
    assert cmd[cmd.index("--line-length") + 1] == "100"
    assert "indent-width = 2" in cmd
    assert 'format.quote-style = "single"' in cmd
    assert "format.skip-magic-trailing-comma = true" in cmd
    assert cmd[-3:] == ["--stdin-filename", "demo.py", "-"]


def test_blank_source_is_returned_unchanged(monkeypatch):
    def fail(*_args, **_kwargs):
        raise AssertionError("ruff should not run")

    monkeypatch.setattr(ruff_format_provider.subprocess, "run", fail)
    result = RuffFormatProvider().render(FormatRequest(source_text="  \n"))
    assert result.ok
    assert result.output_text == "  \n"


def test_non_convergent_output_is_flagged(monkeypatch):
    def fake_run(cmd, input, **_kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout=input + "#\n", stderr="")

    monkeypatch.setattr(ruff_format_provider.subprocess, "run", fake_run)
    result = RuffFormatProvider().render(FormatRequest(source_text="x=1\n", interpreter=sys.executable))
    assert result.ok
    assert result.output_text == "x=1\n#\n"
    assert result.warnings == [NON_CONVERGENT_MESSAGE]


def test_convergent_output_has_no_warning(monkeypatch):
    def fake_run(cmd, input, **_kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout="x = 1\n", stderr="")

    monkeypatch.setattr(ruff_format_provider.subprocess, "run", fake_run)
    result = RuffFormatProvider().render(FormatRequest(source_text="x=1\n", interpreter=sys.executable))
    assert result.ok
    assert result.warnings == []


def test_syntax_error_is_reported(monkeypatch):
    def fake_run(cmd, input, **_kwargs):
        return subprocess.CompletedProcess(cmd, 2, stdout="", stderr="error: Failed to parse demo.py:1:5\n")

    monkeypatch.setattr(ruff_format_provider.subprocess, "run", fake_run)
    result = RuffFormatProvider().render(FormatRequest(source_text="def (\n", interpreter=sys.executable))
    assert not result.ok
    assert result.message == "error: Failed to parse demo.py:1:5"


def test_missing_backend_falls_through_candidates(monkeypatch):
    calls = []

    def fake_run(cmd, input, **_kwargs):
        calls.append(cmd)
        if cmd[1:3] == ["-m", "ruff"]:
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="No module named ruff")
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(ruff_format_provider.subprocess, "run", fake_run)
    result = RuffFormatProvider().render(FormatRequest(source_text="x=1\n", interpreter="/nowhere/python"))
    assert not result.ok
    assert "Ruff formatter not found" in result.message
    assert len(calls) == 2


@pytest.mark.skipif(importlib.util.find_spec("ruff") is None, reason="ruff is not installed")
def test_real_ruff_formats_source():
    result = RuffFormatProvider().render(
        FormatRequest(source_text="x=[1,2]\n", options=FormatOptions(), interpreter=sys.executable)
    )
    assert result.ok, result.message
    assert result.output_text == "x = [1, 2]\n"
    assert result.warnings == []
