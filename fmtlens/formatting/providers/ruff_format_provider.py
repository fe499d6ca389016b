"""Formatted view backed by ``ruff format``."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys

from fmtlens.formatting.code_formatting import FormatOptions, FormatRequest, FormatResult

log = logging.getLogger(__name__)

RUFF_VIEW_KINDS = {"formatted"}

NON_CONVERGENT_MESSAGE = (
    "Format doesn't converge! Formatting the output again gives a different result. "
    "This is a formatter bug; please report it with the input code."
)


class RuffFormatProvider:
    def __init__(self, *, check_convergence: bool = True, timeout_s: float = 20.0) -> None:
        self._check_convergence = bool(check_convergence)
        self._timeout_s = float(timeout_s)

    def can_render(self, view_kind: str) -> bool:
        return str(view_kind or "").strip().lower() in RUFF_VIEW_KINDS

    def render(self, request: FormatRequest) -> FormatResult:
        source_text = str(request.source_text or "")
        if not source_text.strip():
            return FormatResult(status="ok", output_text=source_text, message="Nothing to format.")

        first = self._run_ruff_format(request, source_text)
        if not first.ok or not self._check_convergence:
            return first

        second = self._run_ruff_format(request, first.output_text)
        first.debug_lines.extend(second.debug_lines)
        if second.ok and second.output_text != first.output_text:
            first.warnings.append(NON_CONVERGENT_MESSAGE)
            log.warning("ruff format output is not idempotent")
        return first

    def _run_ruff_format(self, request: FormatRequest, source_text: str) -> FormatResult:
        candidates = self._ruff_command_candidates(
            interpreter=str(request.interpreter or "").strip(),
            filename=str(request.filename or "playground.py"),
            options=request.options,
        )
        debug: list[str] = []
        last_err = ""

        for cmd in candidates:
            debug.append(f"[Format] cmd: {' '.join(cmd)}")
            log.debug("running %s", cmd)
            try:
                proc = subprocess.run(
                    cmd,
                    input=source_text,
                    text=True,
                    encoding="utf-8",
                    capture_output=True,
                    check=False,
                    timeout=self._timeout_s,
                )
            except FileNotFoundError:
                last_err = f"Command not found: {cmd[0]}"
                debug.append(f"[Format][stderr] {last_err}")
                continue
            except subprocess.TimeoutExpired:
                last_err = f"Ruff timed out after {self._timeout_s:g}s."
                debug.append(f"[Format][stderr] {last_err}")
                continue
            except OSError as exc:
                last_err = str(exc)
                debug.append(f"[Format][stderr] {last_err}")
                continue

            stderr = str(proc.stderr or "").strip()
            if proc.returncode == 0:
                return FormatResult(status="ok", output_text=str(proc.stdout or ""), stderr=stderr, debug_lines=debug)

            debug.append(f"[Format][stderr] {stderr or f'exit {proc.returncode}'}")
            if self._looks_like_missing_ruff_backend(stderr):
                last_err = stderr or "Ruff backend unavailable."
                continue
            return FormatResult(
                status="error",
                message=self._first_error_line(stderr) or f"Ruff format failed (exit {proc.returncode}).",
                stderr=stderr,
                debug_lines=debug,
            )

        return FormatResult(
            status="error",
            message="Ruff formatter not found. Install ruff in the selected interpreter or on PATH.",
            stderr=last_err,
            debug_lines=debug,
        )

    def _ruff_command_candidates(
        self,
        *,
        interpreter: str,
        filename: str,
        options: FormatOptions,
    ) -> list[list[str]]:
        args = ["format", *self._option_args(options), "--stdin-filename", filename, "-"]
        candidates: list[list[str]] = []
        interp = str(interpreter or "").strip() or sys.executable
        if interp:
            candidates.append([interp, "-m", "ruff", *args])
        ruff_bin = shutil.which("ruff")
        candidates.append([ruff_bin or "ruff", *args])
        # Deduplicate while preserving order.
        out: list[list[str]] = []
        seen: set[tuple[str, ...]] = set()
        for cmd in candidates:
            key = tuple(cmd)
            if key in seen:
                continue
            seen.add(key)
            out.append(cmd)
        return out

    @staticmethod
    def _option_args(options: FormatOptions) -> list[str]:
        skip = "true" if options.skip_magic_trailing_comma else "false"
        return [
            "--line-length",
            str(int(options.line_length)),
            "--config",
            f"indent-width = {int(options.indent_width)}",
            "--config",
            f'format.quote-style = "{options.quote_style}"',
            "--config",
            f"format.skip-magic-trailing-comma = {skip}",
        ]

    @staticmethod
    def _first_error_line(stderr: str) -> str:
        for line in str(stderr or "").splitlines():
            text = line.strip()
            if text:
                return text
        return ""

    @staticmethod
    def _looks_like_missing_ruff_backend(stderr: str) -> bool:
        text = str(stderr or "").strip().lower()
        return (
            "no module named ruff" in text
            or "can't open file" in text and "ruff" in text
            or "is not recognized as an internal or external command" in text
            or "command not found" in text and "ruff" in text
        )
