"""Scan runner — gated shell checks with hard deadlines."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import psutil

from drift_toolkit.config.models import ScanDefinition
from drift_toolkit.constants import BUFFERS, DEFAULTS, TIMEOUTS
from drift_toolkit.errors import ScanTimeout
from drift_toolkit.scanner.models import ScanContext, ScanResult, ScanStatus

logger = logging.getLogger(__name__)

_SPAWN_FAILURE_EXIT_CODE = 127


@dataclass
class _Completed:
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool
    duration_ms: int


def run_scan(
    scan: ScanDefinition,
    repo_path: str | Path,
    context: ScanContext | None = None,
    *,
    default_timeout_ms: int = TIMEOUTS.scan_ms,
) -> ScanResult:
    """Run one scan against a repository working directory.

    Gates are evaluated in a fixed order: tier filter, ``if_file``,
    ``if_command``. A failed gate skips the scan without running anything
    after it. The command's exit code decides pass/fail; exceeding the
    deadline kills the process tree and fails the scan.
    """
    repo = Path(repo_path)
    timeout_ms = scan.timeout or default_timeout_ms

    skip_reason = _tier_gate(scan, context)
    if skip_reason is None and scan.if_file:
        if not (repo / scan.if_file).exists():
            skip_reason = f"if_file '{scan.if_file}' not found"
    if skip_reason is None and scan.if_command:
        try:
            gate = _execute(scan.if_command, repo, timeout_ms)
        except OSError as e:
            skip_reason = f"if_command could not run: {e}"
        else:
            if gate.timed_out:
                skip_reason = f"if_command timed out after {timeout_ms}ms"
            elif gate.returncode != 0:
                skip_reason = f"if_command exited {gate.returncode}"

    if skip_reason is not None:
        logger.debug("Skipping scan %s: %s", scan.name, skip_reason)
        return ScanResult(
            scan=scan.name,
            status=ScanStatus.SKIP,
            exit_code=None,
            stdout="",
            stderr="",
            severity=scan.severity,
            skip_reason=skip_reason,
        )

    logger.info("Running scan %s in %s", scan.name, repo)
    try:
        done = _execute(scan.command, repo, timeout_ms)
    except OSError as e:
        logger.error("Scan %s could not start: %s", scan.name, e)
        return ScanResult(
            scan=scan.name,
            status=ScanStatus.FAIL,
            exit_code=_SPAWN_FAILURE_EXIT_CODE,
            stdout="",
            stderr=str(e),
            severity=scan.severity,
            error=str(e),
        )

    if done.timed_out:
        timeout_error = ScanTimeout(f"Scan '{scan.name}' timed out after {timeout_ms}ms")
        logger.warning("%s", timeout_error)
        stderr = done.stderr
        if stderr and not stderr.endswith("\n"):
            stderr += "\n"
        return ScanResult(
            scan=scan.name,
            status=ScanStatus.FAIL,
            exit_code=DEFAULTS.timeout_exit_code,
            stdout=done.stdout,
            stderr=stderr + str(timeout_error),
            severity=scan.severity,
            duration_ms=done.duration_ms,
            timed_out=True,
            error=str(timeout_error),
        )

    status = ScanStatus.PASS if done.returncode == 0 else ScanStatus.FAIL
    return ScanResult(
        scan=scan.name,
        status=status,
        exit_code=done.returncode,
        stdout=done.stdout,
        stderr=done.stderr,
        severity=scan.severity,
        duration_ms=done.duration_ms,
    )


def run_all_scans(
    scans: Iterable[ScanDefinition],
    repo_path: str | Path,
    context: ScanContext | None = None,
    *,
    default_timeout_ms: int = TIMEOUTS.scan_ms,
) -> list[ScanResult]:
    """Run scans in order with a shared context."""
    return [
        run_scan(scan, repo_path, context, default_timeout_ms=default_timeout_ms)
        for scan in scans
    ]


def _tier_gate(scan: ScanDefinition, context: ScanContext | None) -> str | None:
    if not scan.tiers:
        return None
    tier = context.tier if context else None
    if tier is None:
        return f"requires tier {', '.join(scan.tiers)}; repository has no tier"
    if tier not in scan.tiers:
        return f"requires tier {', '.join(scan.tiers)}; repository tier is {tier}"
    return None


def _execute(command: str, cwd: Path, timeout_ms: int) -> _Completed:
    """Run ``command`` through the shell, always reaping it before returning."""
    start = time.monotonic()
    proc = subprocess.Popen(
        command,
        shell=True,
        cwd=str(cwd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        start_new_session=True,
    )
    timed_out = False
    try:
        try:
            out, err = proc.communicate(timeout=timeout_ms / 1000)
        except subprocess.TimeoutExpired:
            timed_out = True
            _kill_process_tree(proc)
            try:
                out, err = proc.communicate(timeout=TIMEOUTS.terminate_grace_seconds)
            except subprocess.TimeoutExpired:
                # A descendant left the process group and still holds the pipes
                logger.warning("Abandoning output of timed-out command: %s", command)
                for stream in (proc.stdout, proc.stderr):
                    if stream is not None:
                        stream.close()
                out, err = b"", b""
    finally:
        if proc.poll() is None:
            _kill_process_tree(proc)
        proc.wait()

    return _Completed(
        returncode=proc.returncode,
        stdout=_decode(out),
        stderr=_decode(err),
        timed_out=timed_out,
        duration_ms=int((time.monotonic() - start) * 1000),
    )


def _kill_process_tree(proc: subprocess.Popen[bytes]) -> None:
    try:
        descendants = psutil.Process(proc.pid).children(recursive=True)
    except psutil.NoSuchProcess:
        descendants = []

    for victim in descendants:
        try:
            victim.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    proc.kill()

    if hasattr(os, "killpg"):
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    if len(data) > BUFFERS.max_output_bytes:
        data = data[: BUFFERS.max_output_bytes]
    return data.decode("utf-8", errors="replace")
