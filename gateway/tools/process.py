"""Subprocess helpers with a mandatory timeout and guaranteed reaping."""
import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from ..config import settings
from ..errors import ProcessTimeoutError
from .workspace import truncate

logger = logging.getLogger(__name__)

# Environment variables whose names contain these never reach child processes
_SECRET_MARKERS = ("API_KEY", "SECRET", "TOKEN", "PASSWORD")


@dataclass
class ProcessOutput:
    returncode: int
    stdout: str
    stderr: str


def scrubbed_env() -> Dict[str, str]:
    return {k: v for k, v in os.environ.items()
            if not any(marker in k.upper() for marker in _SECRET_MARKERS)}


def _signal(proc: asyncio.subprocess.Process, sig: int, group: bool):
    if group and hasattr(os, "killpg"):
        os.killpg(proc.pid, sig)
    else:
        proc.send_signal(sig)


def _kill_group(pgid: int):
    if not hasattr(os, "killpg"):
        return
    try:
        os.killpg(pgid, getattr(signal, "SIGKILL", signal.SIGTERM))
    except ProcessLookupError:
        pass


async def _reap(proc: asyncio.subprocess.Process, group: bool = False):
    """Terminate, then kill if it does not exit promptly.

    With ``group`` the whole process group is signalled so children spawned
    by a shell die with it. The group can outlive its leader (``sleep 30 &``),
    so it is killed even when the shell itself has already exited.
    """
    if proc.returncode is None:
        try:
            _signal(proc, signal.SIGTERM, group)
            await asyncio.wait_for(proc.wait(), timeout=2.0)
        except (ProcessLookupError, asyncio.TimeoutError):
            try:
                _signal(proc, getattr(signal, "SIGKILL", signal.SIGTERM), group)
            except ProcessLookupError:
                pass
            await proc.wait()
    if group:
        _kill_group(proc.pid)


async def _drain(stream: Optional[asyncio.StreamReader], buf: bytearray):
    if stream is None:
        return
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            return
        buf.extend(chunk)


async def _communicate(proc: asyncio.subprocess.Process, timeout_s: float, label: str,
                       group: bool = False) -> ProcessOutput:
    # Output read so far survives a timeout; the buffers outlive the reader tasks
    stdout, stderr = bytearray(), bytearray()
    try:
        await asyncio.wait_for(
            asyncio.gather(_drain(proc.stdout, stdout), _drain(proc.stderr, stderr), proc.wait()),
            timeout=timeout_s,
        )
    except asyncio.TimeoutError:
        await _reap(proc, group)
        timeout_ms = int(timeout_s * 1000)
        logger.warning(f"Process timed out after {timeout_s:.1f}s: {label}")
        raise ProcessTimeoutError(
            f"Command timed out after {timeout_ms}ms", timeout_ms=timeout_ms,
            stdout=truncate(stdout.decode(errors="replace"), settings.max_tool_output_chars),
            stderr=truncate(stderr.decode(errors="replace"), settings.max_tool_output_chars))
    except asyncio.CancelledError:
        # Caller went away: do not leave the child running
        await asyncio.shield(_reap(proc, group))
        logger.info(f"Process killed on cancellation: {label}")
        raise
    if group:
        # Background children that let go of the pipes still belong to the call
        _kill_group(proc.pid)
    return ProcessOutput(
        returncode=proc.returncode,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


async def run_exec(argv: Sequence[str], cwd: str, timeout_s: float,
                   env: Optional[Dict[str, str]] = None) -> ProcessOutput:
    """Run an argument vector (no shell)."""
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=cwd,
        env=env if env is not None else scrubbed_env(),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    return await _communicate(proc, timeout_s, argv[0])


async def run_shell(command: str, cwd: str, timeout_s: float,
                    env: Optional[Dict[str, str]] = None) -> ProcessOutput:
    """Run a shell command string. Only the terminal tool uses this."""
    proc = await asyncio.create_subprocess_shell(
        command,
        cwd=cwd,
        env=env if env is not None else scrubbed_env(),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    return await _communicate(proc, timeout_s, command, group=True)
