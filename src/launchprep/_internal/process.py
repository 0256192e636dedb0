"""External process invocation (internal).

Blocking from the caller's point of view: ``run_command`` returns only after
the child exits. When a cancellation event is supplied the child is polled
and terminated as soon as the event is set.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from launchprep.errors import FetchCancelled

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1
TERMINATE_GRACE = 5.0


class CommandError(Exception):
    """An external command could not be started or exited non-zero."""

    def __init__(self, args: Sequence[str], returncode: Optional[int], stderr: str):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit status {returncode}"
        super().__init__(f"{' '.join(self.args_list)}: {detail}")


def run_command(
    args: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    cancel: Optional[threading.Event] = None,
    stdin: Optional[str] = None,
) -> str:
    """Run a command to completion and return its stdout.

    Raises:
        CommandError: If the command is missing or exits non-zero
        FetchCancelled: If ``cancel`` is set while the command runs
    """
    logger.debug("running %s (cwd=%s)", " ".join(args), cwd)
    if cancel is not None and cancel.is_set():
        raise FetchCancelled(f"cancelled before running {args[0]}")
    try:
        proc = subprocess.Popen(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        raise CommandError(args, None, str(e)) from e

    if cancel is None:
        stdout, stderr = proc.communicate(input=stdin)
    else:
        stdout, stderr = _communicate_cancellable(proc, args, cancel, stdin)

    if proc.returncode != 0:
        raise CommandError(args, proc.returncode, stderr or "")
    return stdout or ""


def _communicate_cancellable(proc, args, cancel: threading.Event, stdin: Optional[str]):
    pending_input = stdin
    while True:
        try:
            return proc.communicate(input=pending_input, timeout=POLL_INTERVAL)
        except subprocess.TimeoutExpired:
            # communicate() keeps the input it already sent
            pending_input = None
            if cancel.is_set():
                logger.info("cancelling %s", args[0])
                proc.terminate()
                try:
                    proc.communicate(timeout=TERMINATE_GRACE)
                except subprocess.TimeoutExpired:
                    proc.kill()
                    proc.communicate()
                raise FetchCancelled(f"{args[0]} cancelled")
