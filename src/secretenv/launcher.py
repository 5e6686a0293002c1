"""Child process launching with a resolved environment.

The child inherits stdin, stdout and stderr. Termination signals received by
this process while the child runs are forwarded to it, and the child's exit
status becomes ours (128 + signal number when it was killed by a signal).
"""

import logging
import os
import signal
import subprocess
from collections.abc import Mapping, Sequence
from types import FrameType

from secretenv.core.errors import SecretEnvError

logger = logging.getLogger(__name__)

FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class LaunchError(SecretEnvError):
    """Raised when the child process cannot be started."""


def build_child_environment(
    resolved: Mapping[str, str], base: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Merge resolved entries over the base environment (os.environ by default)."""
    environment = dict(os.environ if base is None else base)
    environment.update(resolved)
    return environment


def exit_code_for(returncode: int) -> int:
    """Translate a Popen return code into a shell-style exit code."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


def run_command(command: Sequence[str], env: Mapping[str, str]) -> int:
    """Run `command` with `env` and wait for it to exit.

    Args:
        command: Program and arguments
        env: Complete environment for the child

    Returns:
        The exit code to propagate

    Raises:
        LaunchError: If the command is empty or cannot be executed
    """
    if not command:
        raise LaunchError("No command specified")

    logger.debug(f"Running command: {' '.join(command)}")
    try:
        child = subprocess.Popen(list(command), env=dict(env))
    except OSError as e:
        raise LaunchError(f"Failed to execute command: {command[0]}: {e}") from e

    def forward(signum: int, frame: FrameType | None) -> None:
        logger.debug(f"Forwarding signal {signum} to child process {child.pid}")
        try:
            child.send_signal(signum)
        except ProcessLookupError:
            logger.debug("Child process already exited")

    previous = {}
    for signum in FORWARDED_SIGNALS:
        previous[signum] = signal.signal(signum, forward)
    try:
        returncode = child.wait()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    if returncode < 0:
        logger.error(f"Command terminated by signal: {-returncode}")
    elif returncode != 0:
        logger.debug(f"Command exited with code: {returncode}")
    return exit_code_for(returncode)
