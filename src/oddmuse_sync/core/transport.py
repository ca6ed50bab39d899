"""Run rendered commands in a subprocess."""

import logging
import re
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_PWD_PATTERN = re.compile(r"(pwd=)('(?:[^']|'\"'\"')*'|\S+)")


def mask_password(command: str) -> str:
    """Hide the ``pwd=`` form value before a command is logged."""
    return _PWD_PATTERN.sub(r"\1***", command)


@dataclass(frozen=True)
class TransportResult:
    """Output of one command.

    Attributes:
        stdout: Decoded standard output.
        returncode: Process exit status; ``None`` when the command timed out.
        stderr: Decoded standard error.
    """

    stdout: str
    returncode: int | None
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ShellTransport:
    """Run commands through ``/bin/sh`` and decode their output.

    Args:
        timeout: Seconds to wait for one command.
    """

    def __init__(self, timeout: int = 60) -> None:
        self.timeout = timeout

    def run(self, command: str, encoding: str = "utf-8") -> TransportResult:
        logger.debug("Running: %s", mask_password(command))
        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            logger.warning(
                "Command timed out after %ss: %s",
                self.timeout,
                mask_password(command),
            )
            partial = exc.stdout or b""
            return TransportResult(
                stdout=partial.decode(encoding, errors="replace"),
                returncode=None,
                stderr=f"timed out after {self.timeout} seconds",
            )

        return TransportResult(
            stdout=proc.stdout.decode(encoding, errors="replace"),
            returncode=proc.returncode,
            stderr=proc.stderr.decode(encoding, errors="replace"),
        )
