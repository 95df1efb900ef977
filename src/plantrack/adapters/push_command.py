"""Push command adapter - subprocess wrapper for a user-configured shell command."""

import logging
import subprocess

from plantrack.core.errors import PushError

logger = logging.getLogger(__name__)


class ShellPushCommand:
    """
    Runs the configured push command through the shell.

    Typically used to sync the exported .ics file somewhere, e.g.
    ``rsync schedule.ics host:/var/www/``.
    """

    def __init__(self, command: str, timeout: int = 120):
        self.command = command
        self.timeout = timeout

    def run(self) -> None:
        """Run the command. Raises PushError on failure."""
        logger.info(f"Executing push command: {self.command}")
        try:
            proc = subprocess.run(
                ["sh", "-c", self.command],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise PushError("'sh' not found - cannot run push command")
        except subprocess.TimeoutExpired:
            raise PushError(f"Push command timed out after {self.timeout}s")

        if proc.returncode != 0:
            logger.error(f"Push command failed: {proc.stderr}")
            raise PushError(f"Command failed with exit code {proc.returncode}: {proc.stderr.strip()}")
