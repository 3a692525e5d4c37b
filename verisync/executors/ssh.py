# verisync/executors/ssh.py
"""
Provides a client for running read-only commands on remote hosts over SSH.

The SSHExecutor shells out to the system ``ssh`` client so that the
operator's agent, known_hosts and ~/.ssh/config are honoured. Every call
is bounded by a timeout; failures are raised as FetchError/FetchTimeout
attributed to the source being read.
"""

import re
import shlex
import subprocess
from typing import Optional, Tuple

from verisync.exceptions import ConfigurationError, FetchError, FetchTimeout
from verisync.schemas.source import SourceConfig
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)


def _sanitize_cli_list(argv: list[str]) -> str:
    """Render argv for logging with the identity file path masked."""
    s = " ".join(shlex.quote(x) for x in argv)
    return re.sub(r"(-i\s+)(\S+)", r"\1********", s)


class SSHExecutor:
    """Runs commands on the host described by a SourceConfig."""

    def __init__(self, source: SourceConfig, *, timeout: float = 60):
        """Initializes the SSHExecutor from a resolved source configuration.

        :param source: A validated ssh SourceConfig.
        :type source: SourceConfig
        :param timeout: Default timeout in seconds for each command.
        :type timeout: float
        :raises ConfigurationError: If the source has no host.
        """
        if not source.host:
            raise ConfigurationError(f"Source '{source.name}' has no host configured.")

        self.source = source
        self.default_timeout = timeout
        user = f"{source.username}@" if source.username else ""
        self.ssh_target = f"{user}{source.host}"

    def _base_ssh_args(self) -> list[str]:
        args = [
            "ssh",
            "-p",
            str(self.source.ssh_port),
            "-o",
            "BatchMode=yes",
            "-o",
            "StrictHostKeyChecking=accept-new",
        ]
        if self.source.private_key_path:
            args.extend(["-i", self.source.private_key_path])
        return args

    def _run_subprocess(
        self, command_list: list[str], timeout: float
    ) -> Tuple[int, str, str]:
        """Run ssh and capture its output.

        :return: A tuple of (returncode, stdout, stderr).
        :raises FetchTimeout: If the command exceeds `timeout`.
        :raises FetchError: If the ssh client cannot be started.
        """
        logger.debug(f"Running SSH subprocess: {_sanitize_cli_list(command_list)}")
        try:
            result = subprocess.run(
                command_list,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.error(
                f"SSH command to {self.ssh_target} timed out after {timeout} seconds"
            )
            raise FetchTimeout(self.source.name, timeout) from e
        except FileNotFoundError as e:
            logger.error(f"Command not found: {command_list[0]}. Is the ssh client installed?")
            raise FetchError(
                self.source.name, f"SSH client not found: {command_list[0]}"
            ) from e
        except OSError as e:
            logger.error(f"Error executing SSH command: {e}")
            raise FetchError(self.source.name, f"Error executing SSH command: {e}") from e

        return result.returncode, result.stdout or "", result.stderr or ""

    def run(self, command: str, *, timeout: Optional[float] = None) -> str:
        """Executes a shell command on the remote host and returns stdout.

        :param command: The shell command to execute remotely.
        :type command: str
        :param timeout: Overrides the default timeout for this call.
        :type timeout: Optional[float]
        :return: The command's stdout, untouched.
        :rtype: str
        :raises FetchError: If ssh or the remote command exits non-zero.
        :raises FetchTimeout: If the command does not finish in time.
        """
        eff_timeout = timeout or self.default_timeout
        ssh_cmd = self._base_ssh_args() + [self.ssh_target, command]

        rc, stdout, stderr = self._run_subprocess(ssh_cmd, eff_timeout)
        if rc != 0:
            detail = stderr.strip() or stdout.strip() or "no output"
            logger.error(
                f"Remote command failed on '{self.ssh_target}' with RC {rc}: {detail}"
            )
            raise FetchError(
                self.source.name, f"remote command failed with exit code {rc}: {detail}"
            )
        return stdout
