# verisync/tests/executors/test_ssh_executor.py
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from verisync.exceptions import ConfigurationError, FetchError, FetchTimeout
from verisync.executors.ssh import SSHExecutor, _sanitize_cli_list
from verisync.schemas.source import SourceConfig


@pytest.fixture
def source():
    return SourceConfig(
        name="arm",
        host="10.0.0.5",
        username="ubuntu",
        private_key_path="/home/me/.ssh/id_ed25519",
    )


@patch("verisync.executors.ssh.subprocess.run")
def test_run_builds_batch_mode_command(mock_run, source):
    mock_run.return_value = MagicMock(returncode=0, stdout="a|1|u,\n", stderr="")
    executor = SSHExecutor(source, timeout=30)

    assert executor.run("echo hi") == "a|1|u,\n"

    argv = mock_run.call_args.args[0]
    assert argv == [
        "ssh", "-p", "22",
        "-o", "BatchMode=yes",
        "-o", "StrictHostKeyChecking=accept-new",
        "-i", "/home/me/.ssh/id_ed25519",
        "ubuntu@10.0.0.5", "echo hi",
    ]
    assert mock_run.call_args.kwargs["timeout"] == 30
    assert mock_run.call_args.kwargs["errors"] == "replace"


@patch("verisync.executors.ssh.subprocess.run")
def test_run_without_key_or_user(mock_run):
    mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
    executor = SSHExecutor(SourceConfig(name="x86", host="box", ssh_port=2200))

    executor.run("true", timeout=5)

    argv = mock_run.call_args.args[0]
    assert "-i" not in argv
    assert argv[1:3] == ["-p", "2200"]
    assert argv[-2] == "box"
    assert mock_run.call_args.kwargs["timeout"] == 5


@patch("verisync.executors.ssh.subprocess.run")
def test_nonzero_exit_raises_fetch_error(mock_run, source):
    mock_run.return_value = MagicMock(returncode=255, stdout="", stderr="Permission denied\n")

    with pytest.raises(FetchError) as excinfo:
        SSHExecutor(source).run("true")

    assert excinfo.value.source == "arm"
    assert "255" in str(excinfo.value)
    assert "Permission denied" in str(excinfo.value)


@patch("verisync.executors.ssh.subprocess.run")
def test_timeout_raises_fetch_timeout(mock_run, source):
    mock_run.side_effect = subprocess.TimeoutExpired(cmd="ssh", timeout=1)

    with pytest.raises(FetchTimeout) as excinfo:
        SSHExecutor(source, timeout=1).run("sleep 10")

    assert excinfo.value.source == "arm"
    assert excinfo.value.timeout == 1


@patch("verisync.executors.ssh.subprocess.run")
def test_missing_ssh_client(mock_run, source):
    mock_run.side_effect = FileNotFoundError("ssh")

    with pytest.raises(FetchError, match="SSH client not found"):
        SSHExecutor(source).run("true")


def test_source_without_host_is_rejected(source):
    hostless = source.model_copy(update={"host": None})
    with pytest.raises(ConfigurationError):
        SSHExecutor(hostless)


def test_sanitize_masks_identity_file():
    rendered = _sanitize_cli_list(["ssh", "-i", "/secret/key", "host", "ls"])
    assert "/secret/key" not in rendered
    assert "-i ********" in rendered
