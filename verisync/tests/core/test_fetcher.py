# verisync/tests/core/test_fetcher.py
"""
Tests for manifest fetchers and the remote manifest script.
"""
import itertools
import json
import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from verisync.core import fetcher as fetcher_module
from verisync.core.fetcher import (
    FileManifestFetcher,
    LocalManifestFetcher,
    SSHManifestFetcher,
    build_fetcher,
    build_manifest_script,
    format_manifest_line,
)
from verisync.core.parser import parse_manifest
from verisync.exceptions import ConfigurationError, FetchError, FetchTimeout
from verisync.schemas.source import SourceConfig


def _write_log(path: Path, records):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [json.dumps(r) if isinstance(r, dict) else r for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture
def ssh_source() -> SourceConfig:
    return SourceConfig(name="arm", kind="ssh", host="10.0.0.5", username="ubuntu")


def test_manifest_script_expands_home_and_selects_field():
    script = build_manifest_script("~/.claude/projects", "uuid")
    assert 'ROOT="$HOME"/.claude/projects' in script
    assert "jq -R -r 'fromjson? | objects | .uuid | strings'" in script
    assert "printf '%s|%s|%s\\n'" in script
    assert "command -v jq" in script


def test_manifest_script_quotes_absolute_roots():
    script = build_manifest_script("/data/my logs", "messageId")
    assert "ROOT='/data/my logs'" in script
    assert ".messageId | strings" in script


def test_manifest_script_rejects_unsafe_field_names():
    with pytest.raises(ConfigurationError):
        build_manifest_script("~/x", "uuid; rm -rf /")


def test_format_manifest_line_matches_remote_format():
    assert format_manifest_line("a/b.jsonl", 2, ["u1", "u2"]) == "a/b.jsonl|2|u1,u2,"
    assert format_manifest_line("a/b.jsonl", 0, []) == "a/b.jsonl|0|"


def test_ssh_fetcher_runs_script_through_executor(ssh_source):
    executor = MagicMock()
    executor.run.return_value = "p.jsonl|1|u1,\n"
    fetcher = SSHManifestFetcher(ssh_source, executor=executor)

    assert fetcher.fetch(timeout=12) == "p.jsonl|1|u1,\n"
    command = executor.run.call_args[0][0]
    assert command.startswith("bash -c ")
    assert "jq" in command
    assert executor.run.call_args[1] == {"timeout": 12}


def test_ssh_fetcher_propagates_fetch_errors(ssh_source):
    executor = MagicMock()
    executor.run.side_effect = FetchTimeout("arm", 3)
    fetcher = SSHManifestFetcher(ssh_source, executor=executor)

    with pytest.raises(FetchTimeout):
        fetcher.fetch(timeout=3)


def test_ssh_fetcher_history_reads_history_path(ssh_source):
    executor = MagicMock()
    executor.run.return_value = "{}"
    SSHManifestFetcher(ssh_source, executor=executor).fetch_history(timeout=4)
    assert executor.run.call_args[0][0] == 'cat "$HOME"/.claude/history.jsonl'


def test_local_fetcher_builds_parseable_manifest(tmp_path: Path):
    root = tmp_path / "projects"
    _write_log(
        root / "proj" / "s1.jsonl",
        [{"uuid": "u1"}, {"type": "summary"}, {"uuid": "u2"}, "not json"],
    )
    _write_log(root / "proj" / "s2.jsonl", [{"uuid": "x1"}])
    (root / "proj" / "notes.txt").write_text("ignored")

    fetcher = LocalManifestFetcher(SourceConfig(name="local", kind="local", root=str(root)))
    outcome = parse_manifest(fetcher.fetch(), "local")

    assert outcome.issues == []
    s1 = outcome.manifest.get("proj/s1.jsonl")
    assert s1.ids == ("u1", "u2")
    assert s1.entry_count == 4
    assert outcome.manifest.get("proj/s2.jsonl").ids == ("x1",)
    assert "proj/notes.txt" not in outcome.manifest


def test_local_fetcher_honours_id_field(tmp_path: Path):
    _write_log(tmp_path / "s.jsonl", [{"uuid": "u1", "messageId": "m1"}])
    source = SourceConfig(name="local", kind="local", root=str(tmp_path), id_field="messageId")
    assert LocalManifestFetcher(source).fetch() == "s.jsonl|1|m1,"


def test_local_fetcher_missing_root_is_an_error(tmp_path: Path):
    source = SourceConfig(name="gone", kind="local", root=str(tmp_path / "missing"))
    with pytest.raises(FetchError) as excinfo:
        LocalManifestFetcher(source).fetch()
    assert excinfo.value.source == "gone"


def test_local_fetcher_skips_paths_with_separator(tmp_path: Path):
    _write_log(tmp_path / "a|b.jsonl", [{"uuid": "u1"}])
    _write_log(tmp_path / "ok.jsonl", [{"uuid": "u1"}])
    source = SourceConfig(name="local", kind="local", root=str(tmp_path))
    assert LocalManifestFetcher(source).fetch() == "ok.jsonl|1|u1,"


def test_file_fetcher_reads_saved_manifest(tmp_path: Path):
    saved = tmp_path / "arm_manifest.txt"
    saved.write_text("p.jsonl|1|u1,\n")
    fetcher = FileManifestFetcher(SourceConfig(name="arm", kind="file", root=str(saved)))
    assert fetcher.fetch() == "p.jsonl|1|u1,\n"
    assert fetcher.fetch_history() == "p.jsonl|1|u1,\n"


def test_file_fetcher_missing_file_raises(tmp_path: Path):
    fetcher = FileManifestFetcher(
        SourceConfig(name="arm", kind="file", root=str(tmp_path / "none.txt"))
    )
    with pytest.raises(FetchError):
        fetcher.fetch()


def test_build_fetcher_dispatches_on_kind(ssh_source, tmp_path: Path):
    assert isinstance(build_fetcher(ssh_source), SSHManifestFetcher)
    assert isinstance(
        build_fetcher(SourceConfig(name="l", kind="local", root=str(tmp_path))),
        LocalManifestFetcher,
    )
    assert isinstance(
        build_fetcher(SourceConfig(name="f", kind="file", root=str(tmp_path))),
        FileManifestFetcher,
    )


def test_local_fetcher_gives_up_after_timeout(tmp_path: Path, monkeypatch):
    for i in range(3):
        _write_log(tmp_path / f"s{i}.jsonl", [{"uuid": "u1"}])
    ticks = itertools.count(step=10)
    monkeypatch.setattr(fetcher_module.time, "monotonic", lambda: next(ticks))
    source = SourceConfig(name="nfs", kind="local", root=str(tmp_path))

    with pytest.raises(FetchTimeout) as excinfo:
        LocalManifestFetcher(source).fetch(timeout=5)

    assert excinfo.value.source == "nfs"


needs_shell_tools = pytest.mark.skipif(
    shutil.which("bash") is None or shutil.which("jq") is None,
    reason="requires bash and jq",
)


def _run_script(root: str, id_field: str = "uuid") -> str:
    proc = subprocess.run(
        ["bash", "-c", build_manifest_script(root, id_field)],
        capture_output=True,
        text=True,
        timeout=30,
        check=True,
    )
    return proc.stdout


@needs_shell_tools
def test_manifest_script_matches_local_fetcher(tmp_path: Path):
    root = tmp_path / "projects"
    _write_log(
        root / "proj" / "s.jsonl",
        [{"uuid": "u1"}, '{"uuid": "u2"', {"uuid": "u3"}, {"type": "summary"}, {"uuid": 7}],
    )
    _write_log(root / "proj" / "empty.jsonl", [{"type": "summary"}])

    remote = _run_script(str(root))
    local = LocalManifestFetcher(SourceConfig(name="l", kind="local", root=str(root))).fetch()

    assert parse_manifest(remote, "r").manifest.entries == parse_manifest(local, "l").manifest.entries
    assert parse_manifest(remote, "r").manifest.get("proj/s.jsonl").ids == ("u1", "u3")


@needs_shell_tools
def test_manifest_script_paths_are_relative_with_trailing_slash(tmp_path: Path):
    _write_log(tmp_path / "projects" / "proj" / "s.jsonl", [{"uuid": "u1"}])

    remote = _run_script(str(tmp_path / "projects") + "/")

    assert remote == "proj/s.jsonl|1|u1,\n"


@needs_shell_tools
def test_manifest_script_fails_on_missing_root(tmp_path: Path):
    with pytest.raises(subprocess.CalledProcessError) as excinfo:
        _run_script(str(tmp_path / "missing"))
    assert "log root not found" in excinfo.value.stderr
