# verisync/tests/utils/test_logging.py
import json
import logging

from verisync.schemas.settings import settings
from verisync.utils import config
from verisync.utils import logger as logger_module
from verisync.utils.log_sinks import JsonlFileHandler, RunIdFilter, run_id_context
from verisync.utils.logger import StructuredLoggerAdapter, setup_logger


def _record(message="hello"):
    return logging.LogRecord("verisync.test", logging.INFO, __file__, 1, message, None, None)


def test_run_id_filter_stamps_record():
    token = run_id_context.set("run-123")
    try:
        record = _record()
        assert RunIdFilter().filter(record) is True
        assert record.run_id == "run-123"
    finally:
        run_id_context.reset(token)


def test_jsonl_handler_writes_per_run_file(tmp_path):
    handler = JsonlFileHandler(str(tmp_path / "logs"))
    token = run_id_context.set("abc")
    try:
        handler.handle(_record("compared"))
        handler.handle(_record("reported"))
    finally:
        run_id_context.reset(token)
        handler.close()

    lines = (tmp_path / "logs" / "abc.jsonl").read_text().splitlines()
    assert len(lines) == 2
    payload = json.loads(lines[0])
    assert payload["message"] == "compared"
    assert payload["level"] == "INFO"
    assert payload["logger_name"] == "verisync.test"


def test_jsonl_handler_ignores_records_outside_a_run(tmp_path):
    handler = JsonlFileHandler(str(tmp_path))
    handler.handle(_record())
    assert list(tmp_path.iterdir()) == []


def test_adapter_nests_extra():
    adapter = setup_logger("verisync.test")
    assert isinstance(adapter, StructuredLoggerAdapter)

    msg, kwargs = adapter.process("m", {"extra": {"timeout": 5}})
    assert kwargs["extra"] == {"extra_data": {"timeout": 5}}


def test_level_falls_back_to_settings(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings, "log_level", "warning")
    assert logger_module._resolve_level() == "WARNING"

    (tmp_path / "config.yaml").write_text("logging:\n  level: debug\n")
    config.reload_config()
    assert logger_module._resolve_level() == "DEBUG"
