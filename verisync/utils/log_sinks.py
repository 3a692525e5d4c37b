# verisync/utils/log_sinks.py
"""
Logging components that tie records to a comparison run.

`run_id_context` holds the id of the run in progress; `RunIdFilter`
copies it onto every record. `JsonlFileHandler` keeps an audit trail of
each run as ``<logs_dir>/<run_id>.jsonl``, one JSON object per record.
"""
import contextvars
import logging
import threading
from pathlib import Path
from typing import IO, Dict, Optional

from pythonjsonlogger import jsonlogger

run_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "run_id", default=None
)

RUN_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(run_id)s %(message)s"


class RunIdFilter(logging.Filter):
    """Stamps `record.run_id` from `run_id_context` (None outside a run)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_context.get()
        return True


class JsonlFileHandler(logging.Handler):
    """
    Appends each record to the JSON Lines file of the run it belongs to.

    Files are opened on the first record of a run and kept open until the
    handler is closed. Records without a run id are dropped here; the
    console handler still shows them.
    """

    def __init__(self, logs_dir: str):
        """
        :param logs_dir: Directory for the per-run files; created if missing.
        :type logs_dir: str
        """
        super().__init__()
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self._streams: Dict[str, IO[str]] = {}
        self._streams_lock = threading.Lock()
        self.addFilter(RunIdFilter())
        self.setFormatter(
            jsonlogger.JsonFormatter(
                RUN_LOG_FORMAT,
                rename_fields={"levelname": "level", "name": "logger_name"},
            )
        )

    def path_for(self, run_id: str) -> Path:
        return self.logs_dir / f"{run_id}.jsonl"

    def _stream(self, run_id: str) -> IO[str]:
        with self._streams_lock:
            stream = self._streams.get(run_id)
            if stream is None:
                stream = self.path_for(run_id).open("a", encoding="utf-8")
                self._streams[run_id] = stream
            return stream

    def emit(self, record: logging.LogRecord) -> None:
        run_id = getattr(record, "run_id", None)
        if not run_id:
            return
        try:
            stream = self._stream(run_id)
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        with self._streams_lock:
            for stream in self._streams.values():
                stream.close()
            self._streams.clear()
        super().close()
