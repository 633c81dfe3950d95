# floortrack/core/logging_config.py
import json
import logging
import sys
from datetime import datetime, timezone

# --- Fields ---

# Ids and request data a log call may pass through `extra=`
CONTEXT_FIELDS = ("request_id", "entry_id", "employee_id", "technician_id", "supervisor_id",
                  "http_method", "http_path", "http_status", "duration_ms")

# Libraries that only log noise at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"


# --- Formatters ---

class JSONFormatter(logging.Formatter):
    """One JSON object per line: time, level, logger, message, source, then any context ids."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        line.update({field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)})
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


# --- Setup ---

def setup_logging(level: str = "INFO", json_output: bool = True):
    formatter = JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
