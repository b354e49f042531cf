from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import has_request_context, request

AUDIT_LOGGER = "invtrack.audit"


class JsonFormatter(logging.Formatter):
    """One JSON object per line; request fields are added when logged inside a request."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if has_request_context():
            payload["method"] = request.method
            payload["path"] = request.path
            payload["remote_addr"] = request.remote_addr
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _handler(path: Path, level: int) -> RotatingFileHandler:
    fh = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    fh.setLevel(level)
    return fh


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    root.addHandler(_handler(logs_dir / "app.log", logging.INFO))
    root.addHandler(_handler(logs_dir / "errors.log", logging.ERROR))

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    console.setLevel(level)
    root.addHandler(console)

    # logins, logouts and record mutations
    audit = logging.getLogger(AUDIT_LOGGER)
    audit.addHandler(_handler(logs_dir / "audit.log", logging.INFO))
    audit.setLevel(logging.INFO)

    # one line per request from the dev server; keep it out of app.log
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
