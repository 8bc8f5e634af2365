"""
Structured JSON logger.
Usage: from mindmate.utils.logging import logger

Context passed with ``extra={...}`` is emitted under the "context" key.
"""
import logging
import sys
import json

# Attributes every LogRecord carries; anything else came in through extra=.
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        context = {k: v for k, v in record.__dict__.items() if k not in _RESERVED}
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> logging.Logger:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JSONFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in [h for h in root.handlers if isinstance(h.formatter, _JSONFormatter)]:
        root.removeHandler(existing)
    root.addHandler(handler)

    return logging.getLogger("mindmate")


logger = setup_logging()
