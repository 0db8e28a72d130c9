"""
Logging configuration for RewardFlow.

Ledger records carry settlement context through ``extra=``:

    logger.debug("harvest settled", extra={"action": "harvest", "pid": 0,
                                           "account": "alice", "paid": 864})

Both formatters surface those fields:
  - **human** – coloured single line, context appended as ``key=value``
  - **json**  – one object per line, context as top-level keys
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# LogRecord attributes the ledger sets via ``extra=``, in output order.
CONTEXT_FIELDS = ("action", "pid", "account", "to", "amount", "paid")


def record_context(record: logging.LogRecord) -> dict:
    """Settlement context attached to *record*, if any."""
    return {k: getattr(record, k) for k in CONTEXT_FIELDS if hasattr(record, k)}


class _JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _HumanFormatter(logging.Formatter):
    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelname, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = (f"{colour}{stamp} [{record.levelname:<7}]{self.RESET} "
                f"{record.name}: {record.getMessage()}")
        ctx = record_context(record)
        if ctx:
            line += " " + " ".join(f"{k}={v}" for k, v in ctx.items())
        return line


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Install RewardFlow's handlers on the root logger and return it.

    ``fmt`` selects the console format (``"human"`` or ``"json"``);
    ``log_file``, when given, always receives JSON lines.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_JSONFormatter() if fmt == "json" else _HumanFormatter())
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(path))
        file_handler.setFormatter(_JSONFormatter())
        root.addHandler(file_handler)
    return root


def setup_from_config(cfg) -> logging.Logger:
    """Apply the ``[logging]`` section of a loaded ``RewardFlowConfig``."""
    return setup_logging(level=cfg.logging.level, fmt=cfg.logging.format,
                         log_file=cfg.logging.file)
