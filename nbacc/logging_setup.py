# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import orjson
import structlog


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog for JSON output; ``level`` overrides ``LOG_LEVEL``.

    Context bound with ``bind_run`` (the run id) is merged into every event.
    """
    log_level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    logging.basicConfig(level=log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(serializer=lambda obj, **kw: orjson.dumps(obj, default=str).decode()),
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def new_run_id() -> str:
    return f"run_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S%fZ')}"


def bind_run(run_id: str, command: str) -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(run_id=run_id, command=command)


def log_run_event(run_id: str, event: str, logs_dir: str | Path = "logs", **fields: Any) -> Path:
    """Append one record to ``{logs_dir}/{run_id}.jsonl`` and return the file path."""
    path = Path(logs_dir) / f"{run_id}.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "run_id": run_id,
        "event": event,
        **fields,
    }
    with path.open("ab") as f:
        f.write(orjson.dumps(record, option=orjson.OPT_NON_STR_KEYS) + b"\n")
    return path
