"""Logging setup shared by the analyze and replay entry points.

Provides:
    - Console handler (stderr) with optional ANSI level colours
    - Optional file handler with size or time based rotation
    - JSON-lines output for machine ingestion
    - Contextual fields (app, image, stage) carried through contextvars
    - Warning capture and uncaught-exception logging

Public API:
    setup_logging(log_level="INFO", context={"app": "analyze"})
    get_logger(name)
    push_context(image="sig.png")
    pop_context(keys=["image"])
    log_context(stage="thin")      # context manager
    install_excepthook()

Format examples:
    Human: 2026-03-02T09:14:07.512Z | INFO     | app=analyze stage=trace | 3 strokes
    JSON:  {"t": "2026-03-02T09:14:07.512+00:00", "lvl": "INFO", "stage": "trace", "msg": "..."}

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed by the CLI scripts. Repeated setup_logging() calls replace the
previously installed handlers instead of stacking them.
"""

import contextlib
import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


_context_var: contextvars.ContextVar = contextvars.ContextVar('signature_mouse_log_context', default={})

_configured = False
_installed_handlers: List[logging.Handler] = []

_LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
_RESET = '\033[0m'


class ContextFormatter(logging.Formatter):
    """Formatter that prepends the active context fields to every record.

    Parameters
    ----------
    fmt_mode : str
        "human" for pipe-separated lines, "json" for one JSON object per line
    use_color : bool
        Colour the level name; ignored when stderr is not a terminal
    tz : str
        "UTC" or "local"
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True, tz: str = "UTC"):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format: {fmt_mode}. Use 'human' or 'json'.")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get()
        if self.tz == "UTC":
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        else:
            ts = datetime.fromtimestamp(record.created)

        if self.fmt_mode == "json":
            return self._format_json(record, ts, context)
        return self._format_human(record, ts, context)

    def _format_json(self, record: logging.LogRecord, ts: datetime, context: dict) -> str:
        payload = {
            't': ts.isoformat(),
            'lvl': record.levelname,
            'name': record.name,
            'pid': os.getpid(),
        }
        payload.update(context)
        payload['msg'] = record.getMessage()
        if record.exc_info:
            payload['exc'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

    def _format_human(self, record: logging.LogRecord, ts: datetime, context: dict) -> str:
        ts_str = ts.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"

        parts = [ts_str, level]
        if context:
            parts.append(' '.join(f"{k}={v}" for k, v in context.items()))
        parts.append(record.getMessage())
        line = ' | '.join(parts)

        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
    log_file : str, optional
        Also write records to this file (parent directories are created)
    json : bool
        Console and file output as JSON lines instead of human format
    color : bool
        ANSI colours on the console handler
    to_stderr : bool
        Install the console handler
    rotate : dict, optional
        {"mode": "size", "max_bytes": 5_000_000, "backup_count": 3} or
        {"mode": "time", "when": "D", "interval": 1, "backup_count": 7}
    tz : str
        "UTC" (default) or "local" timestamps
    capture_warnings : bool
        Route ``warnings.warn`` through logging
    quiet_libs : list[str], optional
        Logger names raised to WARNING (e.g. ["PIL"])
    context : dict, optional
        Initial context fields, e.g. {"app": "analyze"}

    Returns
    -------
    list[logging.Handler]
        Handlers added to the root logger
    """
    global _configured

    root = logging.getLogger()
    if _configured:
        for handler in _installed_handlers:
            root.removeHandler(handler)
            handler.close()
        _installed_handlers.clear()

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    root.setLevel(level)

    fmt_mode = "json" if json else "human"
    if to_stderr:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ContextFormatter(fmt_mode, use_color=color and not json, tz=tz))
        _installed_handlers.append(console_handler)

    if log_file:
        _installed_handlers.append(_create_file_handler(log_file, rotate, json, tz))

    for handler in _installed_handlers:
        root.addHandler(handler)

    if context:
        push_context(**context)

    for lib in quiet_libs or []:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if capture_warnings:
        route_warnings()

    _configured = True
    return list(_installed_handlers)


def _create_file_handler(
    log_file: str,
    rotate: Optional[Dict[str, Any]],
    json_format: bool,
    tz: str
) -> logging.Handler:
    """File handler, rotating when ``rotate`` is given."""
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    if rotate:
        mode = rotate.get('mode', 'size')
        if mode == 'size':
            handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=rotate.get('max_bytes', 5_000_000),
                backupCount=rotate.get('backup_count', 3),
                encoding='utf-8',
            )
        elif mode == 'time':
            handler = logging.handlers.TimedRotatingFileHandler(
                log_path,
                when=rotate.get('when', 'D'),
                interval=rotate.get('interval', 1),
                backupCount=rotate.get('backup_count', 7),
                encoding='utf-8',
            )
        else:
            raise ValueError(f"Unknown rotation mode: {mode}. Use 'size' or 'time'.")
    else:
        handler = logging.FileHandler(log_path, encoding='utf-8')

    handler.setFormatter(ContextFormatter("json" if json_format else "human", use_color=False, tz=tz))
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def push_context(**kwargs) -> None:
    """Add fields to every subsequent record in this context.

    Examples
    --------
    >>> push_context(app="analyze", image="sig.png")
    >>> logger.info("loaded")  # → "... | app=analyze image=sig.png | loaded"
    """
    _context_var.set({**_context_var.get(), **kwargs})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove the given context keys, or all of them when ``keys`` is None."""
    if keys is None:
        _context_var.set({})
        return
    current = dict(_context_var.get())
    for key in keys:
        current.pop(key, None)
    _context_var.set(current)


@contextlib.contextmanager
def log_context(**kwargs) -> Iterator[None]:
    """Temporarily add context fields; previous values are restored on exit."""
    token = _context_var.set({**_context_var.get(), **kwargs})
    try:
        yield
    finally:
        _context_var.reset(token)


def install_excepthook() -> None:
    """Log uncaught exceptions (except Ctrl+C) at CRITICAL before exit."""
    def log_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger(__name__).critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = log_exception


def route_warnings() -> None:
    logging.captureWarnings(True)
    logging.getLogger('py.warnings').setLevel(logging.WARNING)
