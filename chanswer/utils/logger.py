"""
JSON logging for the service.

Keyword arguments passed to a log call become structured fields. Fields
bound with `logger.context(...)` are added to every record emitted inside
the block, including records from tasks started within it.
"""

import inspect
import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel")

# LogRecord attributes cannot be overwritten through extra
_RECORD_ATTRIBUTES = frozenset(
    logging.makeLogRecord({}).__dict__
) | {"message", "asctime"}

_bound_fields: ContextVar[dict[str, Any]] = ContextVar("log_fields", default={})


def _level_from_env() -> int:
    level = logging.getLevelNamesMapping().get(os.getenv("LOG_LEVEL", "INFO").upper())
    return level if level is not None else logging.INFO


class Logger(logging.LoggerAdapter):
    _instance = None
    _initialized = False

    def __new__(cls) -> "Logger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if Logger._initialized:
            return

        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "@timestamp", "levelname": "log_level"},
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        base = logging.getLogger("chanswer")
        base.setLevel(_level_from_env())
        base.addHandler(handler)
        base.propagate = False

        super().__init__(base)
        Logger._initialized = True

    @contextmanager
    def context(self, **fields: Any) -> Iterator[None]:
        """Attach fields to every record logged inside the block."""
        token = _bound_fields.set({**_bound_fields.get(), **fields})
        try:
            yield
        finally:
            _bound_fields.reset(token)

    @staticmethod
    def _caller() -> str:
        # Two frames up: whoever called error() or exception()
        frame = inspect.currentframe()
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return "unknown:0"
        return f"{caller.f_code.co_filename}:{caller.f_lineno}"

    def debug(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        """Log at ERROR with the calling file and line."""
        kwargs["file"] = self._caller()
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, /, *args: Any, **kwargs: Any) -> None:
        """Log at ERROR with traceback and the calling file and line."""
        kwargs["file"] = self._caller()
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)

    def log(self, level: int, msg: str, /, *args: Any, **kwargs: Any) -> None:
        # Positional-only so that fields named level or msg stay fields
        if self.isEnabledFor(level):
            msg, kwargs = self.process(msg, kwargs)
            self.logger.log(level, msg, *args, **kwargs)

    def process(self, msg: str, kwargs: Any) -> tuple[str, dict[str, Any]]:
        passthrough = {key: kwargs.pop(key) for key in _LOGGING_KWARGS if key in kwargs}
        fields = {
            f"field_{key}" if key in _RECORD_ATTRIBUTES else key: value
            for key, value in {**_bound_fields.get(), **kwargs}.items()
        }
        if fields:
            passthrough["extra"] = fields
        return msg, passthrough


logger = Logger()
logger.debug(
    "Logging configured",
    log_level_name=logging.getLevelName(logger.logger.getEffectiveLevel()),
)
