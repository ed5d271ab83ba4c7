from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

REPORT_LOGGER = "modelcache.report"


class LogSink(Protocol):
    def write(self, message: str, file: str) -> None: ...


_RECORD_FORMAT = "%(asctime)s %(levelname)s (%(levelno)s): %(message)s"


class FileLogSink:
    """Appends text records to named files below ``log_dir``.

    Each file gets its own non-propagating logger, so a report never ends up in
    the application's JSON stream.
    """

    def __init__(self, log_dir: Path | str) -> None:
        self.log_dir = Path(log_dir)
        self._loggers: dict[str, logging.Logger] = {}

    def _logger_for(self, file: str) -> logging.Logger:
        logger = self._loggers.get(file)
        if logger is not None:
            return logger

        path = self.log_dir / file
        path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_RECORD_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))

        logger = logging.getLogger(f"{REPORT_LOGGER}.{path.resolve()}")
        # Another sink may already own this path.
        for stale in logger.handlers:
            stale.close()
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(logging.DEBUG)

        self._loggers[file] = logger
        return logger

    def write(self, message: str, file: str) -> None:
        logger = self._logger_for(file)
        logger.debug(message)
        for handler in logger.handlers:
            handler.flush()

    def close(self) -> None:
        for logger in self._loggers.values():
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []
        self._loggers.clear()
