"""
Logger - component-tagged logging for Particlescape

    from particlescape.utils.logger import logger

    logger.info("Terrain rebuilt", component="TERRAIN")
    logger.warning("Binding rejected", component="MIDI", details=str(e))
    logger.midi("Ignoring unbound CC5")     # debug, tagged [MIDI]

Every record is also emitted on logger.signal_emitter.log_message so a
console widget can mirror it. The console level only filters stdout.
"""

import logging
import sys
from datetime import datetime
from enum import IntEnum
from typing import Optional
from PyQt5.QtCore import QObject, pyqtSignal

LINE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class LogLevel(IntEnum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


LOG_LEVEL_NAMES = {level.name.lower(): level for level in LogLevel}


class LogSignalEmitter(QObject):
    log_message = pyqtSignal(str, int, str)  # message, level, HH:MM:SS


class QtSignalHandler(logging.Handler):
    """Forwards formatted records to a LogSignalEmitter."""

    def __init__(self, emitter: LogSignalEmitter):
        super().__init__(logging.DEBUG)
        self.emitter = emitter
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord):
        try:
            stamp = datetime.now().strftime("%H:%M:%S")
            self.emitter.log_message.emit(self.format(record), record.levelno, stamp)
        except Exception:
            self.handleError(record)


class ParticlescapeLogger:
    """Wraps the "particlescape" stdlib logger with stdout, Qt and optional file sinks."""

    def __init__(self):
        self._logger = logging.getLogger("particlescape")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

        self.signal_emitter = LogSignalEmitter()
        self._logger.addHandler(QtSignalHandler(self.signal_emitter))

        self._console_handler = logging.StreamHandler(sys.stdout)
        self._console_handler.setLevel(logging.INFO)
        self._console_handler.setFormatter(logging.Formatter(LINE_FORMAT, datefmt="%H:%M:%S"))
        self._logger.addHandler(self._console_handler)

        self._file_handler: Optional[logging.FileHandler] = None

    def set_level(self, level: LogLevel):
        """Minimum level printed to stdout."""
        self._console_handler.setLevel(level)

    def enable_file_logging(self, filepath: str):
        """Write every record, debug included, to filepath."""
        self.disable_file_logging()
        self._file_handler = logging.FileHandler(filepath)
        self._file_handler.setFormatter(logging.Formatter(LINE_FORMAT))
        self._logger.addHandler(self._file_handler)

    def disable_file_logging(self):
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def _log(self, level: int, msg: str, component: Optional[str],
             details: Optional[str]):
        if component:
            msg = f"[{component}] {msg}"
        if details:
            msg = f"{msg} - {details}"
        self._logger.log(level, msg)

    def debug(self, msg: str, component: Optional[str] = None,
              details: Optional[str] = None):
        self._log(logging.DEBUG, msg, component, details)

    def info(self, msg: str, component: Optional[str] = None,
             details: Optional[str] = None):
        self._log(logging.INFO, msg, component, details)

    def warning(self, msg: str, component: Optional[str] = None,
                details: Optional[str] = None):
        self._log(logging.WARNING, msg, component, details)

    def error(self, msg: str, component: Optional[str] = None,
              details: Optional[str] = None):
        self._log(logging.ERROR, msg, component, details)

    def midi(self, msg: str, details: Optional[str] = None):
        self.debug(msg, component="MIDI", details=details)

    def sim(self, msg: str, details: Optional[str] = None):
        self.debug(msg, component="SIM", details=details)


logger = ParticlescapeLogger()
