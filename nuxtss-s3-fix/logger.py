"""
Nuxt S3 Fix - Logger Module
Leveled console logging with an optional timestamped log file in a logs/ directory.
"""

import os
import sys
from datetime import datetime
from typing import Optional


class Logger:
    """Manages leveled logging to console and an optional timestamped log file."""

    LEVELS = {
        'debug': 0,
        'info': 1,
        'result': 2,
        'warn': 3,
        'error': 4,
    }
    ALIASES = {
        'log': 'info',
        'quiet': 'result',
    }

    def __init__(self, level: str = "info", log_dir: Optional[str] = None, command: str = "fix"):
        """
        Initialize logger.

        Args:
            level: Minimum console level (debug, info, result/quiet, warn, error).
            log_dir: Directory for log files. No file is written when None.
            command: Command name for log file naming.
        """
        self.level = self._normalize(level)
        self.log_dir = log_dir
        self.command = command
        self.log_file: Optional[str] = None
        self._file_handle = None

    @classmethod
    def _normalize(cls, level: str) -> str:
        if not isinstance(level, str):
            raise ValueError("Log level must be a string")
        normal = cls.ALIASES.get(level, level)
        if normal not in cls.LEVELS:
            raise ValueError(f"Invalid log level: {level}")
        return normal

    def set_level(self, level: str) -> None:
        self.level = self._normalize(level)

    def set_debug(self, is_debug: bool) -> None:
        """Switch between debug and info console levels."""
        if is_debug:
            self.set_level('debug')
            self.debug('Debug mode is enabled')
        else:
            self.debug('Debug mode is disabled')
            self.set_level('info')

    def should_log(self, level: str) -> bool:
        # Errors always reach the console
        if level == 'error':
            return True
        return self.LEVELS[level] >= self.LEVELS[self.level]

    def start(self) -> Optional[str]:
        """
        Start logging session. Creates the log folder and opens the log file.

        Returns:
            Path to the log file, or None when file logging is disabled.
        """
        if not self.log_dir:
            return None

        os.makedirs(self.log_dir, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        filename = f"nuxtss-s3-fix-{self.command}-{timestamp}.log"
        self.log_file = os.path.join(self.log_dir, filename)

        self._file_handle = open(self.log_file, 'w', encoding='utf-8')

        self._write_to_file(f"Nuxt S3 Fix - {self.command.upper()} Log")
        self._write_to_file(f"Started: {datetime.now().isoformat()}")
        self._write_to_file("=" * 60)
        self._write_to_file("")

        return self.log_file

    def _log(self, level: str, message: str) -> None:
        if level == 'result':
            line = message
        else:
            line = f"[{level.upper()}] {message}"
        if self.should_log(level):
            stream = sys.stderr if level in ('warn', 'error') else sys.stdout
            print(line, file=stream)
        self._write_to_file(line)

    def debug(self, message: str) -> None:
        self._log('debug', message)

    def info(self, message: str) -> None:
        self._log('info', message)

    def log(self, message: str) -> None:
        """Alias for info."""
        self._log('info', message)

    def result(self, message: str) -> None:
        """Command output; still shown in quiet mode."""
        self._log('result', message)

    def warn(self, message: str) -> None:
        self._log('warn', message)

    def error(self, message: str) -> None:
        self._log('error', message)

    def _write_to_file(self, message: str) -> None:
        """Write message to log file if open."""
        if self._file_handle:
            self._file_handle.write(message + "\n")
            self._file_handle.flush()

    def close(self) -> None:
        """Close the log file."""
        if self._file_handle:
            self._write_to_file("")
            self._write_to_file("=" * 60)
            self._write_to_file(f"Finished: {datetime.now().isoformat()}")
            self._file_handle.close()
            self._file_handle = None
            print(f"\nLog saved to: {self.log_file}")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if exc_type:
            self.error(f"{exc_type.__name__}: {exc_val}")
        self.close()
        return False


class NullLogger(Logger):
    """Logger that discards everything; the default for library callers."""

    def __init__(self):
        super().__init__(level="error")

    def _log(self, level: str, message: str) -> None:
        pass
