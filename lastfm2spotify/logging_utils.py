"""
Terminal logging utilities for lastfm2spotify.

SyncLogger prints leveled, optionally colored lines through tqdm so they don't
tear the resolution progress bar. SyncLoggerHandler routes the package's
standard-library log records through the same logger.
"""

import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from tqdm import tqdm


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    PROGRESS = "PROGRESS"


# level -> (icon, ANSI color)
_STYLES = {
    LogLevel.DEBUG: ("🔍", "\033[90m"),
    LogLevel.INFO: ("ℹ️", "\033[94m"),
    LogLevel.SUCCESS: ("✓", "\033[92m"),
    LogLevel.WARNING: ("⚠️", "\033[93m"),
    LogLevel.ERROR: ("❌", "\033[91m"),
    LogLevel.PROGRESS: ("→", "\033[96m"),
}

RESET = "\033[0m"


@dataclass
class LogEntry:
    """One printed line."""

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def render(self, use_color: bool = True) -> str:
        clock = self.timestamp.strftime("%H:%M:%S")
        if not use_color:
            return f"[{clock}] [{self.level.value}] {self.message}"
        icon, color = _STYLES[self.level]
        return f"{color}[{clock}] {icon} {self.message}{RESET}"


class SyncLogger:
    """
    Leveled terminal logger for the CLI.

    Usage:
        logger = SyncLogger(verbose=True)
        logger.progress("Generating alice's mix...")
        logger.success("alice's mix: 30 tracks")
    """

    def __init__(self, verbose: bool = False, quiet: bool = False, use_color: bool = True):
        """
        Args:
            verbose: Show DEBUG messages
            quiet: Show ERROR messages only
            use_color: Use ANSI colors (only when stdout is a TTY)
        """
        self.verbose = verbose
        self.quiet = quiet
        self.use_color = use_color and sys.stdout.isatty()
        self.counts: Counter = Counter()

    def _emit(self, level: LogLevel, message: str):
        if self.quiet and level is not LogLevel.ERROR:
            return
        if level is LogLevel.DEBUG and not self.verbose:
            return

        self.counts[level] += 1
        tqdm.write(LogEntry(level, message).render(self.use_color))

    def debug(self, message: str):
        self._emit(LogLevel.DEBUG, message)

    def info(self, message: str):
        self._emit(LogLevel.INFO, message)

    def success(self, message: str):
        self._emit(LogLevel.SUCCESS, message)

    def warning(self, message: str):
        self._emit(LogLevel.WARNING, message)

    def error(self, message: str):
        self._emit(LogLevel.ERROR, message)

    def progress(self, message: str):
        self._emit(LogLevel.PROGRESS, message)

    def format_summary(self) -> str:
        """One-line tally of printed successes, warnings and errors."""
        parts = []
        if self.counts[LogLevel.SUCCESS]:
            parts.append(f"✓ {self.counts[LogLevel.SUCCESS]} completed")
        if self.counts[LogLevel.WARNING]:
            parts.append(f"⚠️ {self.counts[LogLevel.WARNING]} warnings")
        if self.counts[LogLevel.ERROR]:
            parts.append(f"❌ {self.counts[LogLevel.ERROR]} errors")
        return " | ".join(parts) if parts else "No activity"


class SyncLoggerHandler(logging.Handler):
    """Forwards standard logging records to a SyncLogger."""

    def __init__(self, sync_logger: SyncLogger):
        super().__init__(level=logging.DEBUG)
        self.sync_logger = sync_logger

    def emit(self, record: logging.LogRecord):
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return

        if record.levelno >= logging.ERROR:
            self.sync_logger.error(message)
        elif record.levelno >= logging.WARNING:
            self.sync_logger.warning(message)
        elif record.levelno >= logging.INFO:
            self.sync_logger.info(message)
        else:
            self.sync_logger.debug(message)


def attach_sync_logger(sync_logger: SyncLogger, package: str = "lastfm2spotify") -> logging.Handler:
    """Route the package's log records through `sync_logger`."""
    handler = SyncLoggerHandler(sync_logger)
    package_logger = logging.getLogger(package)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if sync_logger.verbose else logging.INFO)
    return handler


class UserErrors:
    """User-facing error messages with a hint on what to do next."""

    @staticmethod
    def spotify_auth_failed(original_error: str) -> str:
        return (
            f"Could not connect to Spotify: {original_error}\n\n"
            "💡 Check SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET, make sure the\n"
            "   redirect URI matches your Spotify app, or delete the token file\n"
            "   to log in again."
        )

    @staticmethod
    def config_not_found(path: str) -> str:
        return (
            f"Configuration file not found: {path}\n\n"
            "💡 Copy config.example.yml to config.yml, or set LASTFM_USERNAMES\n"
            "   and the SPOTIFY_* environment variables."
        )

    @staticmethod
    def invalid_config(original_error: str) -> str:
        return (
            f"Invalid configuration: {original_error}\n\n"
            "💡 Check config.yml and your environment variables.\n"
            "   Playlist types must be library, mix or recommended."
        )

    @staticmethod
    def network_error(original_error: str) -> str:
        return (
            f"Network error: {original_error}\n\n"
            "💡 Check your internet connection. Last.fm or Spotify may also be down."
        )

    @staticmethod
    def playlists_failed(failed: int, total: int) -> str:
        return (
            f"{failed} of {total} playlists failed\n\n"
            "💡 Track lookups were cached, so a rerun only searches for new tracks.\n"
            "   Use --verbose to see why a playlist failed."
        )
