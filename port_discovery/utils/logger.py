"""
Colored console logging for Port Discovery.

Every line carries a timestamp and a level badge and goes to stderr, which
leaves stdout to the scan report. Loggers follow one process-wide minimum level
unless they pin their own, so --verbose/--quiet reach every component.
"""

import sys
from datetime import datetime
from enum import Enum
from typing import Optional
from colorama import Fore, Style, init

init(autoreset=True)


class LogLevel(Enum):
    """Log levels, lowest first."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


LEVEL_ORDER = {level: rank for rank, level in enumerate(LogLevel)}


def _details(context: dict) -> str:
    if not context:
        return ""
    pairs = " | ".join(f"{key}={value}" for key, value in context.items())
    return f" {Style.DIM}({pairs}){Style.RESET_ALL}"


class Logger:
    """
    Leveled console logger with progress lines and a scan parameter block.

    Loggers created without an explicit minimum level follow the global
    level set through set_log_level().
    """

    default_level = LogLevel.INFO

    BADGES = {
        LogLevel.DEBUG: (Fore.CYAN, "🔍"),
        LogLevel.INFO: (Fore.GREEN, "ℹ️"),
        LogLevel.WARNING: (Fore.YELLOW, "⚠️"),
        LogLevel.ERROR: (Fore.RED, "❌"),
    }

    def __init__(self, name: str = "PortDiscovery", min_level: Optional[LogLevel] = None):
        """
        Args:
            name: Component name
            min_level: Minimum level to print; None follows the global level
        """
        self.name = name
        self._min_level = min_level
        self._progress_active = False

    @property
    def min_level(self) -> LogLevel:
        return self._min_level or Logger.default_level

    @min_level.setter
    def min_level(self, level: LogLevel) -> None:
        self._min_level = level

    def enabled_for(self, level: LogLevel) -> bool:
        return LEVEL_ORDER[level] >= LEVEL_ORDER[self.min_level]

    def _emit(self, badge: str, message: str, context: dict, flush: bool = False) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        print(
            f"{Style.DIM}[{stamp}]{Style.RESET_ALL} {badge} {message}{_details(context)}",
            file=sys.stderr,
            flush=flush,
        )

    def _log(self, level: LogLevel, message: str, context: dict) -> None:
        if not self.enabled_for(level):
            return
        color, symbol = self.BADGES[level]
        badge = f"{color}{symbol} {level.value:<7}{Style.RESET_ALL}"
        self._emit(badge, message, context)

    def debug(self, message: str, **context) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, exception: Optional[Exception] = None, **context) -> None:
        """
        Log an error.

        Args:
            message: Error message
            exception: Exception whose type and text are appended
            **context: Extra key=value details
        """
        if exception is not None:
            context["exception"] = f"{type(exception).__name__}: {exception}"
        self._log(LogLevel.ERROR, message, context)

    def success(self, message: str, **context) -> None:
        """Log a completed step; shown at INFO level."""
        if self.enabled_for(LogLevel.INFO):
            self._emit(f"{Fore.GREEN}✅ SUCCESS {Style.RESET_ALL}",
                       f"{Style.BRIGHT}{message}{Style.RESET_ALL}", context)

    def section(self, title: str) -> None:
        if not self.enabled_for(LogLevel.INFO):
            return
        rule = "=" * 60
        print(f"\n{Fore.BLUE}{Style.BRIGHT}{rule}\n  {title.upper()}\n{rule}{Style.RESET_ALL}\n",
              file=sys.stderr)

    def progress_start(self, message: str) -> None:
        self._progress_active = True
        self._progress(message)

    def progress_update(self, message: str) -> None:
        if self._progress_active:
            self._progress(message)

    def progress_end(self, final_message: Optional[str] = None) -> None:
        """
        Close the progress indicator, optionally with a success line.

        Does nothing when no progress indicator is active.
        """
        if not self._progress_active:
            return
        self._progress_active = False
        if final_message:
            self.success(final_message)

    def _progress(self, message: str) -> None:
        if self.enabled_for(LogLevel.INFO):
            self._emit(f"{Fore.BLUE}⏳ PROGRESS{Style.RESET_ALL}", f"{message}...", {}, flush=True)

    def scan_info(self, target: str, hosts: int, ports: int, concurrency: int,
                  timeout: float) -> None:
        """
        Print the parameters of the scan about to start.

        Args:
            target: Target label (address, CIDR or local subnets)
            hosts: Number of hosts to probe
            ports: Number of ports per host
            concurrency: Worker pool size
            timeout: Per-attempt connect timeout in seconds
        """
        if not self.enabled_for(LogLevel.INFO):
            return

        rows = [
            ("Target", target),
            ("Hosts", hosts),
            ("Ports/host", ports),
            ("Workers", concurrency),
            ("Timeout", f"{timeout:.2f}s"),
        ]
        print(f"\n{Fore.CYAN}{Style.BRIGHT}🌐 SCAN CONFIGURATION{Style.RESET_ALL}", file=sys.stderr)
        for label, value in rows:
            print(f"  {label + ':':<15}{Style.BRIGHT}{value}{Style.RESET_ALL}", file=sys.stderr)
        print(file=sys.stderr)


logger = Logger()


def set_log_level(level: LogLevel) -> None:
    """Set the minimum level for every logger that doesn't pin its own."""
    Logger.default_level = level


def get_logger(name: str = "PortDiscovery") -> Logger:
    """Return a logger following the global level."""
    return Logger(name)
