"""
Centralized logging configuration for Blinthe.

Provides:
- Console logging with colored, prefixed output by application area
- Optional file logging with timestamps for post-mortem analysis
- Easy-to-use logger factory for different components
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# ANSI color codes for console output
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Foreground colors
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    # Bright foreground colors
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


# Area-specific colors and prefixes
AREA_CONFIG = {
    "main": {"color": Colors.BRIGHT_CYAN, "prefix": "BLINTHE.main"},
    "vault.store": {"color": Colors.BLUE, "prefix": "BLINTHE.vault.store"},
    "vault.session": {"color": Colors.BRIGHT_GREEN, "prefix": "BLINTHE.vault.session"},
    "widgets": {"color": Colors.BRIGHT_MAGENTA, "prefix": "BLINTHE.widgets"},
    "widgets.extractor": {"color": Colors.MAGENTA, "prefix": "BLINTHE.widgets.extractor"},
    "widgets.llm": {"color": Colors.BRIGHT_YELLOW, "prefix": "BLINTHE.widgets.llm"},
    "widgets.repository": {"color": Colors.CYAN, "prefix": "BLINTHE.widgets.repository"},
}

# Default for unknown areas
DEFAULT_AREA_CONFIG = {"color": Colors.WHITE, "prefix": "BLINTHE"}


class ColoredConsoleFormatter(logging.Formatter):
    """Custom formatter that adds colors and area prefixes to console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.RESET,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BRIGHT_RED + Colors.BOLD,
    }

    def __init__(self, area: str = "main"):
        super().__init__()
        config = AREA_CONFIG.get(area, DEFAULT_AREA_CONFIG)
        self.area_color = config["color"]
        self.area_prefix = config["prefix"]

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        # Format: [BLINTHE.area] HH:MM:SS LEVEL: message
        prefix = f"{self.area_color}[{self.area_prefix}]{Colors.RESET}"
        time_str = f"{Colors.DIM}{timestamp}{Colors.RESET}"
        level_str = f"{level_color}{record.levelname:<8}{Colors.RESET}"

        return f"{prefix} {time_str} {level_str} {record.getMessage()}"


class FileFormatter(logging.Formatter):
    """Formatter for file output with full timestamps and structured format."""

    def __init__(self, area: str = "main"):
        super().__init__()
        config = AREA_CONFIG.get(area, DEFAULT_AREA_CONFIG)
        self.area_prefix = config["prefix"]

    def format(self, record: logging.LogRecord) -> str:
        # ISO timestamp for file logs
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        # Include extra context if available
        extra = ""
        if hasattr(record, "storage_key"):
            extra += f" storage_key={record.storage_key}"

        # Format: TIMESTAMP [AREA] LEVEL: message (extra)
        return f"{timestamp} [{self.area_prefix}] {record.levelname}: {record.getMessage()}{extra}"


# Global log directory
_log_dir: Optional[Path] = None
_file_handler: Optional[logging.FileHandler] = None


def setup_logging(
    log_dir: Optional[str] = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Initialize file logging.

    Args:
        log_dir: Directory for log files. Defaults to ~/.blinthe/logs
        console_level: Minimum level for console output
        file_level: Minimum level for file output

    Returns:
        Path to the log directory
    """
    global _log_dir, _file_handler

    if log_dir:
        _log_dir = Path(log_dir)
    else:
        _log_dir = Path.home() / ".blinthe" / "logs"

    _log_dir.mkdir(parents=True, exist_ok=True)

    # Create log file with timestamp
    log_filename = datetime.now().strftime("blinthe_%Y%m%d_%H%M%S.log")
    log_path = _log_dir / log_filename

    # Also create/update a symlink to latest log
    latest_link = _log_dir / "latest.log"
    try:
        if latest_link.is_symlink() or latest_link.exists():
            latest_link.unlink()
        latest_link.symlink_to(log_filename)
    except OSError:
        pass  # Symlinks may not work on all systems

    _file_handler = logging.FileHandler(log_path, encoding="utf-8")
    _file_handler.setLevel(file_level)
    _file_handler.setFormatter(FileFormatter("main"))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(_file_handler)

    # Loggers created before setup only had a console handler
    for name, existing in logging.root.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and name.startswith("blinthe."):
            area = name[len("blinthe."):]
            for handler in existing.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setLevel(console_level)
            _attach_file_handler(existing, area)

    root_logger.info(f"Logging initialized. Log file: {log_path}")

    return _log_dir


def _attach_file_handler(logger: logging.Logger, area: str) -> None:
    if _file_handler is None:
        return
    if any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        return
    area_file_handler = logging.FileHandler(_file_handler.baseFilename, encoding="utf-8")
    area_file_handler.setLevel(_file_handler.level)
    area_file_handler.setFormatter(FileFormatter(area))
    logger.addHandler(area_file_handler)


def get_logger(area: str = "main") -> logging.Logger:
    """
    Get a logger for a specific application area.

    Args:
        area: The application area (e.g., "vault.store", "widgets.extractor")

    Returns:
        Configured logger instance

    Example:
        logger = get_logger("vault.session")
        logger.info("Session restored")
        # Output: [BLINTHE.vault.session] 14:32:15 INFO     Session restored
    """
    logger = logging.getLogger(f"blinthe.{area}")

    # Only configure if not already done
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        # Console handler with colors
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(ColoredConsoleFormatter(area))
        logger.addHandler(console_handler)

        # Add file handler if setup_logging was called
        _attach_file_handler(logger, area)

        # Don't propagate to root to avoid duplicate logs
        logger.propagate = False

    return logger


def get_log_dir() -> Optional[Path]:
    """Get the current log directory path."""
    return _log_dir
