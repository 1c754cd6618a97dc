"""
Centralized Logger with Rich Console
====================================
Static facade used across the rotator.

Usage:
    from lp_rotator.shared.system.logging import Logger

    Logger.info("[DISCOVERY] Best pool: SOL-RAY")
    Logger.success("[EXECUTOR] Confirmed 5xk...")
    Logger.warning("[SWAP] Quote unavailable")
    Logger.section("Rotation Cycle")
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.text import Text

from lp_rotator.config.settings import Settings


# =============================================================================
# SOURCE ICONS (for visual scanning)
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "ROTATOR": "🔄",
    "DISCOVERY": "🔍",
    "INVENTORY": "📦",
    "EXECUTOR": "📤",
    "SWAP": "💱",
    "RAYDIUM": "💧",
    "SCHEDULER": "⏱️",
    "WALLET": "👛",
    "CALC": "🧮",
}

LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green bold",
    "WARNING": "yellow",
    "ERROR": "red bold",
    "DEBUG": "dim",
    "CRITICAL": "red bold reverse",
}

_console = Console()
file_logger = logging.getLogger("LPRotator")
file_logger.setLevel(logging.DEBUG)
file_logger.propagate = False


def _ensure_file_handler() -> None:
    """Attach the per-run rotating file handler on first write."""
    if file_logger.handlers:
        return
    os.makedirs(Settings.LOG_DIR, exist_ok=True)
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(Settings.LOG_DIR, f"rotator_{run_id}.log")
    handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    file_logger.addHandler(handler)


# =============================================================================
# LOGGER CLASS
# =============================================================================


class Logger:
    """
    Centralized logger with Rich console output.

    - Color-coded console lines: time | level | source | message
    - Per-run rotating file log under Settings.LOG_DIR
    - "[SOURCE]" prefix parsed into the source column
    """

    _silent_mode = False
    _file_enabled = True

    @staticmethod
    def _timestamp() -> str:
        now = datetime.now()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d}"

    @staticmethod
    def _parse_source(message: str) -> tuple:
        """Extract [SOURCE] tag from message if present."""
        stripped = message.strip()
        if stripped.startswith("[") and "]" in stripped:
            tag_end = stripped.index("]")
            source = stripped[1:tag_end].upper()
            if 0 < len(source) < 15:
                return source, stripped[tag_end + 1 :].strip()
        return "SYSTEM", message

    @staticmethod
    def _format_console(level: str, message: str, source: str) -> None:
        if Logger._silent_mode or Settings.SILENT_MODE:
            return

        icon = SOURCE_ICONS.get(source, "")
        line = Text()
        line.append(f"{Logger._timestamp()} ", style="dim")
        line.append(f"| {level[:8].ljust(8)} ", style=LEVEL_STYLES.get(level, "white"))
        line.append(f"| {source[:10].ljust(10)} | ", style="dim")
        line.append(f"{icon} {message}" if icon else message)
        _console.print(line)

    @staticmethod
    def _log_to_file(level: int, message: str, source: str) -> None:
        if not Logger._file_enabled:
            return
        _ensure_file_handler()
        file_logger.log(level, f"[{source}] {message}")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def info(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("INFO", msg, source)
        Logger._log_to_file(logging.INFO, msg, source)

    @staticmethod
    def success(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("SUCCESS", msg, source)
        Logger._log_to_file(logging.INFO, f"✅ {msg}", source)

    @staticmethod
    def warning(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("WARNING", msg, source)
        Logger._log_to_file(logging.WARNING, msg, source)

    @staticmethod
    def error(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("ERROR", msg, source)
        Logger._log_to_file(logging.ERROR, msg, source)

    @staticmethod
    def debug(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._log_to_file(logging.DEBUG, msg, source)

    @staticmethod
    def critical(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("CRITICAL", f"🛑 {msg}", source)
        Logger._log_to_file(logging.CRITICAL, f"🛑 {msg}", source)

    @staticmethod
    def section(title: str) -> None:
        """Print a section header."""
        if not (Logger._silent_mode or Settings.SILENT_MODE):
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        Logger._log_to_file(logging.INFO, f"=== {title} ===", "SYSTEM")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output."""
        Logger._silent_mode = silent

    @staticmethod
    def set_file_logging(enabled: bool) -> None:
        """Enable/disable the rotating file log (tests turn it off)."""
        Logger._file_enabled = enabled
