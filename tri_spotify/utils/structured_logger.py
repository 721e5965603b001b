"""
Structured logging of request lifecycle events.
Writes JSON lines alongside the human-readable console log.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from rich.markup import escape


class StructuredLogger:
    """
    Logger that outputs both human-readable and machine-parseable events.

    Usage:
        logger = StructuredLogger("tri_spotify", log_dir=Path("logs"))
        logger.info("tier_saved", hash="abc", tier="best", size_bytes=1024)
    """

    def __init__(self, name: str, log_dir: Path | None = None):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = log_dir is not None

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"tri_spotify_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self.session_id = f"{int(time.time())}_{id(self)}"

    def _format_message(self, event: str, **context) -> str:
        parts = [escape(f"[{event}]")]
        for key, value in context.items():
            parts.append(escape(f"{key}={value}"))
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        """Write structured log entry to JSON file."""
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            "session_id": self.session_id,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def debug(self, event: str, **context) -> None:
        self._logger.debug(self._format_message(event, **context))
        self._write_json("DEBUG", event, **context)

    def info(self, event: str, **context) -> None:
        self._logger.info(self._format_message(event, **context))
        self._write_json("INFO", event, **context)

    def warning(self, event: str, **context) -> None:
        self._logger.warning(self._format_message(event, **context))
        self._write_json("WARNING", event, **context)

    def error(self, event: str, **context) -> None:
        self._logger.error(self._format_message(event, **context))
        self._write_json("ERROR", event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()


class RequestEventLogger:
    """Specialized logger for download request events. Never records tokens."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def request_started(self, content_hash: str, url: str, title: str):
        self.logger.debug(
            "request_started", hash=content_hash, url=url or None, title=title or None
        )

    def tier_saved(self, content_hash: str, tier: str, fmt: str, size_bytes: int):
        self.logger.debug(
            "tier_saved",
            hash=content_hash,
            tier=tier,
            format=fmt,
            size_mb=round(size_bytes / (1024 * 1024), 2),
        )

    def tier_failed(self, content_hash: str, tier: str, error: str):
        self.logger.warning("tier_failed", hash=content_hash, tier=tier, error=error)

    def request_completed(
        self,
        content_hash: str,
        outcome: str,
        duration_s: float,
        saved: list[str],
        error: str | None = None,
    ):
        """Log request finished, whatever the outcome."""
        log_fn = self.logger.info if error is None else self.logger.warning
        log_fn(
            "request_completed",
            hash=content_hash,
            outcome=outcome,
            duration_s=round(duration_s, 2),
            saved=",".join(saved) or "-",
            error=error,
        )


def create_event_logger(
    log_dir: Path | None = None,
) -> tuple[StructuredLogger, RequestEventLogger]:
    """
    Create the structured loggers.

    Returns:
        Tuple of (base_logger, request_logger)
    """
    base = StructuredLogger("tri_spotify.events", log_dir=log_dir)
    return base, RequestEventLogger(base)
