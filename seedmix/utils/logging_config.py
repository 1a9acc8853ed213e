"""
SeedMix Logging Configuration

structlog on top of stdlib logging. Every module logs through
`structlog.get_logger(__name__)`; `setup_logging` decides where those events
end up:
- seedmix.log: every event at the configured level, one JSON object per line
- errors.log: ERROR and above only
- stdout: human-readable colored output for development

Request-scoped fields (request id, user id) are merged from contextvars so a
generation run can be followed across the orchestrator, the strategies and
the agents.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

# HTTP client chatter hidden unless running at DEBUG
NOISY_MODULES = ("aiohttp", "aiohttp.access", "urllib3", "urllib3.connectionpool", "httpx")

MAIN_LOG_FILE = "seedmix.log"
ERROR_LOG_FILE = "errors.log"


class SeedMixLogger:
    """Owns the stdlib handlers and the structlog pipeline for the process."""

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        enable_console: bool = True,
        json_files: bool = True,
        max_file_size: int = 10 * 1024 * 1024,
        backup_count: int = 5
    ):
        """
        Args:
            log_dir: Directory for the rotating log files
            log_level: Level name for the main log and the console
            enable_console: Also log to stdout
            json_files: Render file output as JSON lines instead of key=value text
            max_file_size: Bytes per file before rotation
            backup_count: Rotated files kept per log
        """
        self.log_dir = Path(log_dir)
        self.level = logging.getLevelName(log_level.upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO
        self.enable_console = enable_console
        self.json_files = json_files
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._install()

    @property
    def log_level(self) -> int:
        return self.level

    def _install(self) -> None:
        structlog.configure(
            processors=self._pre_chain() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        file_renderer = (
            structlog.processors.JSONRenderer(ensure_ascii=False)
            if self.json_files
            else structlog.dev.ConsoleRenderer(colors=False)
        )
        handlers: List[logging.Handler] = [
            self._file_handler(MAIN_LOG_FILE, self.level, file_renderer),
            self._file_handler(ERROR_LOG_FILE, logging.ERROR, file_renderer),
        ]
        if self.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(self.level)
            console.setFormatter(self._formatter(structlog.dev.ConsoleRenderer(colors=True)))
            handlers.append(console)

        root = logging.getLogger()
        for existing in list(root.handlers):
            root.removeHandler(existing)
            existing.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(self.level)

        quiet_level = logging.DEBUG if self.level == logging.DEBUG else logging.WARNING
        for module in NOISY_MODULES:
            logging.getLogger(module).setLevel(quiet_level)

    @staticmethod
    def _pre_chain() -> List[Any]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

    def _formatter(self, renderer) -> structlog.stdlib.ProcessorFormatter:
        # foreign_pre_chain covers records from plain stdlib loggers (uvicorn, aiohttp)
        return structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=self._pre_chain(),
        )

    def _file_handler(self, filename: str, level: int, renderer) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(self._formatter(renderer))
        return handler

    def get_logger(self, name: str) -> structlog.stdlib.BoundLogger:
        return structlog.get_logger(name)

    def set_request_context(self, request_id: str, user_id: Optional[str] = None) -> None:
        _bind_request(request_id, user_id)
        bind_contextvars(request_started_at=datetime.now(timezone.utc).isoformat())

    def log_api_request(self, method: str, url: str, status_code: int, duration: float, **kwargs) -> None:
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self.get_logger("seedmix.http").log(
            level,
            "http_request",
            method=method,
            path=url,
            status_code=status_code,
            duration_seconds=round(duration, 4),
            **kwargs
        )

    def log_error(self, error: Exception, context: Dict[str, Any], **kwargs) -> None:
        self.get_logger("seedmix.errors").error(
            "unhandled_error",
            error_type=type(error).__name__,
            error=str(error),
            context=context,
            **kwargs
        )


def _bind_request(request_id: str, user_id: Optional[str]) -> None:
    clear_contextvars()
    bind_contextvars(request_id=request_id, user_id=user_id)


_instance: Optional[SeedMixLogger] = None


def setup_logging(
    log_dir: str = "logs",
    log_level: str = "INFO",
    enable_console: bool = True,
    **kwargs
) -> SeedMixLogger:
    """
    Configure process-wide logging. Calling it again replaces the handlers.

    Args:
        log_dir: Directory for the rotating log files
        log_level: Level name
        enable_console: Also log to stdout
        **kwargs: Passed to SeedMixLogger (json_files, max_file_size, backup_count)
    """
    global _instance
    _instance = SeedMixLogger(log_dir=log_dir, log_level=log_level, enable_console=enable_console, **kwargs)
    return _instance


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Logger for a named component once logging is configured.

    Raises:
        RuntimeError: If setup_logging has not been called
    """
    if _instance is None:
        raise RuntimeError("Logging not setup. Call setup_logging() first.")
    return _instance.get_logger(name)


def log_api_request(method: str, url: str, status_code: int, duration: float, **kwargs) -> None:
    if _instance is not None:
        _instance.log_api_request(method, url, status_code, duration, **kwargs)


def log_error(error: Exception, context: Dict[str, Any], **kwargs) -> None:
    if _instance is not None:
        _instance.log_error(error, context, **kwargs)


def set_request_context(request_id: str, user_id: Optional[str] = None) -> None:
    """Bind request id and user id to every event logged by the current task."""
    if _instance is not None:
        _instance.set_request_context(request_id, user_id)
    else:
        _bind_request(request_id, user_id)
