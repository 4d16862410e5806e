"""
Process-level error handling
- unhandled exceptions (sys.excepthook, asyncio loop handler) end up in the log
- callbacks that must never raise (lifecycle listeners, shutdown) report here
"""

import asyncio
import sys
import traceback
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from .logger import get_logger

logger = get_logger("core.global_error_handler")


class ErrorSeverity(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class GlobalErrorHandler:
    """Counts and logs errors that have no caller left to propagate to"""

    def __init__(self):
        self.error_counts: Dict[str, int] = {}
        self.last_error_time: Dict[str, datetime] = {}
        self.error_threshold = 10  # same error 10 times -> critical notice
        self.time_window = 300  # 5 minutes

    def handle_exception(
        self,
        exception: BaseException,
        context: str = "",
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    ) -> None:
        error_info = self._collect_error_info(exception, context, severity)
        self._update_error_counts(error_info)
        self._log_error(error_info)

        if severity in [ErrorSeverity.HIGH, ErrorSeverity.CRITICAL]:
            self._handle_critical_error(error_info)

    def _collect_error_info(
        self, exception: BaseException, context: str, severity: ErrorSeverity
    ) -> Dict[str, Any]:
        error_type = type(exception).__name__
        return {
            "error_type": error_type,
            "error_message": str(exception),
            "context": context,
            "severity": severity,
            "timestamp": datetime.now(),
            "traceback": "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            ),
            "error_key": f"{error_type}:{context}",
        }

    def _update_error_counts(self, error_info: Dict[str, Any]) -> None:
        error_key = error_info["error_key"]
        current_time = error_info["timestamp"]

        self._cleanup_old_errors(current_time)

        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1
        self.last_error_time[error_key] = current_time

    def _cleanup_old_errors(self, current_time: datetime) -> None:
        cutoff_time = current_time.timestamp() - self.time_window
        stale_keys = [
            error_key
            for error_key, last_time in self.last_error_time.items()
            if last_time.timestamp() < cutoff_time
        ]
        for key in stale_keys:
            self.error_counts.pop(key, None)
            self.last_error_time.pop(key, None)

    def _log_error(self, error_info: Dict[str, Any]) -> None:
        severity = error_info["severity"]
        count = self.error_counts.get(error_info["error_key"], 1)

        log_message = (
            f"[{severity.value}] {error_info['context'] or 'Unhandled'}: "
            f"{error_info['error_type']} - {error_info['error_message']}"
        )
        if count > 1:
            log_message += f" (x{count})"

        if severity == ErrorSeverity.LOW:
            logger.warning(log_message)
        elif severity == ErrorSeverity.MEDIUM:
            logger.error(log_message)
            logger.debug(f"Traceback: {error_info['traceback']}")
        else:
            logger.critical(log_message)
            logger.critical(f"Traceback: {error_info['traceback']}")

    def _handle_critical_error(self, error_info: Dict[str, Any]) -> None:
        error_key = error_info["error_key"]
        count = self.error_counts.get(error_key, 1)

        if count >= self.error_threshold:
            logger.critical(
                f"🚨 Error threshold exceeded for {error_key}: {count} occurrences"
            )

    def get_error_summary(self) -> Dict[str, Any]:
        self._cleanup_old_errors(datetime.now())

        return {
            "total_unique_errors": len(self.error_counts),
            "error_counts": dict(self.error_counts),
            "high_frequency_errors": {
                key: count
                for key, count in self.error_counts.items()
                if count >= self.error_threshold
            },
        }


# Global error handler instance
global_error_handler = GlobalErrorHandler()


def handle_exception(
    exception: BaseException,
    context: str = "",
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
) -> None:
    global_error_handler.handle_exception(exception, context, severity)


def setup_global_exception_handlers(loop: asyncio.AbstractEventLoop = None) -> None:
    """Install the process excepthook and, when given, the event loop handler"""

    def exception_handler(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        handle_exception(exc_value, "Unhandled Exception", ErrorSeverity.CRITICAL)

    sys.excepthook = exception_handler

    def asyncio_exception_handler(loop, context):
        exception = context.get("exception")
        if exception:
            handle_exception(
                exception,
                f"AsyncIO: {context.get('message', 'Unknown')}",
                ErrorSeverity.HIGH,
            )
        else:
            logger.warning(f"AsyncIO context: {context}")

    if loop is not None:
        loop.set_exception_handler(asyncio_exception_handler)
