"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged as a structured
event. Backend failures are never raised to callers of the ledger, so the
log is the place where a half-persisted state becomes visible.

The audit logger:
- Is async so it sits naturally inside ledger flows
- Never raises (a logging failure must not break a mutation)
- Maps event severity onto log levels
"""

import logging
import sys

import structlog

from finance_ledger.models.audit import AuditSeverity, LedgerEvent


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route ledger log lines to stderr at the given level.

    Call once from the application entry point. Library code only obtains
    loggers; it never installs handlers.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a ledger module."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central ledger event logger.
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None):
        self._logger = logger or get_logger("finance_ledger.audit")

    async def log(self, event: LedgerEvent) -> bool:
        """
        Log a ledger event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("ledger_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("ledger_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("ledger_event", **log_dict)
            else:
                self._logger.info("ledger_event", **log_dict)
        except Exception:
            # Logging must never break a ledger flow
            return False

        return True
