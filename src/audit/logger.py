"""
Audit Logger

Every change to the record store is logged. This provides:
1. Traceability of every write and relocation
2. Debugging capability when a UI request fails
3. A history the user can be shown on request

The audit logger:
- Writes structured JSON lines through the standard logging module
- Never raises (a logging failure must not fail the request it describes)
- Keeps stdout free: the request/response transport owns it
"""

import logging
import sys
from typing import Optional

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route standard logging to stderr at the given level.

    Call once from the process entry point. Safe to call again; the
    root handler is replaced rather than duplicated.
    """
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        force=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log at their severity.
    """

    def __init__(self, logger_name: str = "acctrack.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.CRITICAL:
                self._logger.critical("audit_event", **log_dict)
            elif event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def log_store_opened(self, path: str, backend: str) -> None:
        """Log a successful open."""
        self.log(AuditEventBuilder.store_opened(path, backend))

    def log_store_open_failed(self, path: str, error: Exception) -> None:
        """Log an open failure."""
        self.log(AuditEventBuilder.store_open_failed(path, error))

    def log_store_relocated(self, old_path: Optional[str], new_path: str) -> None:
        """Log a completed relocation."""
        self.log(AuditEventBuilder.store_relocated(old_path, new_path))

    def log_store_relocate_failed(
        self,
        current_path: Optional[str],
        new_path: str,
        error: Exception,
    ) -> None:
        """Log a relocation that left the store on its old location."""
        self.log(AuditEventBuilder.store_relocate_failed(current_path, new_path, error))

    def log_store_closed(self, path: Optional[str]) -> None:
        """Log a close."""
        self.log(AuditEventBuilder.store_closed(path))

    def log_record_saved(self, table: str, record_id: str) -> None:
        """Log an insert or singleton upsert."""
        self.log(AuditEventBuilder.record_saved(table, record_id))

    def log_record_updated(
        self,
        table: str,
        record_id: str,
        fields: list[str],
        matched: int,
    ) -> None:
        """Log a partial update."""
        self.log(AuditEventBuilder.record_updated(table, record_id, fields, matched))

    def log_record_deleted(self, table: str, record_id: str) -> None:
        """Log a delete."""
        self.log(AuditEventBuilder.record_deleted(table, record_id))

    def log_settings_saved(self, document: str, details: dict) -> None:
        """Log a preferences document write."""
        self.log(AuditEventBuilder.settings_saved(document, details))

    def log_legacy_file_saved(self, key: str) -> None:
        """Log a legacy per-key document write."""
        self.log(AuditEventBuilder.legacy_file_saved(key))

    def log_endpoint_failed(self, endpoint: str, error: Exception) -> None:
        """Log a facade call that answered with a failure result."""
        self.log(AuditEventBuilder.endpoint_failed(endpoint, error))
