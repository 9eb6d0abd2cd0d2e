"""
Audit Logger

DESIGN DECISION: Every write to a group is logged.
This provides:
1. Complete traceability of a shared group's history
2. Debugging capability
3. A record members can check when a balance looks wrong

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from loonie.models.audit import AuditEvent, AuditEventBuilder
from loonie.services.storage import AuditStorageInterface


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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("loonie.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_group_created(
        self,
        group_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.group_created(
            group_id=group_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_member_added(
        self,
        group_id: UUID,
        member_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.member_added(
            group_id=group_id,
            member_id=member_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_member_renamed(
        self,
        group_id: UUID,
        member_id: UUID,
        old_name: str,
        new_name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.member_renamed(
            group_id=group_id,
            member_id=member_id,
            old_name=old_name,
            new_name=new_name,
            correlation_id=correlation_id,
        ))

    async def log_member_removed(
        self,
        group_id: UUID,
        member_id: UUID,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.member_removed(
            group_id=group_id,
            member_id=member_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_expense_added(
        self,
        group_id: UUID,
        expense_id: UUID,
        paid_by: str,
        amount: str,
        currency: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_added(
            group_id=group_id,
            expense_id=expense_id,
            paid_by=paid_by,
            amount=amount,
            currency=currency,
            correlation_id=correlation_id,
        ))

    async def log_expense_rejected(
        self,
        group_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log an expense the validator refused."""
        await self.log(AuditEventBuilder.expense_rejected(
            group_id=group_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        group_id: UUID,
        expense_id: UUID,
        description: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            group_id=group_id,
            expense_id=expense_id,
            description=description,
            correlation_id=correlation_id,
        ))

    async def log_ledger_computed(
        self,
        group_id: UUID,
        member_count: int,
        expense_count: int,
        settlement_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_computed(
            group_id=group_id,
            member_count=member_count,
            expense_count=expense_count,
            settlement_count=settlement_count,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        group_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed storage call."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            group_id=group_id,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
