"""Durable logging of every suppression decision."""

import logging
from datetime import datetime
from typing import Optional

from ..exceptions import AuditWriteError, StoreError
from ..retry import StoreRetryError, StoreRetryPolicy, execute_with_retry
from .models import Alert, AuditRecord, SuppressionResult
from .store_protocol import SuppressionStore

logger = logging.getLogger(__name__)

AUDIT_WRITE_ERRORS = (StoreRetryError, StoreError, ValueError, TypeError, KeyError, AttributeError)


class AuditSink:
    """Writes one audit record per decision; failures never reach the caller."""

    def __init__(self, store: SuppressionStore, retry_policy: Optional[StoreRetryPolicy] = None):
        self.store = store
        self.retry_policy = retry_policy or StoreRetryPolicy()
        self.failed_writes = 0

    async def record(self, alert: Alert, result: SuppressionResult, now: datetime) -> bool:
        """
        Persist the decision for ``alert``.

        Returns:
            True when the record was written, False when the write was abandoned
        """
        record = AuditRecord.from_result(alert, result, created_at=now)
        try:
            await self._write(record)
        except AuditWriteError:
            self.failed_writes += 1
            logger.error("Error logging suppression decision for alert %s", alert.id, exc_info=True)
            return False
        return True

    async def _write(self, record: AuditRecord) -> None:
        async def _attempt(_attempt_number: int) -> None:
            await self.store.append_audit_record(record)

        try:
            await execute_with_retry(
                _attempt,
                policy=self.retry_policy,
                logger=logger,
                context=f"Writing audit record for {record.alert_id}",
            )
        except AUDIT_WRITE_ERRORS as exc:
            raise AuditWriteError(f"Audit write failed for alert {record.alert_id}", alert_id=record.alert_id) from exc


__all__ = ["AUDIT_WRITE_ERRORS", "AuditSink"]
