from __future__ import annotations

from typing import Protocol

import structlog

from agenthaus.schemas.records import ActivityRecord, TransactionRecord

log = structlog.get_logger()


class PersistenceSink(Protocol):
    async def record_transaction(self, record: TransactionRecord) -> None: ...

    async def log_activity(self, record: ActivityRecord) -> None: ...


class LoggingSink:
    """Default sink: writes persistence events to the structured log."""

    async def record_transaction(self, record: TransactionRecord) -> None:
        log.info(
            "sink.transaction",
            agent_id=record.agent_id,
            tx_hash=record.tx_hash,
            type=record.type,
            status=record.status,
            description=record.description,
        )

    async def log_activity(self, record: ActivityRecord) -> None:
        log.info(
            "sink.activity",
            agent_id=record.agent_id,
            type=record.type,
            message=record.message,
            metadata=record.metadata,
        )
