"""
Deferred vehicle mutations.

Some TraCI setters (setColor, setMaxSpeed, setRoute) fail when the
target vehicle has been requested but not yet inserted into the
network. Such mutations are parked here and replayed on every state
refresh until they are accepted.
"""

import logging
from typing import Any

from .faults import OperationFault
from .models import DeferredOperation, OperationKind
from .session import TraCISession

logger = logging.getLogger(__name__)


class DeferredOperationQueue:
    """
    Pending mutations keyed by (vehicle id, operation kind).

    At most one value is held per key; a newer request for the same key
    replaces the older value but keeps its position in replay order.
    Retries are unbounded: every drain is one more attempt.
    """

    def __init__(self):
        self._pending: dict[tuple[str, OperationKind], DeferredOperation] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    def __contains__(self, key: tuple[str, OperationKind]) -> bool:
        return key in self._pending

    def enqueue(self, entity_id: str, kind: OperationKind, value: Any) -> None:
        """Queue (or overwrite) the pending value for (entity_id, kind)."""
        key = (entity_id, kind)
        existing = self._pending.get(key)
        if existing is not None:
            existing.value = value
            return
        self._pending[key] = DeferredOperation(entity_id, kind, value)
        logger.debug("Deferred %s for %s", kind.name, entity_id)

    def get(self, entity_id: str, kind: OperationKind) -> DeferredOperation | None:
        return self._pending.get((entity_id, kind))

    def pending(self) -> list[DeferredOperation]:
        """Snapshot of queued operations in replay order."""
        return list(self._pending.values())

    def discard(self, entity_id: str) -> None:
        """Drop every pending operation for one vehicle."""
        for key in [k for k in self._pending if k[0] == entity_id]:
            del self._pending[key]

    def clear(self) -> None:
        if self._pending:
            logger.info("Dropping %d pending vehicle operations", len(self._pending))
        self._pending.clear()

    def drain(self, session: TraCISession) -> int:
        """
        Replay every pending operation once.

        Accepted operations are removed. Operation faults leave the entry
        queued for the next drain. A connection fault stops the pass
        immediately: entries already applied stay removed, the failing
        entry and those after it stay queued.

        Args:
            session: Session to apply the operations against

        Returns:
            Number of operations applied during this pass

        Raises:
            ConnectionFault: If the session failed mid-pass
        """
        applied = 0
        for key, op in list(self._pending.items()):
            try:
                session.execute_write(
                    "vehicle", op.kind.traci_method, op.entity_id, op.value
                )
            except OperationFault as e:
                op.attempts += 1
                op.last_error = str(e)
                continue
            del self._pending[key]
            applied += 1
            logger.debug("Applied deferred %s for %s", op.kind.name, op.entity_id)
        return applied
