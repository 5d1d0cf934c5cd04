"""
Unit of Work

One ``transaction.atomic()`` block per use case. Aggregates hand their
events to the unit of work, and the events reach the message bus only
once the outermost transaction has committed. A rollback drops them.
"""

from functools import partial
from typing import List
import logging

from django.db import transaction

from shared.domain.base import Aggregate, DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Transaction boundary for the booking use cases

    Row locks taken while validating capacity are held until the new
    reservation rows are written, because both happen inside the block.

    Usage:
        with DjangoUnitOfWork() as uow:
            inventory_repo.get_inventory(resource_type, resource_id, lock=True)
            reservation.place()
            uow.collect_events(reservation)
            booking_repo.save(reservation)
        # events are published after commit
    """

    def __init__(self, bus=None):
        self._bus = bus
        self._pending: List[DomainEvent] = []
        self._atomic = None

    def __enter__(self) -> 'DjangoUnitOfWork':
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self._schedule_publication()
        elif self._pending:
            logger.warning(
                f"Transaction aborted by {exc_type.__name__}, "
                f"dropping {len(self._pending)} event(s)"
            )
        self._pending = []
        return self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def collect_events(self, aggregate: Aggregate):
        events = aggregate.pull_events()
        self._pending.extend(events)
        if events:
            logger.debug(
                f"Collected {len(events)} event(s) from "
                f"{aggregate.__class__.__name__} {aggregate.id}"
            )

    def _schedule_publication(self):
        if not self._pending:
            return
        # on_commit waits for the outermost atomic block and forgets the callback on rollback
        transaction.on_commit(partial(self._publish, list(self._pending)))

    def _publish(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain event(s) after commit")
        try:
            bus.publish_events(events)
        except Exception:
            # The reservation is already committed; a publication failure is only reported
            logger.exception("Publishing domain events failed")
