"""
Read views over schedule stops, plus releasing a deactivated bin's stops.
"""

import logging
from typing import Callable, List

from database import Document, DocumentStore, Unsubscribe, utcnow
from schemas import ReleaseResult, StopStats

logger = logging.getLogger(__name__)

RELEASED_NOTE = "Bin deactivated by customer"


class StopService:

    def __init__(self, store: DocumentStore, clock: Callable = utcnow):
        self.store = store
        self.clock = clock

    def get_stops_by_schedule(self, schedule_id: str) -> List[Document]:
        try:
            return self.store.get_documents(
                "stop", {"schedule_id": schedule_id}, order_by=[("created_at", 1)]
            )
        except Exception:
            logger.exception("Error fetching stops for schedule %s", schedule_id)
            return []

    def get_stop_stats(self, schedule_id: str) -> StopStats:
        stops = self.get_stops_by_schedule(schedule_id)

        def count(field, value):
            return sum(1 for s in stops if s.get(field) == value)

        return StopStats(
            total=len(stops),
            main_stops=count("type", "main"),
            customer_stops=count("type", "customer"),
            pending=count("status", "pending"),
            collected=count("status", "collected"),
            skipped=count("status", "skipped"),
            cancelled=count("status", "cancelled"),
        )

    def subscribe_to_stops_by_schedule(self, schedule_id: str,
                                       callback: Callable[[List[Document]], None]) -> Unsubscribe:
        """Call callback with the schedule's stops now and after every change.

        The returned function stops the subscription.
        """
        try:
            return self.store.subscribe(
                "stop", {"schedule_id": schedule_id}, callback, order_by=[("created_at", 1)]
            )
        except Exception:
            logger.exception("Error subscribing to stops for schedule %s", schedule_id)
            callback([])
            return lambda: None

    def release_bin_stops(self, bin_id: str) -> ReleaseResult:
        """Cancel the bin's pending stops on every future active schedule.

        Collected, skipped and already cancelled stops are left alone. A
        failed read or write is logged and skipped.
        """
        if not bin_id:
            return ReleaseResult(success=False, error="Invalid bin id")
        try:
            schedules = self.store.get_documents(
                "schedule", {"status": "active", "date": {"$gte": self.clock()}}
            )
        except Exception as e:
            logger.exception("Error loading schedules to release bin %s", bin_id)
            return ReleaseResult(success=False, error=str(e))

        released = 0
        for schedule in schedules:
            try:
                stops = self.store.get_documents(
                    "stop", {"schedule_id": schedule["id"], "bin_id": bin_id, "status": "pending"}
                )
            except Exception as e:
                logger.warning("Could not read stops on schedule %s: %s", schedule["id"], e)
                continue
            for stop in stops:
                try:
                    self.store.update_document("stop", stop["id"], {"status": "cancelled", "notes": RELEASED_NOTE})
                    released += 1
                except Exception as e:
                    logger.warning("Could not cancel stop %s: %s", stop["id"], e)

        logger.info("Released %d stops for bin %s", released, bin_id)
        message = (f"Removed from {released} future schedule(s)" if released
                   else "Bin deactivated (no future pickups found)")
        return ReleaseResult(success=True, count=released, message=message)
