"""
Pickup lookup and reconciliation for a customer's bins.

Each active bin is matched to the nearest future schedule in the customer's
zone that accepts the bin's waste type. The lookup only reports that match;
the refresh keeps one stop per (user, bin) on the nearest schedule and
cancels pending stops the bin still has on later matching schedules.

Creating the nearest stop and cancelling the stale ones are separate writes.
A run interrupted between them leaves two pending stops for the bin until the
next refresh.
"""

import logging
from typing import Callable, List, Optional

from database import Document, DocumentStore, utcnow
from schemas import BinOutcome, NextPickup, PickupProjection, RefreshResult, Stop
from waste_types import (
    accepts,
    get_waste_type_color,
    get_waste_type_icon,
    get_waste_type_label,
    normalize_waste_type,
)

logger = logging.getLogger(__name__)

CANCELLED_NOTE = "Removed by pickup refresh - keeping only closest schedule"


class PickupService:

    def __init__(self, store: DocumentStore, clock: Callable = utcnow):
        self.store = store
        self.clock = clock

    # Queries

    def _active_bins(self, user_id: str) -> List[Document]:
        return self.store.get_documents("bin", {"user_id": user_id, "is_active": True})

    def _eligible_schedules(self, zone: str) -> List[Document]:
        return self.store.get_documents(
            "schedule",
            {"zone": zone, "status": "active", "date": {"$gte": self.clock()}},
            order_by=[("date", 1)],
        )

    def _stops_for(self, schedule_id: str, user_id: str, bin_id: str) -> List[Document]:
        return self.store.get_documents(
            "stop", {"schedule_id": schedule_id, "user_id": user_id, "bin_id": bin_id}
        )

    @staticmethod
    def _matching_schedules(bin_doc: Document, schedules: List[Document]) -> List[Document]:
        waste_type = normalize_waste_type(bin_doc.get("category"))
        return [s for s in schedules if accepts(s.get("waste_types"), waste_type)]

    @staticmethod
    def _projection(bin_doc: Document, next_pickup: Optional[NextPickup] = None) -> PickupProjection:
        category = bin_doc.get("category")
        return PickupProjection(
            bin_id=bin_doc["id"],
            bin_code=bin_doc.get("bin_code"),
            category=category,
            category_label=get_waste_type_label(category, default=category),
            icon=get_waste_type_icon(category),
            color=get_waste_type_color(category),
            has_pickup=next_pickup is not None,
            next_pickup=next_pickup,
        )

    # Read path

    def get_upcoming_pickups(self, user_id: str) -> List[PickupProjection]:
        """Next matching pickup for each of the user's active bins.

        Returns an empty list when the user id is empty, the user has no
        active bins, the user or their zone is missing, or the store fails.
        """
        if not user_id or not isinstance(user_id, str):
            return []
        try:
            bins = self._active_bins(user_id)
            if not bins:
                return []

            user = self.store.get_document("user", user_id)
            if user is None or not user.get("zone"):
                return []
            zone = user["zone"]

            schedules = self._eligible_schedules(zone)
            if not schedules:
                return [self._projection(b) for b in bins]

            pickups = []
            for bin_doc in bins:
                matching = self._matching_schedules(bin_doc, schedules)
                if not matching:
                    logger.debug("No schedule in zone %s for bin %s (%s)", zone, bin_doc["id"], bin_doc.get("category"))
                    pickups.append(self._projection(bin_doc))
                    continue

                schedule = matching[0]
                has_stop = bool(self._stops_for(schedule["id"], user_id, bin_doc["id"]))
                pickups.append(self._projection(bin_doc, NextPickup(
                    schedule_id=schedule["id"],
                    date=schedule.get("date"),
                    time_ranges=schedule.get("time_ranges") or [],
                    collector_name=schedule.get("collector_name") or "Collector",
                    zone=schedule.get("zone") or zone,
                    available_slots=schedule.get("available_slots") or 0,
                    waste_types=schedule.get("waste_types") or [],
                    has_stop=has_stop,
                )))

            logger.info("Found %d bin pickups for user %s", len(pickups), user_id)
            return pickups
        except Exception:
            logger.exception("Error getting upcoming pickups for user %s", user_id)
            return []

    # Write path

    def refresh_pickup_schedules(self, user_id: str) -> RefreshResult:
        """Keep one stop per active bin on its nearest matching schedule.

        Never raises. Failures before any bin is processed give
        success=False; failed writes during processing are reported on the
        bin's outcome and left out of the added/removed counts.
        """
        if not user_id or not isinstance(user_id, str):
            return RefreshResult(success=False, error="Invalid user id")
        try:
            bins = self._active_bins(user_id)
            if not bins:
                return RefreshResult(success=True, message="No active bins")

            user = self.store.get_document("user", user_id)
            if user is None:
                return RefreshResult(success=False, error="User not found")
            zone = user.get("zone")
            if not zone:
                return RefreshResult(success=False, error="User zone not found")

            schedules = self._eligible_schedules(zone)
            if not schedules:
                return RefreshResult(success=True, message="No future schedules found")

            outcomes = [self._reconcile_bin(user_id, user, bin_doc, schedules) for bin_doc in bins]
        except Exception as e:
            logger.exception("Error refreshing pickup schedules for user %s", user_id)
            return RefreshResult(success=False, error=str(e))

        added = sum(o.added for o in outcomes)
        removed = sum(o.removed for o in outcomes)
        logger.info("Refresh complete for user %s: +%d stops, -%d duplicates", user_id, added, removed)
        return RefreshResult(
            success=True,
            added=added,
            removed=removed,
            message=f"Updated {added + removed} schedule(s)",
            outcomes=outcomes,
        )

    def _reconcile_bin(self, user_id: str, user: Document, bin_doc: Document,
                       schedules: List[Document]) -> BinOutcome:
        bin_id = bin_doc["id"]
        matching = self._matching_schedules(bin_doc, schedules)
        if not matching:
            return BinOutcome(bin_id=bin_id, outcome="unmatched")

        nearest, stale = matching[0], matching[1:]
        result = BinOutcome(bin_id=bin_id, schedule_id=nearest["id"], outcome="unchanged")

        try:
            if not self._stops_for(nearest["id"], user_id, bin_id):
                self.store.create_document("stop", self._new_stop(nearest, user_id, user, bin_doc))
                result.added += 1
        except Exception as e:
            logger.warning("Could not add stop for bin %s on schedule %s: %s", bin_id, nearest["id"], e)
            result.errors.append(f"{nearest['id']}: {e}")
            # Stale stops stay pending until the nearest one exists.
            result.outcome = "failed"
            return result

        for schedule in stale:
            try:
                stops = self._stops_for(schedule["id"], user_id, bin_id)
            except Exception as e:
                logger.warning("Could not read stops for bin %s on schedule %s: %s", bin_id, schedule["id"], e)
                result.errors.append(f"{schedule['id']}: {e}")
                continue
            for stop in stops:
                if stop.get("status") != "pending":
                    continue
                try:
                    self.store.update_document("stop", stop["id"], {"status": "cancelled", "notes": CANCELLED_NOTE})
                    result.removed += 1
                except Exception as e:
                    logger.warning("Could not cancel stop %s on schedule %s: %s", stop["id"], schedule["id"], e)
                    result.errors.append(f"{schedule['id']}/{stop['id']}: {e}")

        if result.errors:
            result.outcome = "failed"
        elif result.added:
            result.outcome = "created"
        elif result.removed:
            result.outcome = "cancelled"
        return result

    @staticmethod
    def _new_stop(schedule: Document, user_id: str, user: Document, bin_doc: Document) -> Stop:
        category = bin_doc.get("category")
        return Stop(
            schedule_id=schedule["id"],
            user_id=user_id,
            user_name=user.get("display_name") or user.get("first_name") or "Customer",
            bin_id=bin_doc["id"],
            bin_category=category,
            bin_code=bin_doc.get("bin_code"),
            address=user.get("address") or "Address not provided",
            zone=user["zone"],
            type="customer",
            status="pending",
            notes=f"Auto-added via pickup refresh for {get_waste_type_label(category, default=category)}",
        )
