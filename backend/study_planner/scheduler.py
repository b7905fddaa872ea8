"""Ordering and weekly pacing of the resolved module set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set

from .models import StudyModule

logger = logging.getLogger(__name__)

DEFAULT_MAX_MINUTES_PER_WEEK = 25
DEFAULT_MAX_MODULES_PER_WEEK = 3

PRIORITY_ORDER: Dict[str, int] = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
CATEGORY_ORDER: Dict[str, int] = {
    "credit-fundamentals": 0,
    "credit-repair": 1,
    "green-finance": 2,
    "green-action": 3,
}


@dataclass(frozen=True)
class ScheduledModule:
    module: StudyModule
    week_number: int


@dataclass
class ScheduleResult:
    scheduled: List[ScheduledModule] = field(default_factory=list)
    # Modules left in the queue because a prerequisite was never placed.
    dropped: List[StudyModule] = field(default_factory=list)


def sort_modules(modules: Iterable[StudyModule]) -> List[StudyModule]:
    """Priority first (urgent first), then category. Stable for equal keys."""
    return sorted(
        modules,
        key=lambda module: (
            PRIORITY_ORDER.get(module.priority, len(PRIORITY_ORDER)),
            CATEGORY_ORDER.get(module.category, len(CATEGORY_ORDER)),
        ),
    )


class StudyPlanScheduler:
    """Greedy, single-pass week packer that respects prerequisite order."""

    def __init__(
        self,
        *,
        max_minutes_per_week: int = DEFAULT_MAX_MINUTES_PER_WEEK,
        max_modules_per_week: int = DEFAULT_MAX_MODULES_PER_WEEK,
    ) -> None:
        self._max_minutes = max(max_minutes_per_week, 1)
        self._max_modules = max(max_modules_per_week, 1)

    @property
    def max_minutes_per_week(self) -> int:
        return self._max_minutes

    @property
    def max_modules_per_week(self) -> int:
        return self._max_modules

    def schedule(self, modules: Sequence[StudyModule]) -> ScheduleResult:
        """Sort ``modules`` and assign each one a week number."""
        return self.assign_weeks(sort_modules(modules))

    def assign_weeks(self, ordered: Sequence[StudyModule]) -> ScheduleResult:
        """Place modules from ``ordered`` into weeks.

        Each step takes the first queued module whose prerequisites are all
        placed (prerequisites outside the queue count as unmet). A new week
        starts when the module would push the running total past the minute
        cap or the week already holds the maximum number of modules. A module
        longer than the cap on its own still gets a week to itself.
        """
        queue: List[StudyModule] = list(ordered)
        result = ScheduleResult()
        placed: Set[str] = set()
        current_week = 1
        minutes_this_week = 0
        modules_this_week = 0
        budget = len(queue) * len(queue)

        while queue and budget > 0:
            budget -= 1
            index = next(
                (
                    position
                    for position, module in enumerate(queue)
                    if all(prerequisite in placed for prerequisite in module.prerequisite_ids)
                ),
                None,
            )
            if index is None:
                break
            module = queue.pop(index)

            if modules_this_week and (
                minutes_this_week + module.estimated_minutes > self._max_minutes
                or modules_this_week >= self._max_modules
            ):
                current_week += 1
                minutes_this_week = 0
                modules_this_week = 0

            modules_this_week += 1
            minutes_this_week += module.estimated_minutes
            result.scheduled.append(ScheduledModule(module=module, week_number=current_week))
            placed.add(module.id)

        if queue:
            result.dropped = queue
            logger.warning(
                "Dropped %d module(s) with unsatisfiable prerequisites: %s",
                len(queue),
                ", ".join(module.id for module in queue),
            )
        return result


__all__ = [
    "CATEGORY_ORDER",
    "DEFAULT_MAX_MINUTES_PER_WEEK",
    "DEFAULT_MAX_MODULES_PER_WEEK",
    "PRIORITY_ORDER",
    "ScheduleResult",
    "ScheduledModule",
    "StudyPlanScheduler",
    "sort_modules",
]
