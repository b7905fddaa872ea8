"""Prerequisite closure over the eligible module set."""

from __future__ import annotations

import logging
from typing import List, Sequence, Set

from .catalog import Catalog
from .models import StudyModule

logger = logging.getLogger(__name__)


def resolve_prerequisites(eligible: Sequence[StudyModule], catalog: Catalog) -> List[StudyModule]:
    """Return ``eligible`` plus every transitively required prerequisite.

    Prerequisites come from the full catalog whether or not they are eligible
    themselves, and are appended after the eligible modules in discovery
    order. Ids missing from the catalog are ignored. The expansion repeats full
    passes until one adds nothing; the number of passes is capped at the
    square of the catalog size so malformed catalogs still terminate.
    """
    result: List[StudyModule] = []
    selected: Set[str] = set()
    added: List[str] = []
    for module in eligible:
        if module.id not in selected:
            result.append(module)
            selected.add(module.id)

    max_passes = max(1, len(catalog)) ** 2
    passes = 0
    changed = True
    while changed:
        if passes >= max_passes:
            logger.warning(
                "Prerequisite expansion stopped after %d passes with %d modules selected.",
                passes,
                len(result),
            )
            break
        passes += 1
        changed = False
        for module in list(result):
            for prerequisite_id in module.prerequisite_ids:
                if prerequisite_id in selected:
                    continue
                prerequisite = catalog.get(prerequisite_id)
                if prerequisite is None:
                    logger.debug("Module %s references unknown prerequisite %s; ignoring.", module.id, prerequisite_id)
                    continue
                result.append(prerequisite)
                selected.add(prerequisite_id)
                added.append(prerequisite_id)
                changed = True

    if added:
        logger.debug("Prerequisite closure added: %s", ", ".join(added))
    return result


__all__ = ["resolve_prerequisites"]
