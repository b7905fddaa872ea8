from __future__ import annotations

import logging
from typing import Sequence

from study_planner.catalog import Catalog
from study_planner.models import StudyModule
from study_planner.prerequisites import resolve_prerequisites


def _module(module_id: str, prerequisites: Sequence[str] = ()) -> StudyModule:
    return StudyModule(
        id=module_id,
        title=module_id.title(),
        category="credit-repair",
        difficulty="intermediate",
        estimated_minutes=5,
        priority="high",
        prerequisite_ids=tuple(prerequisites),
    )


def _ids(modules: Sequence[StudyModule]) -> list:
    return [module.id for module in modules]


def test_transitive_prerequisites_are_added_after_eligible_modules() -> None:
    basics = _module("basics")
    utilization = _module("utilization", ["basics"])
    paydown = _module("paydown", ["utilization"])
    catalog = Catalog([basics, utilization, paydown])

    resolved = resolve_prerequisites([paydown], catalog)

    assert _ids(resolved) == ["paydown", "utilization", "basics"]


def test_eligible_order_is_kept_and_discovery_order_follows() -> None:
    basics = _module("basics")
    utilization = _module("utilization", ["basics"])
    paydown = _module("paydown", ["utilization"])
    disputes = _module("disputes", ["basics"])
    catalog = Catalog([basics, utilization, paydown, disputes])

    resolved = resolve_prerequisites([paydown, disputes], catalog)

    assert _ids(resolved) == ["paydown", "disputes", "utilization", "basics"]


def test_nothing_is_added_when_prerequisites_are_already_eligible() -> None:
    basics = _module("basics")
    utilization = _module("utilization", ["basics"])
    catalog = Catalog([basics, utilization])

    assert _ids(resolve_prerequisites([utilization, basics], catalog)) == ["utilization", "basics"]


def test_duplicate_eligible_entries_collapse() -> None:
    basics = _module("basics")
    catalog = Catalog([basics])

    assert _ids(resolve_prerequisites([basics, basics], catalog)) == ["basics"]


def test_unknown_prerequisites_are_ignored(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="study_planner.prerequisites")
    orphan = _module("orphan", ["retired-module"])
    catalog = Catalog([orphan])

    assert _ids(resolve_prerequisites([orphan], catalog)) == ["orphan"]
    assert "retired-module" in caplog.text


def test_cycles_terminate() -> None:
    first = _module("first", ["second"])
    second = _module("second", ["first"])
    catalog = Catalog([first, second])

    assert _ids(resolve_prerequisites([first], catalog)) == ["first", "second"]


def test_empty_input_resolves_to_empty_list() -> None:
    assert resolve_prerequisites([], Catalog([])) == []
