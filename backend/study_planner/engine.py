"""Study plan generation: selection, prerequisite closure, pacing, rendering."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import List, Optional

from .catalog import Catalog, default_catalog
from .conditions import select_eligible_modules
from .config import Settings, get_settings
from .models import PersonalizedActionItem, PlanContext, StudyModule, StudyPlan, StudyPlanModule
from .prerequisites import resolve_prerequisites
from .scheduler import PRIORITY_ORDER, ScheduledModule, StudyPlanScheduler
from .telemetry import emit_event
from .templates import render_template
from .values import TemplateVariables
from .variables import build_template_variables

logger = logging.getLogger(__name__)


class StudyPlanEngine:
    """Builds study plans from a fixed catalog and weekly capacity.

    Instances hold no per-request state and may be shared between threads.
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        max_minutes_per_week: int,
        max_modules_per_week: int,
    ) -> None:
        self._catalog = catalog
        self._scheduler = StudyPlanScheduler(
            max_minutes_per_week=max_minutes_per_week,
            max_modules_per_week=max_modules_per_week,
        )

    @classmethod
    def from_settings(cls, catalog: Optional[Catalog] = None, settings: Optional[Settings] = None) -> "StudyPlanEngine":
        settings = settings or get_settings()
        return cls(
            catalog if catalog is not None else default_catalog(),
            max_minutes_per_week=settings.max_minutes_per_week,
            max_modules_per_week=settings.max_modules_per_week,
        )

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def scheduler(self) -> StudyPlanScheduler:
        return self._scheduler

    def generate(self, context: PlanContext) -> StudyPlan:
        started = perf_counter()
        variables = build_template_variables(context)

        eligible = select_eligible_modules(self._catalog, context)
        resolved = resolve_prerequisites(eligible, self._catalog)
        result = self._scheduler.schedule(resolved)
        modules = [self._personalize(entry, variables) for entry in result.scheduled]

        plan = StudyPlan(
            modules=modules,
            total_weeks=max((entry.week_number for entry in modules), default=0),
            total_minutes=sum(entry.module.estimated_minutes for entry in modules),
            module_count=len(modules),
        )

        emit_event(
            "study_plan_generated",
            catalog_version=self._catalog.version,
            tier=context.green_readiness.tier,
            has_tradeline_profile=context.tradeline_profile is not None,
            eligible_count=len(eligible),
            resolved_count=len(resolved),
            dropped_module_ids=[module.id for module in result.dropped],
            module_count=plan.module_count,
            total_weeks=plan.total_weeks,
            total_minutes=plan.total_minutes,
            duration_ms=round((perf_counter() - started) * 1000, 3),
        )
        logger.debug(
            "Scheduled %d of %d resolved modules over %d week(s)", plan.module_count, len(resolved), plan.total_weeks
        )
        return plan

    @staticmethod
    def _personalize(entry: ScheduledModule, variables: TemplateVariables) -> StudyPlanModule:
        module = entry.module
        return StudyPlanModule(
            module=module,
            week_number=entry.week_number,
            personalized_title=render_template(module.title, variables),
            personalized_highlight=render_template(module.highlight, variables),
            personalized_content=render_template(module.content, variables),
            personalized_action_items=_personalize_action_items(module, variables),
            personalized_relevance=render_template(module.relevance, variables),
        )


def _fallback_priority(raw: str, module: StudyModule) -> str:
    """Priority used when an action item's priority template renders empty."""
    return raw if raw in PRIORITY_ORDER else module.priority


def _personalize_action_items(module: StudyModule, variables: TemplateVariables) -> List[PersonalizedActionItem]:
    items: List[PersonalizedActionItem] = []
    for item in module.action_items:
        items.append(
            PersonalizedActionItem(
                text=render_template(item.text, variables),
                priority=render_template(item.priority, variables) or _fallback_priority(item.priority, module),
                estimated_impact=(
                    render_template(item.estimated_impact, variables) if item.estimated_impact is not None else None
                ),
            )
        )
    return items


def generate_study_plan(
    context: PlanContext,
    catalog: Optional[Catalog] = None,
    *,
    settings: Optional[Settings] = None,
) -> StudyPlan:
    """Build a study plan for ``context``.

    Uses the bundled catalog and configured weekly capacity unless overridden.
    """
    return StudyPlanEngine.from_settings(catalog, settings).generate(context)


__all__ = ["StudyPlanEngine", "generate_study_plan"]
