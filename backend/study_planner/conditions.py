"""Module eligibility evaluation."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .models import ModuleCondition, PlanContext, StudyModule

logger = logging.getLogger(__name__)

TIER_ORDER = {"D": 0, "C": 1, "B": 2, "A": 3}


def _below(value: float, minimum: Optional[float]) -> bool:
    return minimum is not None and value < minimum


def _above(value: float, maximum: Optional[float]) -> bool:
    return maximum is not None and value > maximum


def is_eligible(condition: ModuleCondition, context: PlanContext) -> bool:
    """Return True when every specified field of ``condition`` holds.

    Fields are checked in a fixed order and the first failure short-circuits.
    Thresholds are inclusive. Tradeline predicates fail closed when the context
    has no tradeline profile, and bureau predicates need at least two positive
    bureau scores.
    """
    readiness = context.green_readiness
    tier_rank = TIER_ORDER[readiness.tier]

    if condition.min_tier is not None and tier_rank < TIER_ORDER[condition.min_tier]:
        return False
    if condition.max_tier is not None and tier_rank > TIER_ORDER[condition.max_tier]:
        return False
    if _below(readiness.score, condition.min_score) or _above(readiness.score, condition.max_score):
        return False
    if _below(readiness.utilization, condition.min_utilization) or _above(
        readiness.utilization, condition.max_utilization
    ):
        return False
    if _below(readiness.credit_score, condition.min_credit_score) or _above(
        readiness.credit_score, condition.max_credit_score
    ):
        return False
    if _below(readiness.derogatory_count, condition.min_derogatory_count) or _above(
        readiness.derogatory_count, condition.max_derogatory_count
    ):
        return False
    if _below(readiness.tradeline_count, condition.min_tradeline_count) or _above(
        readiness.tradeline_count, condition.max_tradeline_count
    ):
        return False

    if condition.has_negative_factor is not None:
        wanted = condition.has_negative_factor
        if not any(factor.label == wanted and factor.impact == "negative" for factor in readiness.factors):
            return False

    if condition.requires_tradeline_profile:
        tradelines = context.tradeline_profile
        if tradelines is None:
            return False
        if condition.is_renter is not None and condition.is_renter != tradelines.is_renter:
            return False
        if condition.has_mortgage is not None and condition.has_mortgage != tradelines.has_mortgage:
            return False
        if condition.has_auto_loan is not None and condition.has_auto_loan != tradelines.has_auto_loan:
            return False
        if condition.has_student_loan is not None and condition.has_student_loan != tradelines.has_student_loan:
            return False
        if condition.has_high_util_cards is not None and condition.has_high_util_cards != bool(
            tradelines.high_utilization_cards
        ):
            return False

    checks_spread = condition.min_bureau_spread is not None or condition.max_bureau_spread is not None
    if condition.has_bureau_data is not None or checks_spread:
        scores = [score for _, score in context.valid_bureau_scores()]
        has_bureau_data = len(scores) >= 2
        if condition.has_bureau_data is not None and condition.has_bureau_data != has_bureau_data:
            return False
        if checks_spread:
            if not has_bureau_data:
                return False
            spread = max(scores) - min(scores)
            if _below(spread, condition.min_bureau_spread) or _above(spread, condition.max_bureau_spread):
                return False

    return True


def select_eligible_modules(modules: Iterable[StudyModule], context: PlanContext) -> List[StudyModule]:
    """Filter ``modules`` down to those eligible for ``context``, keeping input order."""
    eligible = [module for module in modules if is_eligible(module.conditions, context)]
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Eligible modules: %s", ", ".join(module.id for module in eligible) or "<none>")
    return eligible


__all__ = ["TIER_ORDER", "is_eligible", "select_eligible_modules"]
