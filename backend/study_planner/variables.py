"""Derive the template variable table from a user's plan context.

This module is the only producer of template variable names. Every name in
``TEMPLATE_VARIABLE_NAMES`` is always present in the table, whatever the
profile looks like, so catalog text can rely on the full set. Names a template
references that are not listed here simply render empty.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Optional, Tuple

from .formatting import (
    calculate_monthly_payment,
    capitalize,
    estimated_rate,
    format_currency,
    next_tier,
    next_tier_threshold,
    pluralize,
    round_half_up,
    tier_label,
)
from .models import PlanContext
from .values import TemplateValue, TemplateVariables

logger = logging.getLogger(__name__)

HIGH_UTILIZATION_THRESHOLD = 0.30
LOW_UTILIZATION_THRESHOLD = 0.10
TARGET_UTILIZATION = 0.30
CARD_TARGET_UTILIZATION = 0.50
LARGE_BUREAU_SPREAD = 30

SOLAR_COST = 25_000
SOLAR_TAX_CREDIT_RATE = 0.30
SOLAR_TERM_YEARS = 15
EV_COST = 35_000
EV_TAX_CREDIT = 7_500
EV_TERM_YEARS = 6
HEAT_PUMP_COST = 12_000
HEAT_PUMP_TAX_CREDIT = 2_000
HEAT_PUMP_TERM_YEARS = 10
HOME_BATTERY_COST = 15_000

DEFAULT_BIGGEST_LEVER = "maintaining your current positive habits"

RENTER_FRIENDLY_INVESTMENT_IDS: FrozenSet[str] = frozenset(
    {
        "community_solar",
        "transit_pass",
        "ebike",
        "led_upgrade",
        "composting",
        "green_bank_account",
        "energy_appliances",
        "smart_thermostat",
    }
)

HOME_INVESTMENT_IDS: FrozenSet[str] = frozenset(
    {
        "solar_panels",
        "home_battery",
        "heat_pump",
        "weatherization",
        "energy_appliances",
        "smart_thermostat",
        "green_mortgage_refi",
    }
)

INVESTMENT_INCENTIVES: Dict[str, float] = {
    "solar_panels": SOLAR_COST * SOLAR_TAX_CREDIT_RATE,
    "home_battery": HOME_BATTERY_COST * SOLAR_TAX_CREDIT_RATE,
    "ev_new": EV_TAX_CREDIT,
    "ev_used": 4_000,
    "heat_pump": HEAT_PUMP_TAX_CREDIT,
    "energy_appliances": 840,
    "weatherization": 1_600,
}

TEMPLATE_VARIABLE_NAMES: Tuple[str, ...] = (
    # credit data
    "creditScore",
    "utilizationPct",
    "totalCreditLimitFormatted",
    "revolvingBalanceFormatted",
    "paydownToTargetFormatted",
    "target30Formatted",
    "totalDebtFormatted",
    "tradelineCount",
    "tradelinePlural",
    "derogatoryCount",
    "derogatoryPlural",
    "biggestLever",
    # conditional flags
    "isHighUtilization",
    "isLowUtilization",
    "hasNextTier",
    "isTopTier",
    "noAutoLoan",
    # tier
    "tier",
    "tierLabel",
    "score",
    "estimatedRate",
    "investmentCount",
    "nextTier",
    "pointsToNextTier",
    "nextTierRate",
    "rateSavingsFormatted",
    # bureaus
    "bureauSpread",
    "bureauCount",
    "highBureauName",
    "highBureauScore",
    "lowBureauName",
    "lowBureauScore",
    "isLargeSpread",
    "isSmallSpread",
    # tradelines
    "topHighUtilCardName",
    "topHighUtilCardPct",
    "topHighUtilCardBalanceFormatted",
    "topHighUtilCardLimitFormatted",
    "topHighUtilCardPaydownFormatted",
    "highUtilCardCount",
    "hasMultipleHighUtilCards",
    "autoLoanBalanceFormatted",
    "hasAutoLoan",
    "monthlyDebtFormatted",
    # investments
    "renterFriendlyCount",
    "homeInvestmentCount",
    "totalIncentivesFormatted",
    # financing
    "solarEffectiveCostFormatted",
    "solarMonthlyFormatted",
    "evMonthlyFormatted",
    "heatPumpMonthlyFormatted",
)


def _whole(value: float) -> TemplateValue:
    """Integral numbers stay ints so they render without a decimal part."""
    return int(value) if float(value).is_integer() else value


def build_template_variables(context: PlanContext) -> TemplateVariables:
    """Build the per-request variable table. Pure and deterministic."""
    readiness = context.green_readiness
    tradelines = context.tradeline_profile
    investments = context.investments

    utilization_pct = round_half_up(readiness.utilization * 100)
    revolving_balance = round_half_up(readiness.utilization * readiness.total_credit_limit)
    target_30 = round_half_up(readiness.total_credit_limit * TARGET_UTILIZATION)
    paydown_to_target = max(0, revolving_balance - target_30)

    valid_scores = context.valid_bureau_scores()
    high_bureau: Optional[Tuple[str, float]] = None
    low_bureau: Optional[Tuple[str, float]] = None
    bureau_spread: float = 0
    if len(valid_scores) >= 2:
        # First occurrence wins on ties, matching the order the bureaus were reported in.
        high_bureau = valid_scores[0]
        low_bureau = valid_scores[0]
        for entry in valid_scores[1:]:
            if entry[1] > high_bureau[1]:
                high_bureau = entry
            if entry[1] < low_bureau[1]:
                low_bureau = entry
        bureau_spread = high_bureau[1] - low_bureau[1]

    tier = readiness.tier
    upcoming_tier = next_tier(tier)
    points_to_next_tier = (
        max(0, round_half_up(next_tier_threshold(tier) - readiness.score)) if upcoming_tier else 0
    )
    current_rate = estimated_rate(tier)
    next_rate = estimated_rate(upcoming_tier) if upcoming_tier else current_rate

    top_card = tradelines.high_utilization_cards[0] if tradelines and tradelines.high_utilization_cards else None
    top_card_paydown = (
        max(0, top_card.balance - round_half_up(top_card.limit * CARD_TARGET_UTILIZATION)) if top_card else 0
    )
    high_util_card_count = len(tradelines.high_utilization_cards) if tradelines else 0
    has_auto_loan = bool(tradelines and tradelines.has_auto_loan)

    solar_effective = round_half_up(SOLAR_COST * (1 - SOLAR_TAX_CREDIT_RATE))
    solar_monthly = calculate_monthly_payment(solar_effective, current_rate, SOLAR_TERM_YEARS)
    ev_monthly = calculate_monthly_payment(EV_COST - EV_TAX_CREDIT, current_rate, EV_TERM_YEARS)
    heat_pump_monthly = calculate_monthly_payment(
        HEAT_PUMP_COST - HEAT_PUMP_TAX_CREDIT, current_rate, HEAT_PUMP_TERM_YEARS
    )
    rate_savings = (
        solar_monthly - calculate_monthly_payment(solar_effective, next_rate, SOLAR_TERM_YEARS)
        if upcoming_tier
        else 0
    )

    investment_ids = [investment.id for investment in investments]
    renter_friendly_count = sum(1 for item in investment_ids if item in RENTER_FRIENDLY_INVESTMENT_IDS)
    home_investment_count = sum(1 for item in investment_ids if item in HOME_INVESTMENT_IDS)
    total_incentives = sum(INVESTMENT_INCENTIVES.get(item, 0) for item in investment_ids)

    negative_factors = [factor for factor in readiness.factors if factor.impact == "negative"]
    biggest_lever = negative_factors[0].label.lower() if negative_factors else DEFAULT_BIGGEST_LEVER

    values: Dict[str, TemplateValue] = {
        "creditScore": _whole(readiness.credit_score),
        "utilizationPct": utilization_pct,
        "totalCreditLimitFormatted": format_currency(readiness.total_credit_limit),
        "revolvingBalanceFormatted": format_currency(revolving_balance),
        "paydownToTargetFormatted": format_currency(paydown_to_target),
        "target30Formatted": format_currency(target_30),
        "totalDebtFormatted": format_currency(readiness.total_debt),
        "tradelineCount": readiness.tradeline_count,
        "tradelinePlural": pluralize(readiness.tradeline_count),
        "derogatoryCount": readiness.derogatory_count,
        "derogatoryPlural": pluralize(readiness.derogatory_count),
        "biggestLever": biggest_lever,
        "isHighUtilization": readiness.utilization >= HIGH_UTILIZATION_THRESHOLD,
        "isLowUtilization": readiness.utilization < LOW_UTILIZATION_THRESHOLD,
        "hasNextTier": upcoming_tier is not None,
        "isTopTier": tier == "A",
        "noAutoLoan": not has_auto_loan,
        "tier": tier,
        "tierLabel": tier_label(tier),
        "score": _whole(readiness.score),
        "estimatedRate": _whole(current_rate),
        "investmentCount": len(investments),
        "nextTier": upcoming_tier or "",
        "pointsToNextTier": points_to_next_tier,
        "nextTierRate": _whole(next_rate),
        "rateSavingsFormatted": format_currency(rate_savings),
        "bureauSpread": _whole(bureau_spread),
        "bureauCount": len(valid_scores),
        "highBureauName": capitalize(high_bureau[0]) if high_bureau else "",
        "highBureauScore": _whole(high_bureau[1]) if high_bureau else "",
        "lowBureauName": capitalize(low_bureau[0]) if low_bureau else "",
        "lowBureauScore": _whole(low_bureau[1]) if low_bureau else "",
        "isLargeSpread": bureau_spread >= LARGE_BUREAU_SPREAD,
        "isSmallSpread": bureau_spread < LARGE_BUREAU_SPREAD,
        "topHighUtilCardName": top_card.name if top_card else "",
        "topHighUtilCardPct": round_half_up(top_card.utilization * 100) if top_card else "",
        "topHighUtilCardBalanceFormatted": format_currency(top_card.balance) if top_card else "",
        "topHighUtilCardLimitFormatted": format_currency(top_card.limit) if top_card else "",
        "topHighUtilCardPaydownFormatted": format_currency(top_card_paydown),
        "highUtilCardCount": high_util_card_count,
        "hasMultipleHighUtilCards": high_util_card_count > 1,
        "autoLoanBalanceFormatted": (
            format_currency(tradelines.auto_loan_balance) if tradelines and tradelines.auto_loan_balance else ""
        ),
        "hasAutoLoan": has_auto_loan,
        "monthlyDebtFormatted": format_currency(tradelines.monthly_debt_payments) if tradelines else "$0",
        "renterFriendlyCount": renter_friendly_count,
        "homeInvestmentCount": home_investment_count,
        "totalIncentivesFormatted": format_currency(total_incentives),
        "solarEffectiveCostFormatted": format_currency(solar_effective),
        "solarMonthlyFormatted": format_currency(solar_monthly),
        "evMonthlyFormatted": format_currency(ev_monthly),
        "heatPumpMonthlyFormatted": format_currency(heat_pump_monthly),
    }

    missing = set(TEMPLATE_VARIABLE_NAMES) - set(values)
    if missing:  # pragma: no cover - guards the published name list
        logger.error("Variable builder omitted published names: %s", ", ".join(sorted(missing)))
    return TemplateVariables(values)


__all__ = [
    "HOME_INVESTMENT_IDS",
    "INVESTMENT_INCENTIVES",
    "RENTER_FRIENDLY_INVESTMENT_IDS",
    "TEMPLATE_VARIABLE_NAMES",
    "build_template_variables",
]
