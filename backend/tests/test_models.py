from __future__ import annotations

import pytest
from pydantic import ValidationError

from study_planner.models import (
    GreenReadiness,
    ModuleCondition,
    PlanContext,
    StudyModule,
    TradelineProfile,
)


def _module_payload(**overrides: object) -> dict:
    payload = {
        "id": "credit-basics",
        "title": "Credit Basics",
        "category": "credit-fundamentals",
        "difficulty": "beginner",
        "estimatedMinutes": 5,
        "priority": "high",
    }
    payload.update(overrides)
    return payload


def test_readiness_coerces_unparseable_values_instead_of_raising() -> None:
    readiness = GreenReadiness.model_validate(
        {
            "tier": "b",
            "score": "n/a",
            "creditScore": None,
            "utilization": "0.42",
            "totalDebt": "$1,250",
            "derogatoryCount": "-3",
            "tradelineCount": "4",
            "factors": [{"label": " Thin File ", "impact": "NEGATIVE"}, "not-a-factor"],
        }
    )
    assert readiness.tier == "B"
    assert readiness.score == 0.0
    assert readiness.credit_score == 0.0
    assert readiness.utilization == pytest.approx(0.42)
    assert readiness.total_debt == 1250.0
    assert readiness.derogatory_count == 0
    assert readiness.tradeline_count == 4
    assert len(readiness.factors) == 1
    assert readiness.factors[0].label == "Thin File"
    assert readiness.factors[0].impact == "negative"


def test_unknown_tier_falls_back_to_lowest() -> None:
    assert GreenReadiness.model_validate({"tier": "Z"}).tier == "D"
    assert GreenReadiness.model_validate({"tier": None}).tier == "D"


def test_non_finite_numbers_become_zero() -> None:
    readiness = GreenReadiness.model_validate({"score": float("nan"), "utilization": float("inf")})
    assert readiness.score == 0.0
    assert readiness.utilization == 0.0


def test_tradeline_flags_accept_strings() -> None:
    profile = TradelineProfile.model_validate(
        {"hasMortgage": "yes", "isRenter": "false", "hasAutoLoan": 1, "autoLoanBalance": None}
    )
    assert profile.has_mortgage is True
    assert profile.is_renter is False
    assert profile.has_auto_loan is True
    assert profile.auto_loan_balance is None


def test_context_accepts_camel_and_snake_case() -> None:
    camel = PlanContext.model_validate({"greenReadiness": {"tier": "A", "creditScore": 780}})
    snake = PlanContext.model_validate({"green_readiness": {"tier": "A", "credit_score": 780}})
    assert camel == snake
    assert camel.green_readiness.credit_score == 780.0


def test_context_drops_null_sections_and_bad_entries() -> None:
    context = PlanContext.model_validate(
        {
            "greenReadiness": None,
            "tradelineProfile": None,
            "bureauScores": {"equifax": "n/a", "experian": "701", "transunion": None},
            "investments": [
                {"id": ""},
                "solar",
                {"id": "solar_panels", "minTier": "c", "annualCO2ReductionLbs": "10,000"},
            ],
        }
    )
    assert context.green_readiness.tier == "D"
    assert context.tradeline_profile is None
    assert context.bureau_scores == {"equifax": None, "experian": 701.0, "transunion": None}
    assert context.valid_bureau_scores() == [("experian", 701.0)]
    assert len(context.investments) == 1
    assert context.investments[0].min_tier == "C"
    assert context.investments[0].annual_co2_reduction_lbs == 10_000.0


def test_context_treats_non_mapping_sections_as_missing() -> None:
    context = PlanContext.model_validate({"greenReadiness": "oops", "tradelineProfile": "oops"})
    assert context.green_readiness.tier == "D"
    assert context.tradeline_profile is None

    context = PlanContext.model_validate({"green_readiness": 42, "tradeline_profile": ["renter"]})
    assert context.green_readiness.score == 0.0
    assert context.tradeline_profile is None


def test_tradeline_profile_drops_malformed_cards() -> None:
    assert PlanContext.model_validate(
        {"tradelineProfile": {"highUtilizationCards": None}}
    ).tradeline_profile.high_utilization_cards == []

    profile = PlanContext.model_validate(
        {"tradelineProfile": {"highUtilizationCards": [None, "Visa", {"name": "Visa", "utilization": "0.9"}]}}
    ).tradeline_profile
    assert [card.name for card in profile.high_utilization_cards] == ["Visa"]
    assert profile.high_utilization_cards[0].utilization == 0.9


def test_valid_bureau_scores_skip_non_positive_values() -> None:
    context = PlanContext.model_validate({"bureauScores": {"equifax": 0, "experian": -5, "transunion": 690}})
    assert context.valid_bureau_scores() == [("transunion", 690.0)]


def test_catalog_module_parses_camel_case() -> None:
    module = StudyModule.model_validate(
        _module_payload(
            prerequisiteIds=["intro"],
            conditions={"hasMortgage": True, "minTier": "B"},
            actionItems=[{"text": "Do it", "priority": "high", "estimatedImpact": "Big"}],
            relatedInvestmentId="solar_panels",
        )
    )
    assert module.prerequisite_ids == ("intro",)
    assert module.conditions.has_mortgage is True
    assert module.conditions.min_tier == "B"
    assert module.action_items[0].estimated_impact == "Big"
    assert module.template_fields() == ["Credit Basics", "", "", "Do it", "high", "Big", ""]


def test_catalog_module_rejects_unknown_fields_and_bad_values() -> None:
    with pytest.raises(ValidationError):
        StudyModule.model_validate(_module_payload(surprise=True))
    with pytest.raises(ValidationError):
        StudyModule.model_validate(_module_payload(category="side-quest"))
    with pytest.raises(ValidationError):
        StudyModule.model_validate(_module_payload(estimatedMinutes=-1))
    with pytest.raises(ValidationError):
        StudyModule.model_validate(_module_payload(conditions={"ownsYacht": True}))


def test_catalog_module_is_frozen() -> None:
    module = StudyModule.model_validate(_module_payload())
    with pytest.raises(ValidationError):
        module.title = "Changed"  # type: ignore[misc]


def test_condition_classification() -> None:
    assert ModuleCondition().is_unconditional
    assert not ModuleCondition(min_tier="B").is_unconditional
    assert ModuleCondition(has_mortgage=False).requires_tradeline_profile
    assert ModuleCondition(has_high_util_cards=True).requires_tradeline_profile
    assert not ModuleCondition(has_bureau_data=True).requires_tradeline_profile
    assert not ModuleCondition(min_derogatory_count=1).requires_tradeline_profile
