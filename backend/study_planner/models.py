"""Catalog, profile, and study plan models."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ModuleCategory = Literal["credit-fundamentals", "credit-repair", "green-finance", "green-action"]
ModuleDifficulty = Literal["beginner", "intermediate", "advanced"]
ModulePriority = Literal["urgent", "high", "medium", "low"]
Tier = Literal["A", "B", "C", "D"]
FactorImpact = Literal["positive", "negative", "neutral"]

TIERS: Tuple[str, ...] = ("A", "B", "C", "D")

TRADELINE_CONDITION_FIELDS: Tuple[str, ...] = (
    "is_renter",
    "has_mortgage",
    "has_auto_loan",
    "has_student_loan",
    "has_high_util_cards",
)


def _coerce_float(value: object, default: float = 0.0) -> float:
    """Coerce a collaborator-supplied number, falling back to ``default``."""
    if isinstance(value, bool):
        return float(int(value))
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "")
        if cleaned.endswith("%"):
            cleaned = cleaned[:-1]
        try:
            number = float(cleaned)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _coerce_int(value: object, default: int = 0) -> int:
    return int(_coerce_float(value, float(default)))


def _coerce_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


class _CatalogRecord(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _ProfileRecord(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ModuleCondition(_CatalogRecord):
    """Sparse, conjunctive eligibility predicate. ``None`` means "don't care"."""

    min_tier: Optional[Tier] = None
    max_tier: Optional[Tier] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    min_utilization: Optional[float] = None
    max_utilization: Optional[float] = None
    min_credit_score: Optional[float] = None
    max_credit_score: Optional[float] = None
    min_derogatory_count: Optional[int] = Field(default=None, ge=0)
    max_derogatory_count: Optional[int] = Field(default=None, ge=0)
    min_tradeline_count: Optional[int] = Field(default=None, ge=0)
    max_tradeline_count: Optional[int] = Field(default=None, ge=0)
    has_negative_factor: Optional[str] = None
    is_renter: Optional[bool] = None
    has_mortgage: Optional[bool] = None
    has_auto_loan: Optional[bool] = None
    has_student_loan: Optional[bool] = None
    has_high_util_cards: Optional[bool] = None
    has_bureau_data: Optional[bool] = None
    min_bureau_spread: Optional[float] = None
    max_bureau_spread: Optional[float] = None

    @property
    def requires_tradeline_profile(self) -> bool:
        return any(getattr(self, name) is not None for name in TRADELINE_CONDITION_FIELDS)

    @property
    def is_unconditional(self) -> bool:
        return not self.model_dump(exclude_none=True)


class ModuleActionItem(_CatalogRecord):
    text: str
    # Either a plain priority or a template such as "{{#if isLargeSpread}}high{{/if}}".
    priority: str
    estimated_impact: Optional[str] = None


class StudyModule(_CatalogRecord):
    """Single schedulable curriculum module."""

    id: str = Field(..., min_length=1)
    title: str
    category: ModuleCategory
    icon: str = ""
    difficulty: ModuleDifficulty
    estimated_minutes: int = Field(..., ge=0)
    prerequisite_ids: Tuple[str, ...] = ()
    conditions: ModuleCondition = Field(default_factory=ModuleCondition)
    priority: ModulePriority
    highlight: str = ""
    content: str = ""
    action_items: Tuple[ModuleActionItem, ...] = ()
    relevance: str = ""
    related_investment_id: Optional[str] = None

    def template_fields(self) -> List[str]:
        """Every templated string of the module, in rendering order."""
        fields = [self.title, self.highlight, self.content]
        for item in self.action_items:
            fields.append(item.text)
            fields.append(item.priority)
            if item.estimated_impact is not None:
                fields.append(item.estimated_impact)
        fields.append(self.relevance)
        return fields


# ---------------------------------------------------------------------------
# Profile (inbound, owned by the caller)
# ---------------------------------------------------------------------------


class ReadinessFactor(_ProfileRecord):
    label: str = ""
    impact: FactorImpact = "neutral"
    description: str = ""

    @field_validator("label", "description", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("impact", mode="before")
    @classmethod
    def _normalize_impact(cls, value: Any) -> str:
        normalized = str(value or "").strip().lower()
        return normalized if normalized in {"positive", "negative", "neutral"} else "neutral"


class GreenReadiness(_ProfileRecord):
    """Readiness scorecard computed upstream from the bureau pull."""

    tier: Tier = "D"
    score: float = 0.0
    credit_score: float = 0.0
    utilization: float = 0.0
    total_debt: float = 0.0
    total_credit_limit: float = 0.0
    derogatory_count: int = 0
    tradeline_count: int = 0
    factors: List[ReadinessFactor] = Field(default_factory=list)

    @field_validator("tier", mode="before")
    @classmethod
    def _normalize_tier(cls, value: Any) -> str:
        normalized = str(value or "").strip().upper()
        return normalized if normalized in TIERS else "D"

    @field_validator("score", "credit_score", "utilization", "total_debt", "total_credit_limit", mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> float:
        return _coerce_float(value)

    @field_validator("derogatory_count", "tradeline_count", mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> int:
        return max(0, _coerce_int(value))

    @field_validator("factors", mode="before")
    @classmethod
    def _drop_malformed_factors(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, (dict, ReadinessFactor))]


class HighUtilizationCard(_ProfileRecord):
    name: str = ""
    balance: float = 0.0
    limit: float = 0.0
    utilization: float = 0.0

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("balance", "limit", "utilization", mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> float:
        return _coerce_float(value)


class TradelineProfile(_ProfileRecord):
    """Facts derived from the individual accounts on the report."""

    has_auto_loan: bool = False
    has_mortgage: bool = False
    has_student_loan: bool = False
    is_renter: bool = False
    # Ranked by utilization, highest first.
    high_utilization_cards: List[HighUtilizationCard] = Field(default_factory=list)
    total_revolving_balance: float = 0.0
    total_revolving_limit: float = 0.0
    overall_utilization: float = 0.0
    auto_loan_balance: Optional[float] = None
    monthly_debt_payments: float = 0.0
    tradeline_count: int = 0

    @field_validator("high_utilization_cards", mode="before")
    @classmethod
    def _drop_malformed_cards(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, (dict, HighUtilizationCard))]

    @field_validator(
        "total_revolving_balance",
        "total_revolving_limit",
        "overall_utilization",
        "monthly_debt_payments",
        mode="before",
    )
    @classmethod
    def _coerce_amounts(cls, value: Any) -> float:
        return _coerce_float(value)

    @field_validator("auto_loan_balance", mode="before")
    @classmethod
    def _coerce_optional_amount(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        return _coerce_float(value)

    @field_validator("tradeline_count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return max(0, _coerce_int(value))

    @field_validator("has_auto_loan", "has_mortgage", "has_student_loan", "is_renter", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "yes"}
        return bool(value)


class GreenInvestment(_ProfileRecord):
    """Recommended investment; only read to derive template variables."""

    id: str
    name: str = ""
    category: str = ""
    min_tier: Tier = "D"
    estimated_cost: float = 0.0
    estimated_monthly_payment: float = 0.0
    annual_savings: float = 0.0
    annual_co2_reduction_lbs: float = Field(default=0.0, alias="annualCO2ReductionLbs")
    financing_term_years: float = 0.0

    @field_validator("id", "name", "category", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("min_tier", mode="before")
    @classmethod
    def _normalize_tier(cls, value: Any) -> str:
        normalized = str(value or "").strip().upper()
        return normalized if normalized in TIERS else "D"

    @field_validator(
        "estimated_cost",
        "estimated_monthly_payment",
        "annual_savings",
        "annual_co2_reduction_lbs",
        "financing_term_years",
        mode="before",
    )
    @classmethod
    def _coerce_amounts(cls, value: Any) -> float:
        return _coerce_float(value)


_SECTION_RECORDS: Dict[str, type] = {
    "greenReadiness": GreenReadiness,
    "green_readiness": GreenReadiness,
    "tradelineProfile": TradelineProfile,
    "tradeline_profile": TradelineProfile,
}


class PlanContext(_ProfileRecord):
    """Everything the engine reads about one user."""

    green_readiness: GreenReadiness = Field(default_factory=GreenReadiness)
    tradeline_profile: Optional[TradelineProfile] = None
    bureau_scores: Dict[str, Optional[float]] = Field(default_factory=dict)
    investments: List[GreenInvestment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_null_sections(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        dropped = {
            key
            for key in ("greenReadiness", "green_readiness", "investments", "bureauScores", "bureau_scores")
            if key in data and data[key] is None
        }
        # A section that is not a mapping is treated as missing.
        dropped.update(
            key
            for key, record in _SECTION_RECORDS.items()
            if key in data and not isinstance(data[key], (dict, record))
        )
        if dropped:
            data = {k: v for k, v in data.items() if k not in dropped}
        return data

    @field_validator("bureau_scores", mode="before")
    @classmethod
    def _coerce_bureau_scores(cls, value: Any) -> Dict[str, Optional[float]]:
        if not isinstance(value, dict):
            return {}
        scores: Dict[str, Optional[float]] = {}
        for bureau, raw in value.items():
            number = None if raw is None else _coerce_float(raw, default=math.nan)
            scores[str(bureau)] = None if number is None or math.isnan(number) else number
        return scores

    @field_validator("investments", mode="before")
    @classmethod
    def _drop_malformed_investments(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [
            entry
            for entry in value
            if isinstance(entry, GreenInvestment) or (isinstance(entry, dict) and entry.get("id"))
        ]

    def valid_bureau_scores(self) -> List[Tuple[str, float]]:
        """Bureau scores that are present and positive, in input order."""
        return [(bureau, score) for bureau, score in self.bureau_scores.items() if score is not None and score > 0]


# ---------------------------------------------------------------------------
# Study plan (outbound)
# ---------------------------------------------------------------------------


class _PlanRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalizedActionItem(_PlanRecord):
    text: str
    priority: str
    estimated_impact: Optional[str] = None


class StudyPlanModule(_PlanRecord):
    module: StudyModule
    week_number: int = Field(..., ge=1)
    personalized_title: str
    personalized_highlight: str
    personalized_content: str
    personalized_action_items: List[PersonalizedActionItem] = Field(default_factory=list)
    personalized_relevance: str


class StudyPlanWeek(_PlanRecord):
    week_number: int
    module_ids: List[str] = Field(default_factory=list)
    total_minutes: int = 0
    module_count: int = 0


class StudyPlan(_PlanRecord):
    modules: List[StudyPlanModule] = Field(default_factory=list)
    total_weeks: int = 0
    total_minutes: int = 0
    module_count: int = 0

    def weeks(self) -> List[StudyPlanWeek]:
        """Group scheduled modules by week, in week order, skipping empty weeks."""
        buckets: Dict[int, StudyPlanWeek] = {}
        for entry in self.modules:
            bucket = buckets.setdefault(entry.week_number, StudyPlanWeek(week_number=entry.week_number))
            bucket.module_ids.append(entry.module.id)
            bucket.total_minutes += entry.module.estimated_minutes
            bucket.module_count += 1
        return [buckets[week] for week in sorted(buckets)]

    def week_of(self, module_id: str) -> Optional[int]:
        for entry in self.modules:
            if entry.module.id == module_id:
                return entry.week_number
        return None


__all__ = [
    "FactorImpact",
    "GreenInvestment",
    "GreenReadiness",
    "HighUtilizationCard",
    "ModuleActionItem",
    "ModuleCategory",
    "ModuleCondition",
    "ModuleDifficulty",
    "ModulePriority",
    "PersonalizedActionItem",
    "PlanContext",
    "ReadinessFactor",
    "StudyModule",
    "StudyPlan",
    "StudyPlanModule",
    "StudyPlanWeek",
    "TIERS",
    "TRADELINE_CONDITION_FIELDS",
    "Tier",
    "TradelineProfile",
]
