"""Personalised credit and green-finance study plans."""

from .catalog import Catalog, CatalogError, default_catalog, load_catalog
from .engine import StudyPlanEngine, generate_study_plan
from .models import (
    GreenInvestment,
    GreenReadiness,
    PlanContext,
    StudyModule,
    StudyPlan,
    StudyPlanModule,
    TradelineProfile,
)

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "CatalogError",
    "GreenInvestment",
    "GreenReadiness",
    "PlanContext",
    "StudyModule",
    "StudyPlan",
    "StudyPlanEngine",
    "StudyPlanModule",
    "TradelineProfile",
    "default_catalog",
    "generate_study_plan",
    "load_catalog",
]
