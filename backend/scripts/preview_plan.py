"""Render the study plan for a profile JSON file, for catalog authors."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from study_planner.catalog import CatalogError, default_catalog, load_catalog
from study_planner.engine import generate_study_plan
from study_planner.logging_config import configure_logging
from study_planner.models import PlanContext

LOGGER = logging.getLogger("study_planner.preview_plan")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("profile", type=Path, help="Profile JSON (greenReadiness, tradelineProfile, ...).")
    parser.add_argument("--catalog", type=Path, default=None, help="Catalog JSON to use instead of the bundled one.")
    parser.add_argument("--weeks", action="store_true", help="Print the week summary instead of the full plan.")
    parser.add_argument("--log-level", default=None, help="Override STUDY_PLANNER_LOG_LEVEL.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)
    try:
        catalog = load_catalog(args.catalog) if args.catalog is not None else default_catalog()
        context = PlanContext.model_validate(json.loads(args.profile.read_text(encoding="utf-8")))
    except CatalogError as exc:
        LOGGER.error("Catalog rejected: %s", exc)
        return 2
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        LOGGER.error("Unable to read profile %s: %s", args.profile, exc)
        return 1

    plan = generate_study_plan(context, catalog)
    if args.weeks:
        payload = [week.model_dump(mode="json", by_alias=True) for week in plan.weeks()]
    else:
        payload = plan.model_dump(mode="json", by_alias=True)
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
