import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    max_minutes_per_week: int = Field(25, ge=1, alias="STUDY_PLANNER_MAX_MINUTES_PER_WEEK")
    max_modules_per_week: int = Field(3, ge=1, alias="STUDY_PLANNER_MAX_MODULES_PER_WEEK")
    catalog_path: Optional[str] = Field(None, alias="STUDY_PLANNER_CATALOG_PATH")
    log_level: str = Field("INFO", alias="STUDY_PLANNER_LOG_LEVEL")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid study planner configuration: {exc}") from exc
