from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUERY_PARAMS_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    DEFAULT_LIMIT: int = 10
    MAX_LIMIT: int = 100
    DEFAULT_SORT_BY: str = "createdAt"
    DEFAULT_SORT_ORDER: Literal["asc", "desc"] = "desc"
    DATE_RANGE_FIELD: str = "createdAt"


settings = Settings()
