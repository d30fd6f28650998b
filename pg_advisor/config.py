"""Application configuration"""
from pydantic_settings import BaseSettings
from typing import List, Literal, Optional


class Settings(BaseSettings):
    """Advisor settings from environment variables"""

    # Target Database
    target_db_type: Literal["postgresql", "postgres"] = "postgresql"
    target_db_host: str = "localhost"
    target_db_port: int = 5432
    target_db_name: str = "postgres"
    target_db_user: str = "postgres"
    target_db_password: str = ""
    target_db_ssl: str = "disable"

    # Connection-level limits (the advisor itself imposes none)
    target_db_connect_timeout_seconds: float = 10.0
    target_db_command_timeout_seconds: Optional[float] = None

    # Analysis
    advisor_schemas: str = "public"
    advisor_dry_run: bool = True
    advisor_min_unused_size_bytes: int = 1_048_576
    advisor_large_size_bytes: int = 10_485_760
    advisor_rarely_used_max_scans: int = 100
    advisor_poor_selectivity_ratio: float = 0.01
    advisor_fair_selectivity_ratio: float = 0.001
    advisor_reindex_high_size_bytes: int = 100_000_000
    advisor_reindex_medium_size_bytes: int = 10_000_000

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    def schema_list(self) -> List[str]:
        return [s.strip() for s in (self.advisor_schemas or "").split(",") if s.strip()]


settings = Settings()
